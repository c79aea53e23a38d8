"""Version resolution for package metadata and runtime engine version."""

from importlib.metadata import PackageNotFoundError, version as _package_version

from .main import encdec


_engine_version = str(getattr(encdec, "ENGINE_VERSION", "")).strip()
if _engine_version and _engine_version.lower() != "unknown":
    __version__ = _engine_version
else:
    try:
        __version__ = _package_version("encdec")
    except PackageNotFoundError:
        __version__ = "0.0.0"


__all__ = ["__version__"]
