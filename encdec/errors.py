"""
Error taxonomy for the encdec pipeline.

Configuration problems (bad mode, key too long, missing paths) are fatal to a
whole invocation and surface as `ConfigurationError`. Everything else is fatal
to a single file only: the cipher primitive rejecting its input
(`CipherError`, tagged with a `CipherErrorKind`), a transformation that ran but
did not reverse cleanly (`ValidationError`), or plain I/O trouble.
"""

from __future__ import annotations

import enum


class CipherErrorKind(enum.Enum):
    """Closed set of failures a block cipher call can report."""

    BUFFER_SIZE = "invalid buffer size"
    KEY_SIZE = "invalid key size"
    DATA_SIZE = "invalid data size"
    INVALID_KEY = "invalid key"
    NONCE_SIZE = "invalid nonce size"
    IV_SIZE = "invalid IV size"
    TAG_SIZE = "invalid tag size"
    INVALID_TAG = "invalid tag"


class FailureKind(enum.Enum):
    """Why a single file ended up aborted."""

    CIPHER = "cipher"
    ROUND_TRIP_MISMATCH = "round-trip mismatch"
    IO = "io"


class EncdecError(RuntimeError):
    """Base class for every error raised by encdec."""


class ConfigurationError(EncdecError, ValueError):
    """Raised before the pipeline runs when the invocation itself is invalid."""


class CipherError(EncdecError):
    def __init__(self, kind: CipherErrorKind, message: str | None = None) -> None:
        super().__init__(message or kind.value)
        self.kind = kind


class ValidationError(EncdecError):
    """Raised by the byte-level API when the inverse transform does not reproduce the input."""

    kind = FailureKind.ROUND_TRIP_MISMATCH


__all__ = [
    "CipherError",
    "CipherErrorKind",
    "ConfigurationError",
    "EncdecError",
    "FailureKind",
    "ValidationError",
]
