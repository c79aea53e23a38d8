from pathlib import Path
from setuptools import setup, find_packages


def read_readme() -> str:
    readme_path = Path(__file__).resolve().parent / "README.md"
    return readme_path.read_text(encoding="utf-8") if readme_path.exists() else ""


setup(
    name="encdec",
    version="1.0.0",
    packages=find_packages(include=["encdec", "encdec.*"]),
    install_requires=[
        "cryptography>=41.0.0",
    ],
    extras_require={
        "color": ["colorama>=0.4.6"],
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": ["encdec=encdec.main:main"],
    },
    python_requires=">=3.10",
    description="AES-128-CBC file encoder/decoder with round-trip validation",
    long_description=read_readme(),
    long_description_content_type="text/markdown",
)
