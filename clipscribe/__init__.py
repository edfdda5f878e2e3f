"""clipscribe – transcribe media and carve re-timed sub-clips from it."""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("clipscribe")
except PackageNotFoundError:  # pragma: no cover
    __version__ = "0.3.0"

__all__ = ["__version__"]
