"""Exception hierarchy shared by every clipscribe component."""

from __future__ import annotations


class ClipscribeError(Exception):
    """Base class for all clipscribe errors."""


class ValidationError(ClipscribeError):
    """Invalid user input: chunk count, overlapping speed edit, trim range."""


class DecodeError(ClipscribeError):
    """The input file could not be decoded as audio."""


class CapabilityError(ClipscribeError):
    """The environment cannot run the configured transcriber."""


class ExternalPhaseError(ClipscribeError):
    """A model fetch, resample or transcribe call failed.

    Attributes:
        phase: Name of the failing phase (``"model"``, ``"resample"``,
            ``"transcribe"``).
        chunk_index: Zero-based chunk index, or ``None`` for whole-run phases.
    """

    def __init__(self, phase: str, message: str, chunk_index: int | None = None) -> None:
        """Store phase metadata alongside the message.

        Args:
            phase: Name of the failing phase.
            message: Human-readable description of the failure.
            chunk_index: Chunk being processed when the failure occurred.
        """
        super().__init__(message)
        self.phase = phase
        self.chunk_index = chunk_index


class CacheWriteError(ClipscribeError):
    """Persisting a transcript failed; never fatal."""


class CacheReadError(ClipscribeError):
    """Reading a cached transcript failed; treated as a cache miss."""
