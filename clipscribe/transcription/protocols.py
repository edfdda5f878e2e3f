"""Protocol for the external transcriber the orchestrator drives.

The ML model is not part of this package; anything implementing
:class:`Transcriber` can be plugged in (the CLI loads one from a
``module:attribute`` import path).
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any, Protocol

from clipscribe.timestamps.models import Caption

ProgressFn = Callable[[float], None]


@dataclass(frozen=True)
class SupportReport:
    """Result of the transcriber's capability check.

    Attributes:
        supported: Whether the environment can run the model.
        reason: Human-readable explanation when unsupported.
    """

    supported: bool
    reason: str = ""


class Transcriber(Protocol):
    """Single-instance speech-to-text backend.

    Every phase may block; progress callbacks receive fractions in ``[0, 1]``.
    """

    def check_support(self, model: str) -> SupportReport:
        """Report whether *model* can run in this environment."""

    def fetch_model(self, model: str, on_progress: ProgressFn) -> None:
        """Download or load *model*, reporting progress."""

    def resample(self, wav_bytes: bytes, on_progress: ProgressFn) -> Any:
        """Turn a WAV blob into the waveform the model consumes."""

    def transcribe(self, waveform: Any, model: str, on_progress: ProgressFn) -> Sequence[Any]:
        """Run the model over *waveform* and return raw segments."""

    def to_captions(self, segments: Sequence[Any]) -> list[Caption]:
        """Normalize raw segments to chunk-relative captions."""
