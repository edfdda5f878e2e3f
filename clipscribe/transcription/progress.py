"""Phase-aware progress and ETA computation for chunked transcription.

Each chunk runs two phases (resample, transcribe). Overall progress counts
phase units, and the ETA extrapolates from elapsed wall time. The estimate is
recomputed on every tick without smoothing.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass

from clipscribe.utils.constant import ETA_MIN_PROGRESS_PCT, NUM_PHASES

__all__ = ["ProgressUpdate", "ProgressTracker", "format_eta"]


def format_eta(seconds: float) -> str:
    """Format a duration the way the status line shows it.

    Examples:
        >>> format_eta(42.4)
        '42s'
        >>> format_eta(125)
        '2m 5s'
        >>> format_eta(3725)
        '1h 2m'
    """
    if seconds < 60:
        return f"{round(seconds)}s"
    if seconds < 3600:
        return f"{int(seconds // 60)}m {round(seconds % 60)}s"
    return f"{int(seconds // 3600)}h {int((seconds % 3600) // 60)}m"


@dataclass(frozen=True)
class ProgressUpdate:
    """One immutable progress tick.

    Attributes:
        percent: Overall progress in ``[0, 100]``.
        eta_seconds: Estimated remaining seconds, ``None`` below 1%.
        chunk_index: Chunk the tick belongs to.
        phase_index: ``0`` for resample, ``1`` for transcribe.
    """

    percent: float
    eta_seconds: float | None
    chunk_index: int
    phase_index: int

    @property
    def eta_text(self) -> str:
        return "" if self.eta_seconds is None else format_eta(self.eta_seconds)


class ProgressTracker:
    """Convert per-phase fractions into overall progress and an ETA.

    Args:
        total_chunks: Number of chunks in this run (after debug limiting).
        clock: Monotonic clock, injectable for tests.
        started_at: Clock reading the run started at; defaults to now.
    """

    def __init__(
        self,
        total_chunks: int,
        clock: Callable[[], float] = time.monotonic,
        started_at: float | None = None,
    ) -> None:
        self.total_chunks = max(total_chunks, 1)
        self._clock = clock
        self._started = clock() if started_at is None else started_at

    @property
    def elapsed(self) -> float:
        return self._clock() - self._started

    def update(self, chunk_index: int, phase_index: int, fraction: float) -> ProgressUpdate:
        """Compute the overall state for one phase-progress report."""
        completed = chunk_index * NUM_PHASES + phase_index + min(max(fraction, 0.0), 1.0)
        overall = completed / (self.total_chunks * NUM_PHASES) * 100.0
        percent = min(max(overall, 0.0), 100.0)

        eta: float | None = None
        if percent >= ETA_MIN_PROGRESS_PCT:
            frac = percent / 100.0
            eta = self.elapsed * (1.0 - frac) / frac
        return ProgressUpdate(
            percent=percent, eta_seconds=eta, chunk_index=chunk_index, phase_index=phase_index
        )
