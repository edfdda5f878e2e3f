"""Equal-length chunk planner for long-audio transcription.

The planner splits the source duration into ``n`` contiguous windows. The
same windows are used to carve the per-chunk WAV inputs and to offset the
captions each chunk returns back onto the global timeline.

The logic is intentionally kept free of any transcriber imports so that it
can be reused for offline testing.
"""

from __future__ import annotations

import math

from clipscribe.audio.buffer import SampleBuffer
from clipscribe.errors import ValidationError
from clipscribe.timestamps.models import ChunkWindow

__all__ = [
    "plan_chunks",
    "slice_window",
]


def plan_chunks(total_duration_sec: float, n: int) -> list[ChunkWindow]:
    """Split ``[0, total_duration_sec]`` into *n* contiguous windows.

    Parameters:
        total_duration_sec (float): Source duration in seconds.
        n (int): Number of windows; must be >= 1.

    Returns:
        list[ChunkWindow]: Windows of length ``total / n``. Window ``i`` starts
            where window ``i - 1`` ends and the last window ends exactly at
            ``total_duration_sec``.

    Raises:
        ValidationError: If *n* < 1 or the duration is negative or not finite.
    """
    if isinstance(n, bool) or not isinstance(n, int) or n < 1:
        raise ValidationError(f"Number of chunks must be an integer >= 1, got {n!r}")
    if not math.isfinite(total_duration_sec) or total_duration_sec < 0:
        raise ValidationError(f"Invalid source duration: {total_duration_sec!r}")

    chunk_duration = total_duration_sec / n
    bounds = [min(i * chunk_duration, total_duration_sec) for i in range(n)]
    bounds.append(total_duration_sec)
    return [
        ChunkWindow(index=i, source_start_sec=bounds[i], source_end_sec=bounds[i + 1])
        for i in range(n)
    ]


def slice_window(buffer: SampleBuffer, window: ChunkWindow) -> SampleBuffer:
    """Return the samples of *buffer* covered by *window*."""
    return buffer.slice_seconds(window.source_start_sec, window.source_end_sec)
