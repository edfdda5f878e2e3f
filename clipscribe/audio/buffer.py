"""Immutable multi-channel PCM buffer.

Every downstream buffer (chunks, previews, stretched clips) is derived from the
decoded source through the operations here; none of them mutate their input.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Sequence
from dataclasses import dataclass

import numpy as np

__all__ = ["SampleBuffer"]


def _frozen(samples: np.ndarray) -> np.ndarray:
    """Return a read-only float32 1-D copy of *samples*."""
    arr = np.array(samples, dtype=np.float32, copy=True).reshape(-1)
    arr.flags.writeable = False
    return arr


@dataclass(frozen=True, eq=False)
class SampleBuffer:
    """Multi-channel float PCM with a fixed sample rate.

    Attributes:
        sample_rate: Samples per second per channel.
        channels: Per-channel sample arrays, all of equal length. The arrays
            are read-only; derive a new buffer instead of writing in place.
    """

    sample_rate: int
    channels: tuple[np.ndarray, ...]

    def __post_init__(self) -> None:
        if self.sample_rate <= 0:
            raise ValueError(f"sample_rate must be > 0, got {self.sample_rate}")
        frozen = tuple(_frozen(ch) for ch in self.channels)
        lengths = {ch.size for ch in frozen}
        if len(lengths) > 1:
            raise ValueError(f"channel lengths differ: {sorted(lengths)}")
        object.__setattr__(self, "channels", frozen)

    @classmethod
    def from_mono(cls, samples: Sequence[float] | np.ndarray, sample_rate: int) -> SampleBuffer:
        """Build a single-channel buffer."""
        return cls(sample_rate=sample_rate, channels=(np.asarray(samples),))

    @classmethod
    def from_array(
        cls, data: np.ndarray, sample_rate: int, *, channels_first: bool = False
    ) -> SampleBuffer:
        """Build a buffer from a 1-D or 2-D array.

        Args:
            data: Mono samples, or a 2-D array of shape ``(frames, channels)``
                (``soundfile`` layout) or ``(channels, frames)`` when
                *channels_first* is set.
            sample_rate: Sample rate in Hz.
            channels_first: Interpret 2-D input as ``(channels, frames)``.

        Returns:
            SampleBuffer: The new buffer.
        """
        arr = np.asarray(data)
        if arr.ndim == 1:
            return cls.from_mono(arr, sample_rate)
        if arr.ndim != 2:
            raise ValueError(f"expected 1-D or 2-D sample data, got {arr.ndim}-D")
        rows = arr if channels_first else arr.T
        return cls(sample_rate=sample_rate, channels=tuple(rows))

    @property
    def num_channels(self) -> int:
        return len(self.channels)

    @property
    def num_frames(self) -> int:
        return self.channels[0].size if self.channels else 0

    @property
    def duration_sec(self) -> float:
        return self.num_frames / float(self.sample_rate)

    def slice_samples(self, start: int, stop: int) -> SampleBuffer:
        """Return frames ``[start, stop)`` clamped to the buffer bounds."""
        start = min(max(int(start), 0), self.num_frames)
        stop = min(max(int(stop), start), self.num_frames)
        return SampleBuffer(
            sample_rate=self.sample_rate,
            channels=tuple(ch[start:stop] for ch in self.channels),
        )

    def slice_seconds(self, start_sec: float, end_sec: float) -> SampleBuffer:
        """Return the frames between two times, using floor of ``t * rate``."""
        start = math.floor(start_sec * self.sample_rate)
        stop = math.floor(end_sec * self.sample_rate)
        return self.slice_samples(start, stop)

    def map_channels(self, fn: Callable[[np.ndarray], np.ndarray]) -> SampleBuffer:
        """Apply *fn* to every channel and wrap the results in a new buffer.

        Raises:
            ValueError: If *fn* produces channels of different lengths.
        """
        return SampleBuffer(
            sample_rate=self.sample_rate,
            channels=tuple(fn(ch) for ch in self.channels),
        )

    def to_mono(self) -> SampleBuffer:
        """Average all channels into one."""
        if self.num_channels <= 1:
            return self
        mixed = np.mean(np.stack(self.channels), axis=0)
        return SampleBuffer.from_mono(mixed, self.sample_rate)
