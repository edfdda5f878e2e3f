"""Ordered Speed/Trim composition over an immutable base buffer.

Speed transforms accumulate: every window is stretched independently with
:func:`clipscribe.audio.stretch.stretch` and the untouched runs between them
are copied through. At most one Trim applies afterwards; a later Trim replaces
an earlier one. Trim bounds are percentages of the *pre-speed* duration and
are carried into the speed-adjusted timeline with :func:`map_time`.

``apply_transforms`` is a pure function of ``(base, transforms)``; callers
always recompute from the base rather than from a previously derived buffer.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np

from clipscribe.audio.buffer import SampleBuffer
from clipscribe.audio.stretch import round_half_up, stretch, stretched_length
from clipscribe.errors import ValidationError

__all__ = [
    "SpeedTransform",
    "TrimTransform",
    "Transform",
    "SpeedSpan",
    "apply_transforms",
    "map_time",
    "plan_speed_spans",
    "sorted_speeds",
]


@dataclass(frozen=True)
class SpeedTransform:
    """Play ``[start_sec, end_sec)`` of the base at *rate* times speed."""

    start_sec: float
    end_sec: float
    rate: float


@dataclass(frozen=True)
class TrimTransform:
    """Keep ``[start_pct, end_pct]`` percent of the pre-speed duration."""

    start_pct: float
    end_pct: float


Transform = SpeedTransform | TrimTransform


@dataclass(frozen=True)
class SpeedSpan:
    """A speed window resolved to sample boundaries of the base buffer.

    Attributes:
        start: First input sample of the window.
        stop: One past the last input sample.
        rate: Playback rate.
        out_frames: Length of the stretched run in samples.
    """

    start: int
    stop: int
    rate: float
    out_frames: int

    @property
    def in_frames(self) -> int:
        return self.stop - self.start


def _validate_speed(t: SpeedTransform) -> None:
    values = (t.start_sec, t.end_sec, t.rate)
    if not all(math.isfinite(v) for v in values):
        raise ValidationError(f"Speed transform has non-finite values: {t}")
    if t.start_sec < 0 or t.end_sec <= t.start_sec:
        raise ValidationError(
            f"Speed window must satisfy 0 <= start < end, got [{t.start_sec}, {t.end_sec})"
        )
    if t.rate <= 0:
        raise ValidationError(f"Speed rate must be > 0, got {t.rate}")


def sorted_speeds(transforms: Sequence[Transform]) -> list[SpeedTransform]:
    """Return the Speed transforms sorted by start time.

    Raises:
        ValidationError: If a window is malformed or two windows overlap.
    """
    speeds = sorted(
        (t for t in transforms if isinstance(t, SpeedTransform)),
        key=lambda t: t.start_sec,
    )
    for t in speeds:
        _validate_speed(t)
    for prev, nxt in zip(speeds, speeds[1:]):
        if nxt.start_sec < prev.end_sec:
            raise ValidationError(
                f"Speed windows overlap: [{prev.start_sec}, {prev.end_sec}) and "
                f"[{nxt.start_sec}, {nxt.end_sec})"
            )
    return speeds


def plan_speed_spans(
    speeds: Sequence[SpeedTransform], sample_rate: int, num_frames: int
) -> list[SpeedSpan]:
    """Resolve sorted, validated Speed transforms to sample spans.

    Windows beyond the end of the buffer collapse to empty spans and are
    dropped; boundaries are shared by all channels so channel lengths match.
    """
    spans: list[SpeedSpan] = []
    cursor = 0
    for t in speeds:
        start = min(max(round_half_up(t.start_sec * sample_rate), cursor), num_frames)
        stop = min(max(round_half_up(t.end_sec * sample_rate), start), num_frames)
        if stop > start:
            spans.append(SpeedSpan(start, stop, t.rate, stretched_length(stop - start, t.rate)))
        cursor = stop
    return spans


def _active_trim(transforms: Sequence[Transform]) -> TrimTransform | None:
    trims = [t for t in transforms if isinstance(t, TrimTransform)]
    if not trims:
        return None
    trim = trims[-1]
    for pct in (trim.start_pct, trim.end_pct):
        if not math.isfinite(pct) or pct < 0 or pct > 100:
            raise ValidationError(f"Trim bounds must lie within [0, 100], got {trim}")
    return trim


def map_time(t: float, spans: Sequence[SpeedSpan], sample_rate: int) -> float:
    """Map a base-timeline time (seconds) into the speed-adjusted timeline.

    Times before the first window pass through unchanged. A time inside a
    window lands at the window's output start plus ``(t - start) / rate``,
    never past the window's output end. Each window crossed adds a constant
    offset of ``(output length - input length)`` seconds.

    The mapping is monotonically non-decreasing.
    """
    offset = 0.0
    for span in spans:
        start_sec = span.start / sample_rate
        stop_sec = span.stop / sample_rate
        if t < start_sec:
            break
        out_len_sec = span.out_frames / sample_rate
        if t < stop_sec:
            return start_sec + offset + min((t - start_sec) / span.rate, out_len_sec)
        offset += out_len_sec - (stop_sec - start_sec)
    return t + offset


def _stretch_channel(
    channel: np.ndarray, spans: Sequence[SpeedSpan], sample_rate: int
) -> np.ndarray:
    pieces: list[np.ndarray] = []
    cursor = 0
    for span in spans:
        pieces.append(channel[cursor : span.start])
        pieces.append(stretch(channel[span.start : span.stop], span.rate, sample_rate))
        cursor = span.stop
    pieces.append(channel[cursor:])
    return np.concatenate(pieces)


def apply_transforms(base: SampleBuffer, transforms: Sequence[Transform]) -> SampleBuffer:
    """Apply Speed transforms then the active Trim to *base*.

    Parameters:
        base (SampleBuffer): Immutable source buffer.
        transforms (Sequence[Transform]): Ordered transform list.

    Returns:
        SampleBuffer: A freshly derived buffer; *base* is untouched.

    Raises:
        ValidationError: On overlapping/malformed Speed windows or a Trim
            outside ``[0, 100]``.
    """
    speeds = sorted_speeds(transforms)
    trim = _active_trim(transforms)
    sr = base.sample_rate

    spans = plan_speed_spans(speeds, sr, base.num_frames)
    derived = base.map_channels(lambda ch: _stretch_channel(ch, spans, sr)) if spans else base

    if trim is None:
        return derived

    duration = base.duration_sec
    lo_pct, hi_pct = sorted((trim.start_pct, trim.end_pct))
    lo = map_time(lo_pct / 100.0 * duration, spans, sr)
    hi = map_time(hi_pct / 100.0 * duration, spans, sr)
    return derived.slice_samples(round_half_up(lo * sr), round_half_up(hi * sr))
