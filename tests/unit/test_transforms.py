"""Unit tests for Speed/Trim transform composition and time mapping."""

from __future__ import annotations

import numpy as np
import pytest

from clipscribe.audio.buffer import SampleBuffer
from clipscribe.audio.stretch import stretched_length
from clipscribe.audio.transforms import (
    SpeedTransform,
    TrimTransform,
    apply_transforms,
    map_time,
    plan_speed_spans,
    sorted_speeds,
)
from clipscribe.errors import ValidationError

SR = 8_000


@pytest.fixture
def base(sine_buffer) -> SampleBuffer:
    """Two seconds of stereo audio at 8 kHz."""
    return sine_buffer(duration_sec=2.0, sample_rate=SR, channels=2)


def test_full_trim_keeps_length(base: SampleBuffer) -> None:
    """``Trim(0, 100)`` is an identity on length."""
    out = apply_transforms(base, [TrimTransform(0, 100)])
    assert out.num_frames == base.num_frames
    np.testing.assert_array_equal(out.channels[0], base.channels[0])


def test_no_transforms_returns_equal_audio(base: SampleBuffer) -> None:
    """An empty transform list leaves the audio as it is."""
    out = apply_transforms(base, [])
    np.testing.assert_array_equal(out.channels[1], base.channels[1])


def test_unity_speed_matches_baseline(base: SampleBuffer) -> None:
    """A rate 1.0 speed window leaves duration and samples untouched."""
    baseline = apply_transforms(base, [TrimTransform(10, 90)])
    edited = apply_transforms(base, [SpeedTransform(0.5, 1.5, 1.0), TrimTransform(10, 90)])
    assert edited.num_frames == baseline.num_frames
    for a, b in zip(edited.channels, baseline.channels):
        np.testing.assert_array_equal(a, b)


def test_speed_window_changes_only_its_span(base: SampleBuffer) -> None:
    """Audio outside the speed window is copied through unchanged."""
    out = apply_transforms(base, [SpeedTransform(0.5, 1.5, 2.0)])
    in_frames = SR  # one second window
    assert out.num_frames == base.num_frames - in_frames + stretched_length(in_frames, 2.0)
    np.testing.assert_array_equal(out.channels[0][: SR // 2], base.channels[0][: SR // 2])
    np.testing.assert_array_equal(out.channels[0][-SR // 2 :], base.channels[0][-SR // 2 :])
    assert len({ch.size for ch in out.channels}) == 1


def test_speed_windows_accumulate(base: SampleBuffer) -> None:
    """Several disjoint windows all apply, in any input order."""
    speeds = [SpeedTransform(1.0, 1.5, 0.5), SpeedTransform(0.0, 0.5, 2.0)]
    out = apply_transforms(base, speeds)
    half = SR // 2
    expected = (
        base.num_frames - 2 * half + stretched_length(half, 2.0) + stretched_length(half, 0.5)
    )
    assert out.num_frames == expected


def test_overlapping_speeds_rejected(base: SampleBuffer) -> None:
    """Overlapping windows raise ``ValidationError``."""
    with pytest.raises(ValidationError):
        apply_transforms(base, [SpeedTransform(0.0, 1.0, 2.0), SpeedTransform(0.5, 1.5, 0.5)])


def test_adjacent_speeds_allowed() -> None:
    """Windows that only touch do not overlap."""
    speeds = sorted_speeds([SpeedTransform(1.0, 2.0, 2.0), SpeedTransform(0.0, 1.0, 0.5)])
    assert [s.start_sec for s in speeds] == [0.0, 1.0]


@pytest.mark.parametrize(
    "bad",
    [
        SpeedTransform(1.0, 1.0, 2.0),
        SpeedTransform(-0.5, 1.0, 2.0),
        SpeedTransform(0.0, 1.0, 0.0),
        SpeedTransform(0.0, float("nan"), 2.0),
    ],
)
def test_malformed_speed_rejected(bad: SpeedTransform) -> None:
    """Empty, negative, zero-rate and non-finite windows are invalid."""
    with pytest.raises(ValidationError):
        sorted_speeds([bad])


def test_trim_out_of_range_rejected(base: SampleBuffer) -> None:
    """Trim bounds outside [0, 100] raise ``ValidationError``."""
    with pytest.raises(ValidationError):
        apply_transforms(base, [TrimTransform(-1, 50)])
    with pytest.raises(ValidationError):
        apply_transforms(base, [TrimTransform(0, 101)])


def test_last_trim_wins(base: SampleBuffer) -> None:
    """A later Trim replaces an earlier one."""
    out = apply_transforms(base, [TrimTransform(0, 10), TrimTransform(50, 100)])
    assert out.num_frames == base.num_frames // 2
    np.testing.assert_array_equal(out.channels[0], base.channels[0][SR:])


def test_trim_measured_against_pre_speed_duration(base: SampleBuffer) -> None:
    """Trim percentages map through the speed-adjusted timeline."""
    # First second doubled in speed: 2 s -> 1.5 s. Trimming 50..100 keeps the
    # untouched second half, which now starts at 0.5 s.
    out = apply_transforms(base, [SpeedTransform(0.0, 1.0, 2.0), TrimTransform(50, 100)])
    assert out.num_frames == SR
    np.testing.assert_array_equal(out.channels[0], base.channels[0][SR:])


def test_trim_bounds_order_normalized(base: SampleBuffer) -> None:
    """Reversed trim bounds select the same range."""
    a = apply_transforms(base, [TrimTransform(75, 25)])
    b = apply_transforms(base, [TrimTransform(25, 75)])
    assert a.num_frames == b.num_frames == SR


def test_map_time_is_monotonic() -> None:
    """``map_time`` never decreases across slow, fast and untouched runs."""
    speeds = sorted_speeds(
        [
            SpeedTransform(0.2, 0.6, 0.5),
            SpeedTransform(0.6, 0.9, 3.0),
            SpeedTransform(1.2, 1.9, 1.7),
        ]
    )
    spans = plan_speed_spans(speeds, SR, 2 * SR)
    times = np.linspace(0.0, 2.0, 4001)
    mapped = [map_time(float(t), spans, SR) for t in times]
    assert all(b >= a for a, b in zip(mapped, mapped[1:]))
    assert mapped[0] == 0.0


def test_map_time_offsets() -> None:
    """Times before, inside and after a window map as documented."""
    spans = plan_speed_spans([SpeedTransform(1.0, 2.0, 2.0)], SR, 3 * SR)
    assert map_time(0.5, spans, SR) == pytest.approx(0.5)
    assert map_time(1.5, spans, SR) == pytest.approx(1.25)
    assert map_time(2.5, spans, SR) == pytest.approx(2.0)


def test_windows_past_the_end_are_dropped() -> None:
    """Speed windows beyond the buffer collapse to nothing."""
    spans = plan_speed_spans([SpeedTransform(5.0, 6.0, 2.0)], SR, SR)
    assert spans == []


def test_base_is_never_modified(base: SampleBuffer) -> None:
    """Recomputing from the same base twice yields identical results."""
    transforms = [SpeedTransform(0.25, 1.75, 1.3), TrimTransform(5, 95)]
    first = apply_transforms(base, transforms)
    second = apply_transforms(base, transforms)
    np.testing.assert_array_equal(first.channels[0], second.channels[0])
