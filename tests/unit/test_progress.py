"""Unit tests for phase-aware progress and ETA formatting."""

from __future__ import annotations

import pytest

from clipscribe.transcription.progress import ProgressTracker, format_eta


class _Clock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


@pytest.mark.parametrize(
    "seconds,expected",
    [(0, "0s"), (42.4, "42s"), (59.4, "59s"), (60, "1m 0s"), (125, "2m 5s"), (3725, "1h 2m")],
)
def test_format_eta(seconds: float, expected: str) -> None:
    """ETA text switches units at one minute and one hour."""
    assert format_eta(seconds) == expected


def test_progress_counts_phase_units() -> None:
    """Two phases per chunk make four units for two chunks."""
    tracker = ProgressTracker(2, clock=_Clock())
    assert tracker.update(0, 0, 0.5).percent == pytest.approx(12.5)
    assert tracker.update(0, 1, 1.0).percent == pytest.approx(50.0)
    assert tracker.update(1, 1, 1.0).percent == pytest.approx(100.0)


def test_progress_clamps_fraction() -> None:
    """Out-of-range phase fractions are clamped to [0, 1]."""
    tracker = ProgressTracker(1, clock=_Clock())
    assert tracker.update(0, 0, -3.0).percent == 0.0
    assert tracker.update(0, 1, 7.0).percent == 100.0


def test_eta_appears_after_one_percent() -> None:
    """No ETA below 1%; afterwards elapsed * (1 - f) / f."""
    clock = _Clock()
    tracker = ProgressTracker(50, clock=clock)
    clock.now = 10.0
    early = tracker.update(0, 0, 0.5)  # 0.5%
    assert early.eta_seconds is None
    assert early.eta_text == ""

    tracker = ProgressTracker(1, clock=clock, started_at=0.0)
    update = tracker.update(0, 0, 0.5)  # 25% after 10 s
    assert update.eta_seconds == pytest.approx(30.0)
    assert update.eta_text == "30s"
