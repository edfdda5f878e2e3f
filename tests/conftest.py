"""Shared test fixtures for the clipscribe test suite."""

from __future__ import annotations

from collections.abc import Callable

import numpy as np
import pytest

from clipscribe.audio.buffer import SampleBuffer
from clipscribe.timestamps.models import Caption
from clipscribe.transcription.protocols import SupportReport


class FakeTranscriber:
    """Scripted transcriber recording every call.

    Each ``transcribe`` call returns ``captions_per_chunk`` one-second
    captions (in chunk-local time) and reports 0%, 50% and 100% progress for
    both the resample and transcribe phases.
    """

    def __init__(
        self,
        *,
        supported: bool = True,
        reason: str = "",
        captions_per_chunk: int = 2,
        fail_phase: str | None = None,
        on_transcribe: Callable[[int], None] | None = None,
    ) -> None:
        self.supported = supported
        self.reason = reason
        self.captions_per_chunk = captions_per_chunk
        self.fail_phase = fail_phase
        self.on_transcribe = on_transcribe
        self.calls: list[str] = []
        self.resampled: list[bytes] = []
        self.transcribe_count = 0

    def check_support(self, model: str) -> SupportReport:
        self.calls.append("check_support")
        return SupportReport(supported=self.supported, reason=self.reason)

    def fetch_model(self, model: str, on_progress: Callable[[float], None]) -> None:
        self.calls.append("fetch_model")
        if self.fail_phase == "model":
            raise RuntimeError("network down")
        on_progress(0.5)
        on_progress(1.0)

    def resample(self, wav_bytes: bytes, on_progress: Callable[[float], None]) -> bytes:
        self.calls.append("resample")
        if self.fail_phase == "resample":
            raise RuntimeError("bad sample rate")
        self.resampled.append(wav_bytes)
        for p in (0.0, 0.5, 1.0):
            on_progress(p)
        return wav_bytes

    def transcribe(
        self, waveform: bytes, model: str, on_progress: Callable[[float], None]
    ) -> list[tuple[str, float, float]]:
        self.calls.append("transcribe")
        if self.fail_phase == "transcribe":
            raise RuntimeError("model crashed")
        index = self.transcribe_count
        self.transcribe_count += 1
        if self.on_transcribe is not None:
            self.on_transcribe(index)
        for p in (0.0, 0.5, 1.0):
            on_progress(p)
        return [
            (f"w{index}_{k}", k * 1000.0, (k + 1) * 1000.0)
            for k in range(self.captions_per_chunk)
        ]

    def to_captions(self, segments: list[tuple[str, float, float]]) -> list[Caption]:
        return [Caption(text=t, start_ms=s, end_ms=e, confidence=0.9) for t, s, e in segments]


@pytest.fixture
def fake_transcriber() -> Callable[..., FakeTranscriber]:
    """Factory for scripted transcribers."""
    return FakeTranscriber


@pytest.fixture
def sine_buffer() -> Callable[..., SampleBuffer]:
    """Factory for sine-wave buffers of a given duration, rate and channel count."""

    def make(
        duration_sec: float = 1.0,
        sample_rate: int = 16_000,
        channels: int = 1,
        freq: float = 440.0,
    ) -> SampleBuffer:
        t = np.arange(int(round(duration_sec * sample_rate)), dtype=np.float32) / sample_rate
        data = [0.5 * np.sin(2 * np.pi * freq * (c + 1) * t) for c in range(channels)]
        return SampleBuffer(sample_rate=sample_rate, channels=tuple(data))

    return make


@pytest.fixture
def timeline() -> list[Caption]:
    """Thirty contiguous half-second captions starting at 0 ms."""
    return [
        Caption(text=f"word{i}", start_ms=i * 500.0, end_ms=(i + 1) * 500.0, confidence=0.8)
        for i in range(30)
    ]
