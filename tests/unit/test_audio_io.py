"""Unit tests for media decoding into sample buffers."""

from __future__ import annotations

from array import array
from pathlib import Path

import numpy as np
import pytest
from pydub.exceptions import CouldntDecodeError

from clipscribe.audio.wav import encode_wav
from clipscribe.errors import DecodeError
from clipscribe.utils import audio_io
from clipscribe.utils.audio_io import load_audio


def _soundfile_fails(monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_read(*_args: object, **_kwargs: object) -> None:
        raise RuntimeError("format not recognised")

    monkeypatch.setattr(audio_io.sf, "read", fake_read)


def test_load_wav_keeps_channels(tmp_path: Path, sine_buffer) -> None:
    """soundfile decodes a WAV with its native rate and every channel."""
    path = tmp_path / "stereo.wav"
    path.write_bytes(encode_wav(sine_buffer(duration_sec=0.5, sample_rate=8_000, channels=2)))

    buf = load_audio(path)

    assert buf.sample_rate == 8_000
    assert buf.num_channels == 2
    assert buf.num_frames == 4_000


def test_pydub_fallback(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Files soundfile rejects are decoded through pydub."""
    _soundfile_fails(monkeypatch)

    class FakeSegment:
        frame_rate = 22_050
        channels = 2
        sample_width = 2

        def get_array_of_samples(self) -> array:
            return array("h", [16384, -16384, 0, 32767])

    monkeypatch.setattr(audio_io.AudioSegment, "from_file", staticmethod(lambda _p: FakeSegment()))

    buf = load_audio(tmp_path / "clip.m4a")

    assert buf.sample_rate == 22_050
    assert buf.num_channels == 2
    np.testing.assert_allclose(buf.channels[0], [0.5, 0.0])
    np.testing.assert_allclose(buf.channels[1], [-0.5, 32767 / 32768], rtol=1e-6)


def test_undecodable_file_raises(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """When both backends fail a DecodeError names the file."""
    _soundfile_fails(monkeypatch)

    def fake_from_file(_path: object) -> None:
        raise CouldntDecodeError("ffmpeg said no")

    monkeypatch.setattr(audio_io.AudioSegment, "from_file", staticmethod(fake_from_file))

    with pytest.raises(DecodeError, match="notes.mp3"):
        load_audio(tmp_path / "notes.mp3")


def test_empty_audio_raises(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """A file with no samples is rejected."""
    monkeypatch.setattr(
        audio_io.sf,
        "read",
        lambda *_a, **_k: (np.zeros((0, 1), dtype=np.float32), 16_000),
    )

    with pytest.raises(DecodeError, match="no audio samples"):
        load_audio(tmp_path / "empty.wav")


def test_target_rate_resamples_each_channel(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path, sine_buffer
) -> None:
    """A target rate resamples every channel with librosa."""
    path = tmp_path / "stereo.wav"
    path.write_bytes(encode_wav(sine_buffer(duration_sec=0.5, sample_rate=32_000, channels=2)))
    calls: list[tuple[int, int]] = []

    def fake_resample(y: np.ndarray, *, orig_sr: int, target_sr: int) -> np.ndarray:
        calls.append((orig_sr, target_sr))
        return y[:: orig_sr // target_sr]

    monkeypatch.setattr(audio_io.librosa, "resample", fake_resample)

    buf = load_audio(path, target_sr=16_000)

    assert calls == [(32_000, 16_000), (32_000, 16_000)]
    assert buf.sample_rate == 16_000
    assert buf.num_frames == 8_000


def test_matching_target_rate_skips_resample(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path, sine_buffer
) -> None:
    """No resampling happens when the file is already at the target rate."""
    path = tmp_path / "mono.wav"
    path.write_bytes(encode_wav(sine_buffer(duration_sec=0.25, sample_rate=16_000)))

    def fail_resample(*_a: object, **_k: object) -> None:
        raise AssertionError("resample should not be called")

    monkeypatch.setattr(audio_io.librosa, "resample", fail_resample)

    assert load_audio(path, target_sr=16_000).num_frames == 4_000
