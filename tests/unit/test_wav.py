"""Unit tests for the RIFF/PCM16 WAV codec."""

from __future__ import annotations

import struct

import numpy as np
import pytest

from clipscribe.audio.buffer import SampleBuffer
from clipscribe.audio.wav import WAV_HEADER_SIZE, decode_wav, encode_wav
from clipscribe.chunking import plan_chunks, slice_window
from clipscribe.errors import DecodeError


def _samples(blob: bytes) -> np.ndarray:
    return np.frombuffer(blob[WAV_HEADER_SIZE:], dtype="<i2")


def test_header_fields() -> None:
    """The header should describe 16-bit PCM with the buffer's layout."""
    buf = SampleBuffer(sample_rate=22_050, channels=(np.zeros(10), np.zeros(10)))
    blob = encode_wav(buf)
    riff, size, wave, fmt, fmt_len, pcm, channels, rate, byte_rate, align, bits, data, data_len = (
        struct.unpack("<4sI4s4sIHHIIHH4sI", blob[:WAV_HEADER_SIZE])
    )
    assert (riff, wave, fmt, data) == (b"RIFF", b"WAVE", b"fmt ", b"data")
    assert (fmt_len, pcm, channels, rate, bits) == (16, 1, 2, 22_050, 16)
    assert align == 4
    assert byte_rate == 22_050 * 4
    assert data_len == 10 * 4
    assert size == 36 + data_len
    assert len(blob) == WAV_HEADER_SIZE + data_len


def test_asymmetric_scaling_and_clamping() -> None:
    """Negatives scale by 32768, non-negatives by 32767, out-of-range clamps."""
    buf = SampleBuffer.from_mono([-1.0, 1.0, 0.0, -0.5, 0.5, 2.0, -3.0], 8_000)
    ints = _samples(encode_wav(buf))
    assert ints.tolist() == [-32768, 32767, 0, -16384, 16383, 32767, -32768]


def test_samples_are_interleaved() -> None:
    """Stereo frames should be written left/right alternating."""
    buf = SampleBuffer(sample_rate=8, channels=(np.full(3, 0.5), np.full(3, -0.5)))
    ints = _samples(encode_wav(buf))
    assert ints.tolist() == [16383, -16384] * 3


def test_empty_buffer_is_a_caller_error() -> None:
    """Encoding a zero-length buffer raises ``ValueError``."""
    with pytest.raises(ValueError):
        encode_wav(SampleBuffer.from_mono([], 8_000))


def test_decode_rejects_garbage() -> None:
    """Non-WAV bytes should surface as ``DecodeError``."""
    with pytest.raises(DecodeError):
        decode_wav(b"definitely not a wav file")


def test_chunked_round_trip_within_quantization() -> None:
    """10 s at 16 kHz split in four windows survives encode/decode per window."""
    sr = 16_000
    rng = np.random.default_rng(1234)
    source = SampleBuffer.from_mono(rng.uniform(-1.0, 1.0, 10 * sr), sr)

    windows = plan_chunks(source.duration_sec, 4)
    assert [(w.source_start_sec, w.source_end_sec) for w in windows] == [
        (0.0, 2.5),
        (2.5, 5.0),
        (5.0, 7.5),
        (7.5, 10.0),
    ]
    for window in windows:
        chunk = slice_window(source, window)
        assert chunk.num_frames == 40_000
        decoded = decode_wav(encode_wav(chunk))
        assert decoded.sample_rate == sr
        err = np.max(np.abs(decoded.channels[0] - chunk.channels[0]))
        assert err <= 1 / 32767 + 1e-6
