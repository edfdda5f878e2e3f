"""RIFF/PCM16 WAV codec for :class:`SampleBuffer`.

Encoding is done by hand rather than through ``soundfile`` because the sample
scaling is asymmetric: negative samples scale by 32768, non-negative samples
by 32767. Decoding goes through ``soundfile`` and applies the inverse scaling
so an encode/decode cycle stays within one quantization step.
"""

from __future__ import annotations

import io
import struct

import numpy as np
import soundfile as sf  # type: ignore

from clipscribe.audio.buffer import SampleBuffer
from clipscribe.errors import DecodeError

__all__ = ["encode_wav", "decode_wav", "WAV_HEADER_SIZE"]

WAV_HEADER_SIZE = 44
_PCM_FORMAT = 1
_BITS_PER_SAMPLE = 16
_BYTES_PER_SAMPLE = _BITS_PER_SAMPLE // 8
_NEG_SCALE = 32768.0
_POS_SCALE = 32767.0


def _to_int16(samples: np.ndarray) -> np.ndarray:
    """Clamp to [-1, 1] and scale asymmetrically, truncating toward zero."""
    clamped = np.clip(samples.astype(np.float64), -1.0, 1.0)
    scaled = np.where(clamped < 0, clamped * _NEG_SCALE, clamped * _POS_SCALE)
    return np.trunc(scaled).astype("<i2")


def encode_wav(buffer: SampleBuffer) -> bytes:
    """Encode *buffer* as a 16-bit PCM WAV byte blob.

    Parameters:
        buffer (SampleBuffer): Source audio. Must have at least one channel
            and one frame.

    Returns:
        bytes: ``RIFF`` header, ``fmt `` chunk and interleaved ``data`` chunk.

    Raises:
        ValueError: If the buffer has no channels or no frames.
    """
    if buffer.num_channels == 0 or buffer.num_frames == 0:
        raise ValueError("cannot encode an empty buffer")

    channels = buffer.num_channels
    block_align = channels * _BYTES_PER_SAMPLE
    data_size = buffer.num_frames * block_align

    header = struct.pack(
        "<4sI4s4sIHHIIHH4sI",
        b"RIFF",
        36 + data_size,
        b"WAVE",
        b"fmt ",
        16,
        _PCM_FORMAT,
        channels,
        buffer.sample_rate,
        buffer.sample_rate * block_align,
        block_align,
        _BITS_PER_SAMPLE,
        b"data",
        data_size,
    )
    # (channels, frames) -> (frames, channels) gives interleaved order
    interleaved = _to_int16(np.stack(buffer.channels)).T
    return header + np.ascontiguousarray(interleaved).tobytes()


def decode_wav(blob: bytes) -> SampleBuffer:
    """Decode a PCM16 WAV blob back into a :class:`SampleBuffer`.

    Parameters:
        blob (bytes): WAV file contents.

    Returns:
        SampleBuffer: Float samples in [-1, 1], inverse of :func:`encode_wav`.

    Raises:
        DecodeError: If the blob is not a readable WAV file.
    """
    try:
        data, sr = sf.read(io.BytesIO(blob), dtype="int16", always_2d=True)
    except (RuntimeError, sf.LibsndfileError) as exc:
        raise DecodeError(f"Not a readable WAV blob: {exc}") from exc

    ints = data.astype(np.float64)
    floats = np.where(ints < 0, ints / _NEG_SCALE, ints / _POS_SCALE)
    return SampleBuffer.from_array(floats, int(sr))
