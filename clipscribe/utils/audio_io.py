"""Audio I/O helpers.

Decodes arbitrary audio/video files into a :class:`SampleBuffer`, keeping all
channels, using *soundfile* first and *pydub* (ffmpeg) as a fallback. An
optional target sample rate resamples with *librosa*.
"""

from __future__ import annotations

from pathlib import Path

import librosa  # type: ignore
import numpy as np
import soundfile as sf  # type: ignore
from pydub import AudioSegment  # type: ignore  # fallback only
from pydub.exceptions import CouldntDecodeError  # type: ignore

from clipscribe.audio.buffer import SampleBuffer
from clipscribe.errors import DecodeError

__all__ = ["load_audio"]


def _load_with_pydub(path: Path | str) -> tuple[np.ndarray, int]:
    """Fallback loader using pydub/ffmpeg for formats unsupported by soundfile.

    Args:
        path: The path to the audio or video file.

    Returns:
        A tuple containing:
        - data: float32 samples shaped ``(frames, channels)`` in [-1, 1].
        - sr: Native sample rate of the decoded audio.

    """
    seg: AudioSegment = AudioSegment.from_file(path)
    sr = seg.frame_rate
    samples = np.array(seg.get_array_of_samples())
    samples = samples.reshape((-1, seg.channels))
    full_scale = float(1 << (8 * seg.sample_width - 1))
    data = (samples.astype(np.float32) / full_scale).clip(-1.0, 1.0)
    return data, sr


def load_audio(path: Path | str, target_sr: int | None = None) -> SampleBuffer:
    """Decode a media file into an immutable multi-channel buffer.

    Args:
        path: The path to the audio or video file.
        target_sr: Resample every channel to this rate when given; the native
            rate is kept otherwise.

    Returns:
        SampleBuffer: Decoded float32 audio.

    Raises:
        DecodeError: If neither backend can decode the file as audio.

    """
    data: np.ndarray | None = None
    sr: int | None = None

    try:
        data, sr = sf.read(str(path), dtype="float32", always_2d=True)
    except (RuntimeError, sf.LibsndfileError):
        data = None

    if data is None:
        try:
            data, sr = _load_with_pydub(path)
        except (CouldntDecodeError, OSError, IndexError, ValueError) as exc:
            raise DecodeError(f"Could not decode {Path(path).name} as audio: {exc}") from exc

    if data.size == 0:
        raise DecodeError(f"{Path(path).name} contains no audio samples")

    buffer = SampleBuffer.from_array(data, int(sr))
    if target_sr is not None and target_sr != buffer.sample_rate:
        native = buffer.sample_rate
        buffer = SampleBuffer(
            sample_rate=target_sr,
            channels=tuple(
                librosa.resample(np.asarray(ch), orig_sr=native, target_sr=target_sr)
                for ch in buffer.channels
            ),
        )
    return buffer
