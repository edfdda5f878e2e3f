"""Audio data model, WAV codec, WSOLA stretching and transform composition."""

from .buffer import SampleBuffer
from .stretch import WsolaParams, stretch
from .transforms import (
    SpeedTransform,
    Transform,
    TrimTransform,
    apply_transforms,
    map_time,
)
from .wav import decode_wav, encode_wav

__all__ = [
    "SampleBuffer",
    "WsolaParams",
    "stretch",
    "SpeedTransform",
    "TrimTransform",
    "Transform",
    "apply_transforms",
    "map_time",
    "encode_wav",
    "decode_wav",
]
