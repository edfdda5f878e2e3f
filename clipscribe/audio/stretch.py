"""WSOLA time-stretching for mono sample runs.

Waveform-similarity overlap-add changes the playback rate of a signal while
keeping its apparent pitch: the output is assembled from input windows whose
start is nudged, within a small search range, to the offset that best lines
up with what has already been written, and consecutive windows are joined
with a linear crossfade.

The logic is kept free of any codec or pipeline imports so that it can be
tested on plain numpy arrays.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view

from clipscribe.utils.constant import WSOLA_WINDOW_MS

logger = logging.getLogger(__name__)

__all__ = ["WsolaParams", "stretch", "stretched_length", "round_half_up"]


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up."""
    return math.floor(value + 0.5)


def stretched_length(num_samples: int, rate: float) -> int:
    """Length of *num_samples* samples after stretching by *rate*.

    Invalid rates (non-finite or ``<= 0``) leave the length unchanged.
    """
    if not _is_effective_rate(rate):
        return num_samples
    return round_half_up(num_samples / rate)


def _is_effective_rate(rate: float) -> bool:
    return math.isfinite(rate) and rate > 0 and rate != 1.0


@dataclass(frozen=True)
class WsolaParams:
    """Window geometry for a given sample rate.

    Attributes:
        window: Analysis window length in samples.
        hop: Output hop, half a window.
        search: Maximum offset (either direction) from the projected input
            position that is examined for each window.
    """

    window: int
    hop: int
    search: int

    @classmethod
    def for_rate(cls, sample_rate: int, window_ms: float = WSOLA_WINDOW_MS) -> WsolaParams:
        """Derive window, hop and search range from *sample_rate*."""
        window = max(int(sample_rate * window_ms / 1000.0), 2)
        return cls(window=window, hop=max(window // 2, 1), search=window // 4)


def stretch(
    samples: np.ndarray,
    rate: float,
    sample_rate: int,
    *,
    params: WsolaParams | None = None,
) -> np.ndarray:
    """Time-stretch a mono run so it plays *rate* times faster.

    Parameters:
        samples (np.ndarray): 1-D float samples.
        rate (float): Playback rate; ``2.0`` halves the duration. Values that
            are non-finite, ``<= 0`` or exactly ``1.0`` return a plain copy.
        sample_rate (int): Sample rate in Hz, used to size the windows.
        params (WsolaParams, optional): Override the window geometry.

    Returns:
        np.ndarray: float32 array of length ``round(len(samples) / rate)``.
    """
    x = np.asarray(samples, dtype=np.float32).reshape(-1)
    if not _is_effective_rate(rate):
        if not (math.isfinite(rate) and rate > 0):
            logger.debug(f"Ignoring invalid stretch rate {rate!r}; copying input")
        return x.copy()

    n_in = x.size
    out_len = stretched_length(n_in, rate)
    out = np.zeros(out_len, dtype=np.float32)
    if n_in == 0 or out_len == 0:
        return out

    p = params or WsolaParams.for_rate(sample_rate)
    window, hop, search = p.window, p.hop, p.search

    first = min(window, n_in, out_len)
    out[:first] = x[:first]
    written = first
    # Input position just past the last spliced window; the tail resumes here.
    tail_src = first

    fade_in = np.arange(hop, dtype=np.float32) / hop
    fade_out = 1.0 - fade_in

    out_pos = hop
    in_pos = round_half_up(out_pos * rate)
    while out_pos + window <= out_len and in_pos + window <= n_in:
        lo = max(0, in_pos - search)
        hi = min(n_in - window, in_pos + search)

        reference = out[out_pos : out_pos + hop].astype(np.float64)
        candidates = sliding_window_view(x[lo : hi + hop], hop)
        scores = candidates.astype(np.float64) @ reference
        # argmax returns the first maximum, i.e. the lowest winning offset.
        best = lo + int(np.argmax(scores))

        out[out_pos : out_pos + hop] = (
            out[out_pos : out_pos + hop] * fade_out + x[best : best + hop] * fade_in
        )
        out[out_pos + hop : out_pos + window] = x[best + hop : best + window]
        written = out_pos + window
        tail_src = best + window

        out_pos += hop
        in_pos = round_half_up(out_pos * rate)

    remaining = min(out_len - written, n_in - tail_src)
    if remaining > 0:
        out[written : written + remaining] = x[tail_src : tail_src + remaining]
    return out
