# echo.py
"""Echo synthesis: adds a scaled, delayed copy of a signal onto itself."""
import math

import numpy as np

SAMPLE_RATE = 44100
ECHO_INTENSITY = 0.5


def delay_to_samples(delay_ms: float, sample_rate: int = SAMPLE_RATE) -> int:
    """Convert a delay in milliseconds to a whole number of samples (floored)."""
    return math.floor(delay_ms * sample_rate / 1000)


def add_echo(
    signal: np.ndarray,
    delay_ms: float,
    intensity: float = ECHO_INTENSITY,
    sample_rate: int = SAMPLE_RATE,
) -> np.ndarray:
    """Return `signal` plus a copy delayed by `delay_ms` and scaled by `intensity`.

    No clipping is applied; the output may leave [-1, 1].
    """
    src = np.asarray(signal, dtype=np.float32)
    output = src.copy()
    delay = delay_to_samples(delay_ms, sample_rate)
    if 0 <= delay < len(src):
        output[delay:] += src[: len(src) - delay] * np.float32(intensity)
    return output
