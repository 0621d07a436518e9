# aec.py
"""Blind acoustic echo cancellation using an NLMS adaptive filter."""
import logging
import time
from dataclasses import dataclass, field

import numpy as np

logger = logging.getLogger(__name__)

FILTER_LENGTH = 1024
STEP_SIZE = 0.8
OVERLAP_FACTOR = 4
CHUNK_SIZE = 128
STABILITY_FACTOR = 1e-8
CONVERGENCE_THRESHOLD = 5e-4


@dataclass
class AdaptiveFilterState:
    """Weights and tapped delay line owned by a single cancellation call."""

    weights: np.ndarray
    buffer: np.ndarray  # most recent sample first
    converged: bool = False
    convergence_ms: float = 0.0
    started_at: float = field(default_factory=time.perf_counter)

    @classmethod
    def zeros(cls, filter_length: int) -> "AdaptiveFilterState":
        if filter_length < 1:
            raise ValueError(f"filter_length must be >= 1, got {filter_length}")
        return cls(
            weights=np.zeros(filter_length, dtype=np.float64),
            buffer=np.zeros(filter_length, dtype=np.float64),
        )

    @property
    def filter_length(self) -> int:
        return len(self.weights)

    def elapsed_ms(self) -> float:
        return (time.perf_counter() - self.started_at) * 1000.0


def nlms_echo_cancel(
    signal: np.ndarray,
    filter_len: int = FILTER_LENGTH,
    step_size: float = STEP_SIZE,
    overlap_factor: int = OVERLAP_FACTOR,
    chunk_size: int = CHUNK_SIZE,
) -> tuple[np.ndarray, AdaptiveFilterState]:
    """Cancel the predictable (echo) component of `signal`.

    The filter has no reference signal. It learns a linear predictor of each
    sample from the preceding `filter_len` samples of its own input, and the
    prediction error is the output. Delayed copies of earlier material are
    predictable, so they are what gets subtracted.

    Args:
        signal: Mono float signal.
        filter_len: Number of taps. Bounds the longest echo the predictor can
            reach; 1024 taps is ~23ms at 44.1kHz.
        step_size: NLMS step size, normalized by the tap-vector energy.
        overlap_factor: Chunk overlap divisor. The outer loop hops
            `chunk_size - chunk_size // overlap_factor` samples per chunk.
        chunk_size: Samples per outer chunk.

    Returns:
        (output, state): float32 output of the same length as `signal`, and
        the final filter state, including the convergence time in ms.
    """
    state = AdaptiveFilterState.zeros(filter_len)
    if chunk_size < 1 or overlap_factor < 1:
        raise ValueError(
            f"chunk_size and overlap_factor must be >= 1, got {chunk_size} and {overlap_factor}"
        )
    overlap_size = chunk_size // overlap_factor
    hop = chunk_size - overlap_size
    if hop <= 0:
        raise ValueError(
            f"chunk_size={chunk_size} with overlap_factor={overlap_factor} never advances"
        )

    x_all = np.asarray(signal, dtype=np.float64)
    n = len(x_all)
    output = np.zeros(n, dtype=np.float32)
    w = state.weights
    buf = state.buffer

    # Chunk boundaries only group samples; every sample goes through the
    # recursion exactly once and nothing is reset between chunks.
    for start in range(0, n, hop):
        end = min(start + hop, n)
        for i in range(start, end):
            x = x_all[i]
            buf[1:] = buf[:-1]
            buf[0] = x

            error = x - float(w @ buf)
            output[i] = error

            power = float(buf @ buf)
            w += (step_size / (power + STABILITY_FACTOR)) * error * buf

            if not state.converged and abs(error) < CONVERGENCE_THRESHOLD:
                state.converged = True
                state.convergence_ms = state.elapsed_ms()

    if not state.converged:
        state.convergence_ms = state.elapsed_ms()

    logger.debug(
        "NLMS processed %d samples (taps=%d, converged=%s, %.2fms)",
        n, filter_len, state.converged, state.convergence_ms,
    )
    return output, state
