# emphasis.py
"""First-order pre-emphasis / de-emphasis filter pair."""
import numpy as np
from scipy.signal import lfilter

ALPHA = 0.95


def pre_emphasis(signal: np.ndarray, alpha: float = ALPHA) -> np.ndarray:
    """y[n] = x[n] - alpha * x[n-1], with y[0] = x[0]."""
    x = np.asarray(signal, dtype=np.float64)
    if len(x) == 0:
        return np.zeros(0, dtype=np.float32)
    return lfilter([1.0, -alpha], [1.0], x).astype(np.float32)


def de_emphasis(signal: np.ndarray, alpha: float = ALPHA) -> np.ndarray:
    """y[n] = x[n] + alpha * y[n-1], with y[0] = x[0]. Inverse of pre_emphasis."""
    x = np.asarray(signal, dtype=np.float64)
    if len(x) == 0:
        return np.zeros(0, dtype=np.float32)
    return lfilter([1.0], [1.0, -alpha], x).astype(np.float32)
