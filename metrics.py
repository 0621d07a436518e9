# metrics.py
"""Echo/noise suppression metrics: ERLE, REA and a frame-energy SNR."""
from dataclasses import asdict, dataclass, fields
from typing import Optional

import numpy as np

ENERGY_CHUNK = 256
ENERGY_FLOOR = 1e-12

SNR_FRAME = 128
SNR_SIGNAL_THRESHOLD = 0.005
SNR_FLOOR = 1e-10


@dataclass
class Metrics:
    """Metrics from one operation. Fields the operation does not compute are None."""

    erle: Optional[float] = None  # dB
    snr: Optional[float] = None  # dB
    rea: Optional[float] = None  # dB
    latency: Optional[float] = None  # ms
    convergence: Optional[float] = None  # ms

    def to_dict(self) -> dict:
        return asdict(self)

    def merged_into(self, previous: "Metrics") -> "Metrics":
        """Return `previous` with every field this value computed overwritten."""
        values = asdict(previous)
        for f in fields(self):
            value = getattr(self, f.name)
            if value is not None:
                values[f.name] = value
        return Metrics(**values)

    @classmethod
    def zeroed(cls) -> "Metrics":
        return cls(erle=0.0, snr=0.0, rea=0.0, latency=0.0, convergence=0.0)


def _energies(original: np.ndarray, processed: np.ndarray) -> tuple[float, float]:
    """Sum of squares of both signals, accumulated chunk by chunk."""
    orig = np.asarray(original, dtype=np.float64)
    proc = np.asarray(processed, dtype=np.float64)
    n = min(len(orig), len(proc))
    sum_orig = 0.0
    sum_proc = 0.0
    for start in range(0, n, ENERGY_CHUNK):
        end = min(start + ENERGY_CHUNK, n)
        sum_orig += float(np.dot(orig[start:end], orig[start:end]))
        sum_proc += float(np.dot(proc[start:end], proc[start:end]))
    return sum_orig, sum_proc


def erle(original: np.ndarray, processed: np.ndarray) -> float:
    """Echo Return Loss Enhancement in dB (power ratio). Positive = energy removed."""
    sum_orig, sum_proc = _energies(original, processed)
    return float(10 * np.log10((sum_orig + ENERGY_FLOOR) / (sum_proc + ENERGY_FLOOR)))


def rea(original: np.ndarray, processed: np.ndarray) -> float:
    """Residual Echo Attenuation in dB, on the 20*log10 scale."""
    sum_orig, sum_proc = _energies(original, processed)
    return float(20 * np.log10((sum_orig + ENERGY_FLOOR) / (sum_proc + ENERGY_FLOOR)))


def snr(signal: np.ndarray) -> float:
    """Estimate SNR in dB by splitting 128-sample frames on an energy threshold.

    Frames whose summed squared energy exceeds 0.005 count as signal, the
    rest as noise. There is no clean reference involved.
    """
    x = np.asarray(signal, dtype=np.float64)
    n_full = len(x) // SNR_FRAME
    frame_energy = np.sum(x[: n_full * SNR_FRAME].reshape(n_full, SNR_FRAME) ** 2, axis=1)
    tail = x[n_full * SNR_FRAME:]
    if len(tail):
        frame_energy = np.append(frame_energy, np.sum(tail ** 2))

    is_signal = frame_energy > SNR_SIGNAL_THRESHOLD
    signal_power = float(np.sum(frame_energy[is_signal]))
    noise_power = float(np.sum(frame_energy[~is_signal]))
    return float(10 * np.log10((signal_power + SNR_FLOOR) / (noise_power + SNR_FLOOR)))
