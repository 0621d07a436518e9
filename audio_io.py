# audio_io.py
"""WAV persistence boundary. Clipping to [-1, 1] happens here and nowhere else."""
import wave

import numpy as np
from scipy.io import wavfile


def get_wav_duration(path: str) -> float:
    """Return duration of a WAV file in seconds."""
    with wave.open(path, "r") as wf:
        return wf.getnframes() / wf.getframerate()


def read_wav(path: str) -> tuple[np.ndarray, int]:
    """Read a WAV file as mono float32 in [-1, 1].

    Integer PCM is scaled by its full-scale value. Multi-channel files are
    reduced to their first channel.
    """
    sample_rate, data = wavfile.read(path)
    if data.ndim > 1:
        data = data[:, 0]

    if data.dtype == np.uint8:
        audio = (data.astype(np.float32) - 128.0) / 128.0
    elif np.issubdtype(data.dtype, np.integer):
        audio = data.astype(np.float32) / float(np.iinfo(data.dtype).max + 1)
    else:
        audio = data.astype(np.float32)
    return audio, int(sample_rate)


def write_wav(path: str, signal: np.ndarray, sample_rate: int):
    """Write a float signal as 16-bit PCM, clipping to [-1, 1]."""
    audio_int16 = np.int16(np.clip(np.asarray(signal, dtype=np.float32), -1.0, 1.0) * 32767)
    wavfile.write(path, sample_rate, audio_int16)
