import numpy as np
import pytest


@pytest.fixture
def tone():
    """Factory for float32 sine tones."""

    def make(freq=440.0, duration=0.2, sample_rate=44100, amplitude=0.5):
        t = np.arange(int(duration * sample_rate)) / sample_rate
        return (amplitude * np.sin(2 * np.pi * freq * t)).astype(np.float32)

    return make
