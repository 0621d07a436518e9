# tests/test_denoise.py
import numpy as np
import pytest

from denoise import kalman_denoise


def test_first_output_uses_initial_gain():
    p = 0.1 + 1e-5
    gain = p / (p + 0.05)
    out = kalman_denoise(np.array([0.9], dtype=np.float32))
    assert out[0] == pytest.approx(gain * 0.9, rel=1e-6)


def test_constant_input_converges():
    out = kalman_denoise(np.full(5000, 0.4, dtype=np.float32))
    assert out[-1] == pytest.approx(0.4, abs=1e-3)


def test_smooths_white_noise():
    rng = np.random.default_rng(3)
    noise = (rng.standard_normal(20000) * 0.1).astype(np.float32)
    out = kalman_denoise(noise)
    assert np.var(out[2000:]) < np.var(noise) * 0.1


def test_larger_measurement_noise_smooths_harder():
    rng = np.random.default_rng(4)
    noise = (rng.standard_normal(10000) * 0.1).astype(np.float32)
    light = kalman_denoise(noise, measurement_noise=0.01)
    heavy = kalman_denoise(noise, measurement_noise=1.0)
    assert np.var(heavy[2000:]) < np.var(light[2000:])


def test_silence_stays_silent():
    out = kalman_denoise(np.zeros(1000, dtype=np.float32))
    np.testing.assert_array_equal(out, np.zeros(1000, dtype=np.float32))


def test_empty_signal():
    out = kalman_denoise(np.zeros(0, dtype=np.float32))
    assert len(out) == 0
    assert out.dtype == np.float32
