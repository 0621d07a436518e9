# tests/test_echo.py
import numpy as np

from echo import add_echo, delay_to_samples


def test_delay_conversion_at_default_rate():
    assert delay_to_samples(100) == 4410
    assert delay_to_samples(10) == 441


def test_delay_conversion_uses_sample_rate():
    assert delay_to_samples(100, sample_rate=48000) == 4800
    assert delay_to_samples(100, sample_rate=16000) == 1600


def test_delay_conversion_floors():
    # 10.01ms * 44.1 = 441.441
    assert delay_to_samples(10.01) == 441


def test_echo_is_delayed_scaled_copy():
    rng = np.random.default_rng(0)
    signal = rng.uniform(-0.5, 0.5, 10000).astype(np.float32)
    out = add_echo(signal, 100)

    np.testing.assert_array_equal(out[:4410], signal[:4410])
    expected = signal[4410:] + signal[:-4410] * np.float32(0.5)
    np.testing.assert_array_equal(out[4410:], expected)


def test_custom_intensity():
    signal = np.ones(1000, dtype=np.float32)
    out = add_echo(signal, 10, intensity=0.25)
    assert out[440] == 1.0
    assert out[441] == 1.25


def test_no_clipping():
    signal = np.ones(1000, dtype=np.float32)
    out = add_echo(signal, 10)
    assert out.max() == 1.5


def test_delay_longer_than_signal_returns_copy():
    signal = np.random.randn(100).astype(np.float32)
    out = add_echo(signal, 100)
    np.testing.assert_array_equal(out, signal)
    assert out is not signal


def test_input_not_modified():
    signal = np.ones(5000, dtype=np.float32)
    add_echo(signal, 10)
    assert np.all(signal == 1.0)


def test_empty_signal():
    out = add_echo(np.zeros(0, dtype=np.float32), 100)
    assert len(out) == 0
