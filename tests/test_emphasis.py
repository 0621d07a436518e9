# tests/test_emphasis.py
import numpy as np
import pytest

from emphasis import ALPHA, de_emphasis, pre_emphasis


def test_round_trip_restores_signal():
    rng = np.random.default_rng(1)
    signal = rng.uniform(-1.0, 1.0, 5000).astype(np.float32)
    restored = de_emphasis(pre_emphasis(signal))
    np.testing.assert_allclose(restored, signal, atol=1e-4)


def test_pre_emphasis_difference_equation():
    x = np.array([1.0, 0.5, -0.25, 0.0], dtype=np.float32)
    y = pre_emphasis(x)
    expected = [1.0, 0.5 - ALPHA * 1.0, -0.25 - ALPHA * 0.5, 0.0 + ALPHA * 0.25]
    np.testing.assert_allclose(y, expected, rtol=1e-6)


def test_de_emphasis_impulse_response_decays_geometrically():
    impulse = np.zeros(10, dtype=np.float32)
    impulse[0] = 1.0
    y = de_emphasis(impulse)
    np.testing.assert_allclose(y, ALPHA ** np.arange(10), rtol=1e-6)


def test_first_sample_preserved():
    x = np.array([0.7, 0.1], dtype=np.float32)
    assert pre_emphasis(x)[0] == pytest.approx(0.7)
    assert de_emphasis(x)[0] == pytest.approx(0.7)


def test_outputs_are_float32_and_new_arrays():
    x = np.ones(8, dtype=np.float32)
    for y in (pre_emphasis(x), de_emphasis(x)):
        assert y.dtype == np.float32
        assert y is not x
    assert np.all(x == 1.0)


def test_empty_signal():
    assert len(pre_emphasis(np.zeros(0))) == 0
    assert len(de_emphasis(np.zeros(0))) == 0
