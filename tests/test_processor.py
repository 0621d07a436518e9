# tests/test_processor.py
import threading

import numpy as np
import pytest

from metrics import Metrics
from pipeline import Operation, ProcessingRequest
from processor import EchoProcessor


def test_initial_metrics_are_zero():
    assert EchoProcessor().get_metrics() == Metrics.zeroed()


def test_add_echo_leaves_other_metrics_untouched():
    """add_echo only refreshes latency; snr keeps whatever it was."""
    proc = EchoProcessor()
    proc.add_echo(np.random.randn(2000).astype(np.float32))
    m = proc.get_metrics()
    assert m.snr == 0.0
    assert m.erle == 0.0
    assert m.latency > 0.0


def test_stale_snr_carries_over_from_previous_call():
    proc = EchoProcessor()
    proc.process_noise_and_echo(np.random.randn(2000).astype(np.float32) * 0.2)
    snr_before = proc.get_metrics().snr
    assert snr_before != 0.0

    proc.add_echo(np.random.randn(2000).astype(np.float32))
    assert proc.get_metrics().snr == snr_before


def test_process_returns_fresh_per_call_metrics():
    proc = EchoProcessor()
    proc.process_noise_and_echo(np.random.randn(2000).astype(np.float32) * 0.2)
    resp = proc.process(
        ProcessingRequest(op=Operation.ADD_ECHO, signal=np.ones(100, dtype=np.float32))
    )
    assert resp.metrics.snr is None
    assert resp.metrics.latency is not None


def test_remove_echo_updates_erle_and_convergence(tone):
    proc = EchoProcessor()
    echoed = proc.add_echo(tone(duration=0.2))
    proc.remove_echo(echoed)
    m = proc.get_metrics()
    assert m.erle > 0
    assert m.rea == pytest.approx(2 * m.erle)
    assert m.convergence > 0


def test_set_parameters_changes_delay():
    proc = EchoProcessor()
    proc.set_parameters(echo_delay_ms=10)
    signal = np.zeros(1000, dtype=np.float32)
    signal[0] = 1.0
    out = proc.add_echo(signal)
    assert out[441] == 0.5


def test_set_parameters_sample_rate():
    proc = EchoProcessor()
    proc.set_parameters(echo_delay_ms=100, sample_rate=16000)
    signal = np.zeros(2000, dtype=np.float32)
    signal[0] = 1.0
    assert proc.add_echo(signal)[1600] == 0.5


def test_set_parameters_rejects_out_of_range():
    proc = EchoProcessor()
    proc.set_parameters(echo_delay_ms=200)
    with pytest.raises(ValueError):
        proc.set_parameters(echo_delay_ms=1000)
    assert proc.params.echo_delay_ms == 200


def test_set_parameters_noop_without_values():
    proc = EchoProcessor()
    before = proc.params
    proc.set_parameters()
    assert proc.params is before


def test_get_metrics_returns_copy():
    proc = EchoProcessor()
    m = proc.get_metrics()
    m.erle = 99.0
    assert proc.get_metrics().erle == 0.0


def test_silence_through_every_operation():
    proc = EchoProcessor()
    silence = np.zeros(1500, dtype=np.float32)
    for run in (proc.add_echo, proc.remove_echo, proc.process_noise_and_echo):
        np.testing.assert_array_equal(run(silence), silence)
    m = proc.get_metrics()
    assert m.erle == 0.0
    assert m.rea == 0.0


def test_concurrent_parameter_updates_are_not_lost():
    """Delay and sample-rate updates from different threads both stick."""
    for _ in range(20):
        proc = EchoProcessor()
        barrier = threading.Barrier(2)

        def set_delay():
            barrier.wait()
            proc.set_parameters(echo_delay_ms=250)

        def set_rate():
            barrier.wait()
            proc.set_parameters(sample_rate=16000)

        threads = [threading.Thread(target=set_delay), threading.Thread(target=set_rate)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=10)
        assert proc.params.echo_delay_ms == 250
        assert proc.params.sample_rate == 16000
