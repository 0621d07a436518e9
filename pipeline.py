# pipeline.py
"""Processing pipeline: echo synthesis, cancellation and the request/response worker."""
import logging
import queue
import threading
import time
from concurrent.futures import Future
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

import numpy as np

from aec import FILTER_LENGTH, OVERLAP_FACTOR, STEP_SIZE, nlms_echo_cancel
from denoise import KALMAN_GAIN, kalman_denoise
from echo import ECHO_INTENSITY, SAMPLE_RATE, add_echo
from emphasis import de_emphasis, pre_emphasis
from metrics import Metrics, erle, rea, snr

logger = logging.getLogger(__name__)

MIN_ECHO_DELAY_MS = 10.0
MAX_ECHO_DELAY_MS = 500.0
DEFAULT_ECHO_DELAY_MS = 100.0


class Operation(Enum):
    ADD_ECHO = "add_echo"
    REMOVE_ECHO = "remove_echo"
    PROCESS_NOISE_AND_ECHO = "process_noise_and_echo"


def validate_echo_delay(delay_ms) -> float:
    """Return `delay_ms` as a float, or raise ValueError if outside 10-500ms."""
    try:
        value = float(delay_ms)
    except (TypeError, ValueError):
        raise ValueError(f"Echo delay must be a number, got {delay_ms!r}") from None
    if not MIN_ECHO_DELAY_MS <= value <= MAX_ECHO_DELAY_MS:
        raise ValueError(
            f"Echo delay must be between {MIN_ECHO_DELAY_MS:g} and "
            f"{MAX_ECHO_DELAY_MS:g} ms, got {value:g}"
        )
    return value


@dataclass(frozen=True)
class FilterParameters:
    """Processing parameters. Only the echo delay and sample rate are user-facing."""

    echo_delay_ms: float = DEFAULT_ECHO_DELAY_MS
    echo_intensity: float = ECHO_INTENSITY
    kalman_gain: float = KALMAN_GAIN
    nlms_step_size: float = STEP_SIZE
    filter_length: int = FILTER_LENGTH
    overlap_factor: int = OVERLAP_FACTOR
    sample_rate: int = SAMPLE_RATE

    def __post_init__(self):
        validate_echo_delay(self.echo_delay_ms)
        if self.sample_rate <= 0:
            raise ValueError(f"Sample rate must be positive, got {self.sample_rate}")
        if self.filter_length < 1:
            raise ValueError(f"Filter length must be >= 1, got {self.filter_length}")
        if self.overlap_factor < 1:
            raise ValueError(f"Overlap factor must be >= 1, got {self.overlap_factor}")


@dataclass
class ProcessingRequest:
    op: Operation
    signal: np.ndarray
    params: FilterParameters = field(default_factory=FilterParameters)


@dataclass
class ProcessingResponse:
    signal: np.ndarray
    metrics: Metrics


def _as_signal(signal) -> np.ndarray:
    return np.asarray(signal, dtype=np.float32).reshape(-1)


def run_add_echo(signal, params: FilterParameters) -> ProcessingResponse:
    """Synthesize an echo. Only `latency` is measured."""
    start = time.perf_counter()
    out = add_echo(
        _as_signal(signal),
        params.echo_delay_ms,
        intensity=params.echo_intensity,
        sample_rate=params.sample_rate,
    )
    latency = (time.perf_counter() - start) * 1000.0
    return ProcessingResponse(signal=out, metrics=Metrics(latency=latency))


def _cancel(signal: np.ndarray, params: FilterParameters, denoise: bool) -> ProcessingResponse:
    start = time.perf_counter()
    stage = pre_emphasis(signal)
    if denoise:
        stage = kalman_denoise(stage, measurement_noise=params.kalman_gain)
    stage, state = nlms_echo_cancel(
        stage,
        filter_len=params.filter_length,
        step_size=params.nlms_step_size,
        overlap_factor=params.overlap_factor,
    )
    out = de_emphasis(stage)

    metrics = Metrics(
        erle=erle(signal, out),
        rea=rea(signal, out),
        convergence=state.convergence_ms,
    )
    if denoise:
        metrics.snr = snr(signal)
    metrics.latency = (time.perf_counter() - start) * 1000.0
    return ProcessingResponse(signal=out, metrics=metrics)


def run_remove_echo(signal, params: FilterParameters) -> ProcessingResponse:
    """Pre-emphasis -> NLMS -> de-emphasis."""
    return _cancel(_as_signal(signal), params, denoise=False)


def run_noise_and_echo(signal, params: FilterParameters) -> ProcessingResponse:
    """Pre-emphasis -> Kalman -> NLMS -> de-emphasis."""
    return _cancel(_as_signal(signal), params, denoise=True)


_HANDLERS = {
    Operation.ADD_ECHO: run_add_echo,
    Operation.REMOVE_ECHO: run_remove_echo,
    Operation.PROCESS_NOISE_AND_ECHO: run_noise_and_echo,
}


def handle_request(request: ProcessingRequest) -> ProcessingResponse:
    """Run one request synchronously on the calling thread."""
    op = Operation(request.op)
    response = _HANDLERS[op](request.signal, request.params)
    logger.debug(
        "%s: %d samples in %.2fms", op.value, len(response.signal), response.metrics.latency
    )
    return response


class ProcessingWorker:
    """Runs processing requests on a background thread.

    Usage:
        worker = ProcessingWorker()
        worker.start()
        future = worker.submit(ProcessingRequest(Operation.REMOVE_ECHO, samples))
        response = future.result()
        worker.stop()

    Requests are handled one at a time, in submission order. Each request
    builds its own filter state, so separate workers never share anything.
    """

    def __init__(self):
        self._queue: queue.Queue[Optional[tuple[ProcessingRequest, Future]]] = queue.Queue()
        self._thread: Optional[threading.Thread] = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self):
        if self.is_running:
            return
        self._thread = threading.Thread(target=self._worker_loop, daemon=True)
        self._thread.start()

    def submit(self, request: ProcessingRequest) -> Future:
        if not self.is_running:
            raise RuntimeError("ProcessingWorker is not running")
        future: Future = Future()
        self._queue.put((request, future))
        return future

    def stop(self, timeout: float = 60):
        """Finish queued requests, then stop the thread."""
        if self._thread is None:
            return
        self._queue.put(None)
        self._thread.join(timeout=timeout)
        self._thread = None

    def _worker_loop(self):
        while True:
            item = self._queue.get()
            if item is None:  # Sentinel
                break

            request, future = item
            if not future.set_running_or_notify_cancel():
                continue
            try:
                future.set_result(handle_request(request))
            except Exception as e:
                logger.exception("Processing request failed")
                future.set_exception(e)
