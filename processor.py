# processor.py
import dataclasses
import logging
import threading

import numpy as np

from metrics import Metrics
from pipeline import (
    FilterParameters,
    Operation,
    ProcessingRequest,
    ProcessingResponse,
    handle_request,
)

logger = logging.getLogger(__name__)


class EchoProcessor:
    """Echo/noise processing front end with a running metrics record.

    Every operation starts from fresh filter state. The only thing kept
    between calls is the metrics record, where each operation overwrites
    just the fields it measures (add_echo leaves snr/erle/rea untouched).
    Use `process()` for a per-call Metrics value with absent fields as None.
    """

    def __init__(self, params: FilterParameters | None = None):
        self._params = params or FilterParameters()
        self._metrics = Metrics.zeroed()
        self._lock = threading.Lock()

    @property
    def params(self) -> FilterParameters:
        return self._params

    def set_parameters(self, echo_delay_ms: float | None = None, sample_rate: int | None = None):
        """Update the echo delay (10-500ms) and/or sample rate for later calls."""
        changes = {}
        if echo_delay_ms is not None:
            changes["echo_delay_ms"] = echo_delay_ms
        if sample_rate is not None:
            changes["sample_rate"] = sample_rate
        if not changes:
            return
        with self._lock:
            try:
                self._params = dataclasses.replace(self._params, **changes)
            except ValueError as e:
                logger.warning("Rejected parameters %s: %s", changes, e)
                raise

    def get_metrics(self) -> Metrics:
        with self._lock:
            return dataclasses.replace(self._metrics)

    def process(self, request: ProcessingRequest) -> ProcessingResponse:
        response = handle_request(request)
        with self._lock:
            self._metrics = response.metrics.merged_into(self._metrics)
        return response

    def _run(self, op: Operation, signal) -> np.ndarray:
        return self.process(ProcessingRequest(op=op, signal=signal, params=self._params)).signal

    def add_echo(self, signal) -> np.ndarray:
        return self._run(Operation.ADD_ECHO, signal)

    def remove_echo(self, signal) -> np.ndarray:
        return self._run(Operation.REMOVE_ECHO, signal)

    def process_noise_and_echo(self, signal) -> np.ndarray:
        return self._run(Operation.PROCESS_NOISE_AND_ECHO, signal)
