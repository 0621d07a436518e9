import threading
from enum import Enum


class AppState(Enum):
    IDLE = "idle"
    PROCESSING = "processing"
    ERROR = "error"


class AppStateManager:
    """Tracks whether a processing job is running, with change callbacks for the UI."""

    def __init__(self):
        self._state = AppState.IDLE
        self._state_callbacks: list = []
        self._active_jobs = 0
        self._lock = threading.Lock()

    @property
    def state(self) -> AppState:
        return self._state

    def set_state(self, new_state: AppState):
        old = self._state
        if old == new_state:
            return
        self._state = new_state
        for cb in self._state_callbacks:
            try:
                cb(old, new_state)
            except Exception:
                pass

    def on_state_change(self, callback):
        self._state_callbacks.append(callback)

    def job_started(self):
        with self._lock:
            self._active_jobs += 1
        self.set_state(AppState.PROCESSING)

    def job_finished(self, failed: bool = False):
        with self._lock:
            self._active_jobs = max(0, self._active_jobs - 1)
            remaining = self._active_jobs
        if failed:
            self.set_state(AppState.ERROR)
        elif remaining == 0:
            self.set_state(AppState.IDLE)
