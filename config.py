# config.py
import json
import logging
import os
import threading

from echo import SAMPLE_RATE
from pipeline import DEFAULT_ECHO_DELAY_MS, validate_echo_delay

logger = logging.getLogger(__name__)

CONFIG_DIR = os.path.expanduser("~/.echolab")
CONFIG_PATH = os.path.join(CONFIG_DIR, "config.json")


class SettingsManager:
    """Loads/saves ~/.echolab/config.json and notifies on changes."""

    def __init__(self):
        self._lock = threading.Lock()
        self._data: dict = {}
        self._delay_callbacks: list = []
        os.makedirs(CONFIG_DIR, exist_ok=True)
        self._load()

    def _load(self):
        if os.path.exists(CONFIG_PATH):
            try:
                with open(CONFIG_PATH, "r") as f:
                    self._data = json.load(f)
            except (json.JSONDecodeError, OSError) as e:
                logger.warning("Ignoring unreadable config %s: %s", CONFIG_PATH, e)
                self._data = {}
        else:
            self._data = {}

    def _save(self):
        with open(CONFIG_PATH, "w") as f:
            json.dump(self._data, f, indent=2)

    @property
    def echo_delay_ms(self) -> float:
        """Stored echo delay, or the default if missing or out of range."""
        try:
            return validate_echo_delay(self._data.get("echo_delay_ms", DEFAULT_ECHO_DELAY_MS))
        except ValueError:
            return DEFAULT_ECHO_DELAY_MS

    @property
    def sample_rate(self) -> int:
        value = self._data.get("sample_rate", SAMPLE_RATE)
        if isinstance(value, int) and value > 0:
            return value
        return SAMPLE_RATE

    def set_echo_delay(self, delay_ms) -> bool:
        """Validate, save, and notify. Returns True on success."""
        try:
            value = validate_echo_delay(delay_ms)
        except ValueError:
            return False

        with self._lock:
            old = self.echo_delay_ms
            self._data["echo_delay_ms"] = value
            self._save()

        if old != value:
            for cb in self._delay_callbacks:
                try:
                    cb(value)
                except Exception:
                    logger.exception("Echo delay callback failed")
        return True

    def get(self, key: str, default=None):
        """Get an arbitrary config value."""
        return self._data.get(key, default)

    def set(self, key: str, value):
        """Set an arbitrary config value and persist."""
        with self._lock:
            self._data[key] = value
            self._save()

    def on_echo_delay_change(self, callback):
        """Register a callback: fn(new_delay_ms)."""
        self._delay_callbacks.append(callback)
