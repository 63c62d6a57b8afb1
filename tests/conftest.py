"""Shared fixtures for runner tests."""
import datetime
import threading
import time

import pytest
from loguru import logger

from base_service import BaseService


class RecordingService(BaseService):
    """Service that records hook calls in order."""

    def __init__(self, logger=None):
        super().__init__(logger=logger)
        self.calls = []
        self._lock = threading.Lock()

    def _record(self, name):
        with self._lock:
            self.calls.append(name)

    def count(self, name):
        with self._lock:
            return self.calls.count(name)

    def on_start(self):
        self._record("on_start")

    def execute(self):
        self._record("execute")

    def on_stop(self):
        self._record("on_stop")


class FixedClock:
    """Callable clock frozen at a given time of day; counts how often it is read."""

    def __init__(self, hour, minute, second=0):
        self.now = datetime.datetime(2024, 1, 15, hour, minute, second)
        self.reads = 0

    def __call__(self):
        self.reads += 1
        return self.now


def wait_for(predicate, timeout=5.0, interval=0.005):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()


@pytest.fixture
def log_messages():
    """Capture loguru records as "LEVEL message" strings."""
    messages = []
    handler_id = logger.add(lambda m: messages.append(f"{m.record['level'].name} {m.record['message']}"), level="DEBUG")
    yield messages
    logger.remove(handler_id)


@pytest.fixture
def service():
    return RecordingService()
