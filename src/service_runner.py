"""ServiceRunner: fixed-interval loop around a :class:`base_service.UnitOfWork`.

``run`` blocks the calling thread:

  on_start() -> [execute() if inside window; sleep(interval)]* -> on_stop()

``request_stop`` may be called from another thread (typically a signal
handler). It only raises the stop flag and then waits until the loop has
finished its current cycle and ``on_stop`` has returned.
"""
from __future__ import annotations

import datetime
import enum
import threading
import time
from typing import Callable, Optional, Union

from loguru import logger as default_logger

from base_service import UnitOfWork
from execution_window import (
    WINDOW_PATTERN,
    ExecutionWindow,
    ExecutionWindowError,
    is_within_window,
    parse_execution_window,
)

STOP_POLL_INTERVAL = 0.5  # seconds


class RunnerState(enum.Enum):
    NOT_STARTED = "not_started"
    RUNNING = "running"
    STOPPING = "stopping"
    STOPPED = "stopped"


class ServiceRunner:
    """Drive one unit of work until asked to stop. Single use."""

    def __init__(
        self,
        service: UnitOfWork,
        execution_window: Union[str, ExecutionWindow, None] = None,
        clock: Optional[Callable[[], datetime.datetime]] = None,
        stop_poll_interval: float = STOP_POLL_INTERVAL,
        logger=None,
    ) -> None:
        self.service = service
        self.logger = logger or default_logger
        self.clock = clock or datetime.datetime.now
        self.stop_poll_interval = stop_poll_interval

        if isinstance(execution_window, ExecutionWindow) or execution_window is None:
            self.execution_window = execution_window
        else:
            try:
                self.execution_window = parse_execution_window(execution_window)
            except ExecutionWindowError:
                self.logger.critical(
                    f"Invalid execution window {execution_window!r} in configuration, "
                    f"expected {WINDOW_PATTERN}. Refusing to start."
                )
                raise

        self.interval_ms: Optional[int] = None
        self._state = RunnerState.NOT_STARTED
        self._state_lock = threading.Lock()
        self._stop_requested = threading.Event()
        self._stop_confirmed = threading.Event()

    # --------------------------------------------------------
    # State
    # --------------------------------------------------------
    @property
    def state(self) -> RunnerState:
        return self._state

    @property
    def stop_requested(self) -> bool:
        return self._stop_requested.is_set()

    @property
    def stop_confirmed(self) -> bool:
        return self._stop_confirmed.is_set()

    @property
    def _service_name(self) -> str:
        return getattr(self.service, "name", type(self.service).__name__)

    def should_execute(self) -> bool:
        """Evaluate the execution window against the current time of day."""
        return is_within_window(self.clock().time(), self.execution_window)

    # --------------------------------------------------------
    # Life-cycle
    # --------------------------------------------------------
    def run(self, interval_ms: int) -> None:
        """Run the service until :meth:`request_stop` is called.

        Hook exceptions are not caught and propagate to the caller.
        """
        if isinstance(interval_ms, bool) or not isinstance(interval_ms, int) or interval_ms <= 0:
            raise ValueError(f"interval_ms must be a positive integer, got {interval_ms!r}")

        with self._state_lock:
            if self._state is not RunnerState.NOT_STARTED:
                raise RuntimeError(
                    f"{self._service_name} runner is {self._state.value}; create a new runner to run again"
                )
            self.interval_ms = interval_ms

        window = self.execution_window or "always"
        self.logger.info(
            f"{self._service_name} starting, interval={interval_ms}ms, execution window={window}"
        )
        try:
            self.service.on_start()
            self._state = RunnerState.RUNNING

            while not self._stop_requested.is_set():
                if self.should_execute():
                    self.service.execute()
                else:
                    self.logger.debug(f"{self._service_name}: outside execution window {window}, skipping")
                time.sleep(interval_ms / 1000)

            self._state = RunnerState.STOPPING
            self.logger.info(f"{self._service_name} stopping")
            self.service.on_stop()
        finally:
            self._state = RunnerState.STOPPED
            self._stop_confirmed.set()
        self.logger.info(f"{self._service_name} stopped")

    def request_stop(self, timeout: Optional[float] = None) -> bool:
        """Ask the loop to stop and wait until ``on_stop`` has completed.

        Args:
            timeout: seconds to wait for confirmation, None waits forever

        Returns:
            bool: True once the stop is confirmed, False if *timeout* elapsed first
        """
        if not self._stop_requested.is_set():
            self.logger.info(f"Stop requested for {self._service_name}")
        self._stop_requested.set()

        deadline = None if timeout is None else time.monotonic() + timeout
        while not self._stop_confirmed.wait(self.stop_poll_interval):
            if deadline is not None and time.monotonic() >= deadline:
                return False
        return True
