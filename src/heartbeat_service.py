"""HeartbeatService – sample concrete service that only writes log lines.

Useful as a smoke test for a deployment: every iteration inside the
execution window leaves an INFO line in the general log file.
"""
from __future__ import annotations

from base_service import BaseService


class HeartbeatService(BaseService):
    """Log a heartbeat on every iteration."""

    def __init__(self, logger=None) -> None:
        super().__init__(logger=logger)
        self.beats = 0

    def on_start(self) -> None:
        self.logger.info(f"Starting {self.name}...")
        self.logger.debug("This is a debug log test.")

    def execute(self) -> None:
        self.beats += 1
        self.logger.info(f"{self.name} is running... (beat {self.beats})")

    def on_stop(self) -> None:
        self.logger.info(f"Stopping {self.name} after {self.beats} beats...")
