"""Daily execution window: parsing and the "may we run now?" predicate.

A window is written as ``HH:MM-HH:MM`` in configuration. When the start is
later than the end the window spans midnight, e.g. ``22:00-06:00``.
"""
from __future__ import annotations

import datetime
import re
from dataclasses import dataclass
from typing import Optional

WINDOW_PATTERN = "HH:MM-HH:MM"

_WINDOW_RE = re.compile(
    r"(?P<start_h>[01]\d|2[0-3]):(?P<start_m>[0-5]\d)-(?P<end_h>[01]\d|2[0-3]):(?P<end_m>[0-5]\d)"
)


class ExecutionWindowError(ValueError):
    """Raised when an execution window string is malformed."""

    def __init__(self, value):
        self.value = value
        super().__init__(
            f"Invalid execution window {value!r}: expected {WINDOW_PATTERN} "
            f"(24-hour, 00:00-23:59)"
        )


@dataclass(frozen=True)
class ExecutionWindow:
    start: datetime.time
    end: datetime.time

    @property
    def overnight(self) -> bool:
        return self.start > self.end

    def __str__(self) -> str:
        return f"{self.start:%H:%M}-{self.end:%H:%M}"


def parse_execution_window(value: Optional[str]) -> Optional[ExecutionWindow]:
    """Parse a configured window.

    Args:
        value: ``None`` for "no window", otherwise a ``HH:MM-HH:MM`` string

    Returns:
        Optional[ExecutionWindow]: the window, or None when absent

    Raises:
        ExecutionWindowError: for anything that is not exactly ``HH:MM-HH:MM``
    """
    if value is None:
        return None
    if not isinstance(value, str):
        raise ExecutionWindowError(value)

    match = _WINDOW_RE.fullmatch(value)
    if match is None:
        raise ExecutionWindowError(value)

    start = datetime.time(hour=int(match["start_h"]), minute=int(match["start_m"]))
    end = datetime.time(hour=int(match["end_h"]), minute=int(match["end_m"]))
    return ExecutionWindow(start=start, end=end)


def is_within_window(now: datetime.time, window: Optional[ExecutionWindow]) -> bool:
    """Return True if *now* falls inside *window* (both bounds inclusive).

    ``now`` is compared at minute resolution, so ``09:00-17:00`` still
    matches at 17:00:45.
    """
    if window is None:
        return True

    now = now.replace(second=0, microsecond=0, tzinfo=None)
    if window.start <= window.end:
        return window.start <= now <= window.end
    # wraps past midnight
    return now >= window.start or now <= window.end
