"""Injectable source of the current local date/time."""

from __future__ import annotations

from datetime import datetime, tzinfo
from typing import Callable

Clock = Callable[[], datetime]


def local_now(tz: tzinfo | None = None) -> datetime:
    """Return the current wall-clock time in *tz*, or the process zone."""
    if tz is None:
        return datetime.now().astimezone()
    return datetime.now(tz)


def fixed_clock(instant: datetime) -> Clock:
    """Return a clock that always reports *instant*."""
    return lambda: instant
