"""Errors raised by the scheduling core."""

from __future__ import annotations


class SchedulingError(ValueError):
    """Base class for recoverable, per-record scheduling errors."""


class InvalidDateError(SchedulingError):
    """A date input could not be parsed into a calendar day."""

    def __init__(self, value: object) -> None:
        self.value = value
        super().__init__(f"Invalid date: {value!r}")


class MalformedTimeError(SchedulingError):
    """A clock time is not a valid 24-hour ``HH:mm`` string."""

    def __init__(self, value: object) -> None:
        self.value = value
        super().__init__(f"Malformed time (expected HH:mm): {value!r}")
