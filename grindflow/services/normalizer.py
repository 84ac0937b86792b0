"""Service for reducing heterogeneous date and clock inputs to comparable values.

Days are compared as canonical ``YYYY-MM-DD`` strings in *local* wall-clock
terms, never UTC, so a task created for "today" near midnight is not checked
against yesterday's or tomorrow's schedule.
"""

from __future__ import annotations

import logging
import re
from datetime import date, datetime, tzinfo

from dateutil import parser as date_parser

from grindflow.domain.errors import InvalidDateError, MalformedTimeError
from grindflow.domain.models import DateInput

logger = logging.getLogger(__name__)

CANONICAL_DAY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_CLOCK_RE = re.compile(r"^(\d{1,2}):(\d{2})$")


def is_canonical_day(value: object) -> bool:
    return isinstance(value, str) and CANONICAL_DAY_RE.fullmatch(value) is not None


def format_day(day: date) -> str:
    return f"{day.year:04d}-{day.month:02d}-{day.day:02d}"


def to_local(value: datetime, tz: tzinfo | None = None) -> datetime:
    """Move an aware instant into *tz* (the process zone when ``None``).

    Naive datetimes are taken to be local wall-clock time already.
    """
    if value.tzinfo is None:
        return value
    return value.astimezone(tz)


# Two defaults differing in year, month and day: a string that leaves any of
# them out parses differently against each and is rejected, so the wall clock
# never fills in a missing part of the date.
_FILL_DEFAULTS = (datetime(2000, 1, 1), datetime(2004, 2, 2))


def _parse_free_form(text: str) -> datetime:
    first, second = (date_parser.parse(text, default=d) for d in _FILL_DEFAULTS)
    if first.date() != second.date():
        raise ValueError(f"incomplete date: {text!r}")
    return first


def _parse_date_string(value: str) -> datetime:
    text = value.strip()
    if text:
        for parse in (date_parser.isoparse, _parse_free_form):
            try:
                return parse(text)
            except (ValueError, OverflowError):
                continue
    raise InvalidDateError(value)


def normalize_day(value: DateInput, tz: tzinfo | None = None) -> str:
    """Return the canonical local calendar day for *value*.

    Canonical ``YYYY-MM-DD`` strings pass through unchanged. Raises
    ``InvalidDateError`` when *value* cannot be read as a date.
    """
    # datetime before date: every datetime is also a date.
    if isinstance(value, datetime):
        return format_day(to_local(value, tz))
    if isinstance(value, date):
        return format_day(value)
    if isinstance(value, str):
        if is_canonical_day(value):
            return value
        return format_day(to_local(_parse_date_string(value), tz))
    raise InvalidDateError(value)


def try_normalize_day(
    value: DateInput, tz: tzinfo | None = None, item_id: str | None = None
) -> str | None:
    """Like :func:`normalize_day`, but log and return ``None`` on bad input."""
    try:
        return normalize_day(value, tz)
    except InvalidDateError as exc:
        logger.warning("Excluding item %s: %s", item_id, exc)
        return None


def time_to_minutes(hhmm: str) -> int:
    """Convert a 24-hour ``HH:mm`` string into minutes since midnight."""
    m = _CLOCK_RE.fullmatch(hhmm.strip()) if isinstance(hhmm, str) else None
    if m is None:
        raise MalformedTimeError(hhmm)
    hours, minutes = int(m.group(1)), int(m.group(2))
    if hours > 23 or minutes > 59:
        raise MalformedTimeError(hhmm)
    return hours * 60 + minutes


def minutes_of_day(value: datetime) -> int:
    return value.hour * 60 + value.minute
