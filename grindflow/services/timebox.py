"""Service for building the time-box grid shown in a day's detail view."""

from __future__ import annotations

from datetime import tzinfo
from typing import Iterable

from grindflow.domain.errors import MalformedTimeError
from grindflow.domain.models import DateInput, ScheduledItem, TimeBlock
from grindflow.services.calendar import items_for_day
from grindflow.services.conflicts import find_conflicting_ids
from grindflow.services.normalizer import time_to_minutes


def format_to_12_hour(time24: str) -> str:
    """``"13:05"`` -> ``"1:05 PM"``; malformed input is returned unchanged."""
    try:
        minutes = time_to_minutes(time24)
    except MalformedTimeError:
        return time24
    hours, mins = divmod(minutes, 60)
    period = "PM" if hours >= 12 else "AM"
    hours12 = hours % 12 or 12
    return f"{hours12}:{mins:02d} {period}"


def duration_minutes(start: str, end: str) -> int:
    return time_to_minutes(end) - time_to_minutes(start)


def format_duration(minutes: int) -> str:
    if minutes < 60:
        return f"{minutes}m"
    hours, mins = divmod(minutes, 60)
    return f"{hours}h {mins}m" if mins else f"{hours}h"


def build_time_blocks(
    items: Iterable[ScheduledItem], day: DateInput, tz: tzinfo | None = None
) -> list[TimeBlock]:
    """Return the day's items as time blocks, earliest start first.

    Each block lists the other blocks on that day it overlaps.
    """
    on_day = items_for_day(items, day, tz)
    conflicts = find_conflicting_ids(on_day, tz)

    blocks: list[TimeBlock] = []
    for item in on_day:
        try:
            minutes = duration_minutes(item.start_time, item.end_time)
        except MalformedTimeError:
            minutes = None
        blocks.append(
            TimeBlock(
                item=item,
                start_label=format_to_12_hour(item.start_time),
                end_label=format_to_12_hour(item.end_time),
                duration_minutes=minutes,
                duration_label=format_duration(minutes) if minutes is not None else "",
                conflict_ids=conflicts.get(item.id, []),
            )
        )
    return blocks
