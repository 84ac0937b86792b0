"""Service for grouping tasks into calendar days, list sections and month grids."""

from __future__ import annotations

from collections import defaultdict
from datetime import date, datetime, timedelta, tzinfo
from typing import Iterable, TypeVar

from grindflow.domain.errors import MalformedTimeError
from grindflow.domain.models import (
    CalendarCell,
    CalendarDayGroup,
    DateInput,
    MonthMatrix,
    ScheduledItem,
    TaskCounts,
    TaskFilter,
)
from grindflow.services.clock import local_now
from grindflow.services.conflicts import item_minutes
from grindflow.services.normalizer import (
    format_day,
    minutes_of_day,
    normalize_day,
    time_to_minutes,
    to_local,
    try_normalize_day,
)

MONTH_NAMES = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)
WEEKDAY_NAMES = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)
GRID_CELLS = 42

# Anything with an ``is_completed`` flag: ScheduledItem or a stored Task.
CompletableT = TypeVar("CompletableT")


def _local_now(now: datetime | None, tz: tzinfo | None) -> datetime:
    return to_local(now if now is not None else local_now(tz), tz)


def long_date_label(day: date) -> str:
    """Render e.g. ``Friday, March 1, 2024``."""
    return (
        f"{WEEKDAY_NAMES[day.weekday()]}, "
        f"{MONTH_NAMES[day.month - 1]} {day.day}, {day.year}"
    )


def day_label(
    day: str, now: datetime | None = None, tz: tzinfo | None = None
) -> str:
    """Label a canonical day relative to *now*: Today, Tomorrow, Yesterday,
    or the long weekday/month/day/year form."""
    today = _local_now(now, tz).date()
    relative = {
        format_day(today): "Today",
        format_day(today + timedelta(days=1)): "Tomorrow",
        format_day(today - timedelta(days=1)): "Yesterday",
    }
    if day in relative:
        return relative[day]
    try:
        return long_date_label(date.fromisoformat(day))
    except ValueError:
        # Canonical-looking but impossible, e.g. "2024-02-31".
        return day


def _creation_key(item: ScheduledItem) -> tuple:
    # Oldest first; items without a creation time go last; ties by id.
    if item.created_at is None:
        return (1, 0.0, item.id)
    return (0, item.created_at.timestamp(), item.id)


def _start_key(item: ScheduledItem) -> tuple:
    try:
        return (0, time_to_minutes(item.start_time))
    except MalformedTimeError:
        return (1, 0)


def _bucket_by_day(
    items: Iterable[ScheduledItem], tz: tzinfo | None
) -> dict[str, list[ScheduledItem]]:
    grouped: dict[str, list[ScheduledItem]] = defaultdict(list)
    for item in items:
        day = try_normalize_day(item.scheduled_date, tz, item.id)
        if day is not None:
            grouped[day].append(item)
    return {day: sorted(bucket, key=_creation_key) for day, bucket in grouped.items()}


def group_by_day(
    items: Iterable[ScheduledItem],
    now: datetime | None = None,
    tz: tzinfo | None = None,
) -> list[CalendarDayGroup]:
    """Bucket *items* by canonical local day, in chronological order.

    Items with unreadable dates are logged and left out.
    """
    now = _local_now(now, tz)
    grouped = _bucket_by_day(items, tz)
    return [
        CalendarDayGroup(date=day, label=day_label(day, now, tz), items=grouped[day])
        for day in sorted(grouped)
    ]


def items_for_day(
    items: Iterable[ScheduledItem], day: DateInput, tz: tzinfo | None = None
) -> list[ScheduledItem]:
    """Return the items scheduled on *day*, earliest start first."""
    key = normalize_day(day, tz)
    on_day = [
        item
        for item in items
        if try_normalize_day(item.scheduled_date, tz, item.id) == key
    ]
    return sorted(on_day, key=_start_key)


def shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    """Move ``(year, month)`` by *delta* months."""
    y, m = divmod(year * 12 + (month - 1) + delta, 12)
    return y, m + 1


def month_matrix(
    year: int,
    month: int,
    items: Iterable[ScheduledItem],
    now: datetime | None = None,
    tz: tzinfo | None = None,
) -> MonthMatrix:
    """Build the 6-week grid for a month, starting on the Sunday on/before the 1st.

    Raises ``ValueError`` for an invalid month, or when the grid would leave
    the supported date range (January of year 1, December of year 9999).
    """
    if not 1 <= month <= 12:
        raise ValueError(f"month must be 1-12, got {month}")
    first = date(year, month, 1)
    # date.weekday(): Monday == 0 ... Sunday == 6
    lead = (first.weekday() + 1) % 7
    if (first - date.min).days < lead or (date.max - first).days < GRID_CELLS - 1 - lead:
        raise ValueError(f"calendar grid for {year}-{month:02d} is out of the date range")
    start = first - timedelta(days=lead)
    today = _local_now(now, tz).date()
    grouped = _bucket_by_day(items, tz)

    cells: list[CalendarCell] = []
    for offset in range(GRID_CELLS):
        day = start + timedelta(days=offset)
        key = format_day(day)
        cells.append(
            CalendarCell(
                date=key,
                day=day.day,
                is_current_month=(day.year, day.month) == (year, month),
                is_today=day == today,
                is_weekend=day.weekday() >= 5,
                items=grouped.get(key, []),
            )
        )
    return MonthMatrix(
        year=year, month=month, month_name=MONTH_NAMES[month - 1], cells=cells
    )


def is_currently_active(
    item: ScheduledItem, now: datetime | None = None, tz: tzinfo | None = None
) -> bool:
    """True when *now* falls inside the item's ``[start, end)`` today."""
    now = _local_now(now, tz)
    if try_normalize_day(item.scheduled_date, tz, item.id) != format_day(now):
        return False
    minutes = item_minutes(item)
    if minutes is None:
        return False
    start, end = minutes
    return start <= minutes_of_day(now) < end


def active_items(
    items: Iterable[ScheduledItem],
    now: datetime | None = None,
    tz: tzinfo | None = None,
) -> list[ScheduledItem]:
    now = _local_now(now, tz)
    return [item for item in items if is_currently_active(item, now, tz)]


def filter_items(
    items: Iterable[CompletableT], task_filter: TaskFilter = TaskFilter.ALL
) -> list[CompletableT]:
    """Keep all, only pending or only completed items (tasks or scheduled items)."""
    if task_filter == TaskFilter.PENDING:
        return [item for item in items if not item.is_completed]
    if task_filter == TaskFilter.COMPLETED:
        return [item for item in items if item.is_completed]
    return list(items)


def count_items(items: Iterable[ScheduledItem]) -> TaskCounts:
    items = list(items)
    completed = sum(1 for item in items if item.is_completed)
    return TaskCounts(all=len(items), pending=len(items) - completed, completed=completed)
