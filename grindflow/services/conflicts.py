"""Service for detecting scheduling conflicts between tasks."""

from __future__ import annotations

import logging
from datetime import tzinfo
from typing import Iterable

from grindflow.domain.errors import MalformedTimeError
from grindflow.domain.models import (
    CandidateSlot,
    ConflictResult,
    ConflictType,
    ScheduledItem,
)
from grindflow.services.normalizer import (
    normalize_day,
    time_to_minutes,
    try_normalize_day,
)

logger = logging.getLogger(__name__)


def intervals_overlap(s1: int, e1: int, s2: int, e2: int) -> bool:
    """Half-open overlap test for ``[s1, e1)`` and ``[s2, e2)``.

    Exact boundary touches (end == start) are NOT considered conflicts, so
    back-to-back blocks can be scheduled.
    """
    return s1 < e2 and s2 < e1


def classify_overlap(s1: int, e1: int, s2: int, e2: int) -> ConflictType:
    if (s1 <= s2 and e2 <= e1) or (s2 <= s1 and e1 <= e2):
        return ConflictType.CONTAINS
    return ConflictType.OVERLAP


def item_minutes(item: ScheduledItem) -> tuple[int, int] | None:
    """Return ``(start, end)`` minutes for *item*, or ``None`` if malformed."""
    try:
        return time_to_minutes(item.start_time), time_to_minutes(item.end_time)
    except MalformedTimeError as exc:
        logger.warning("Excluding item %s: %s", item.id, exc)
        return None


def detect_time_conflicts(
    slot: CandidateSlot,
    items: Iterable[ScheduledItem],
    exclude_id: str | None = None,
    tz: tzinfo | None = None,
) -> list[ConflictResult]:
    """Return a result for every item overlapping *slot* on the same local day.

    Results keep the input order. The item whose id equals *exclude_id* is
    skipped, which lets an edited task be checked against its own old slot.
    Items with an unreadable date or time are logged and skipped; a malformed
    *slot* raises ``InvalidDateError`` / ``MalformedTimeError``.

    Zero-length or inverted intervals are not rejected here: the half-open
    predicate is evaluated as-is, so they may report no conflict.
    """
    slot_day = normalize_day(slot.date, tz)
    s1 = time_to_minutes(slot.start)
    e1 = time_to_minutes(slot.end)

    conflicts: list[ConflictResult] = []
    for item in items:
        if exclude_id is not None and item.id == exclude_id:
            continue
        item_day = try_normalize_day(item.scheduled_date, tz, item.id)
        if item_day != slot_day:
            continue
        minutes = item_minutes(item)
        if minutes is None:
            continue
        s2, e2 = minutes
        if intervals_overlap(s1, e1, s2, e2):
            conflicts.append(
                ConflictResult(
                    id=item.id,
                    title=item.title,
                    date=item_day,
                    start=item.start_time,
                    end=item.end_time,
                    priority=item.priority,
                    conflict_type=classify_overlap(s1, e1, s2, e2),
                )
            )
    return conflicts


def slot_for(item: ScheduledItem) -> CandidateSlot:
    """Restate an existing item as a candidate slot."""
    return CandidateSlot(
        date=item.scheduled_date, start=item.start_time, end=item.end_time
    )


def find_conflicting_ids(
    items: list[ScheduledItem], tz: tzinfo | None = None
) -> dict[str, list[str]]:
    """Map each well-formed item id to the ids of the other items it overlaps."""
    result: dict[str, list[str]] = {}
    for item in items:
        if try_normalize_day(item.scheduled_date, tz, item.id) is None:
            continue
        if item_minutes(item) is None:
            continue
        conflicts = detect_time_conflicts(slot_for(item), items, item.id, tz)
        result[item.id] = [c.id for c in conflicts]
    return result


def format_conflict_message(conflict: ConflictResult) -> str:
    return f"{conflict.title} ({conflict.start} - {conflict.end})"
