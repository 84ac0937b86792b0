"""Tests for the conflict-detection service."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

import pytest

from grindflow.domain.errors import InvalidDateError, MalformedTimeError
from grindflow.domain.models import (
    CandidateSlot,
    ConflictType,
    Priority,
    ScheduledItem,
)
from grindflow.services.conflicts import (
    classify_overlap,
    detect_time_conflicts,
    find_conflicting_ids,
    format_conflict_message,
    intervals_overlap,
    slot_for,
)


def _make_item(
    item_id: str,
    start: str,
    end: str,
    day: object = "2024-01-20",
    title: str = "Existing",
    **extra,
) -> ScheduledItem:
    return ScheduledItem(
        id=item_id,
        title=title,
        scheduled_date=day,
        start_time=start,
        end_time=end,
        **extra,
    )


def _slot(start: str, end: str, day: object = "2024-01-20") -> CandidateSlot:
    return CandidateSlot(date=day, start=start, end=end)


def test_no_overlap():
    """Items that don't overlap should not be returned as conflicts."""
    existing = [_make_item("a", "08:00", "09:00")]
    assert detect_time_conflicts(_slot("10:00", "11:00"), existing) == []


def test_exact_boundary_no_conflict():
    """09:00-10:00 and 10:00-11:00 touch but do not conflict, either way round."""
    a = _make_item("a", "09:00", "10:00")
    b = _make_item("b", "10:00", "11:00")
    assert detect_time_conflicts(slot_for(a), [b]) == []
    assert detect_time_conflicts(slot_for(b), [a]) == []


def test_partial_overlap_reported_both_ways():
    a = _make_item("a", "09:00", "10:30", title="Gym")
    b = _make_item("b", "10:00", "11:00", title="Call")

    from_a = detect_time_conflicts(slot_for(a), [a, b], exclude_id="a")
    from_b = detect_time_conflicts(slot_for(b), [a, b], exclude_id="b")

    assert [c.id for c in from_a] == ["b"]
    assert [c.id for c in from_b] == ["a"]
    assert from_a[0].conflict_type == ConflictType.OVERLAP


def test_same_time_different_day_no_conflict():
    existing = [_make_item("a", "09:00", "10:00", day="2024-01-21")]
    assert detect_time_conflicts(_slot("09:00", "10:00", "2024-01-20"), existing) == []


def test_exclude_id_skips_item_being_edited():
    """The edited item never conflicts with its own old slot."""
    edited = _make_item("a", "09:00", "10:00")
    other = _make_item("b", "13:00", "14:00")
    result = detect_time_conflicts(slot_for(edited), [edited, other], exclude_id="a")
    assert result == []


def test_without_exclude_id_identical_slot_conflicts():
    edited = _make_item("a", "09:00", "10:00")
    result = detect_time_conflicts(slot_for(edited), [edited])
    assert [c.id for c in result] == ["a"]
    assert result[0].conflict_type == ConflictType.CONTAINS


def test_result_restates_item():
    existing = [
        _make_item(
            "a", "09:00", "10:00", day="2024-01-20T09:00:00", title="Standup", priority=None
        )
    ]
    [conflict] = detect_time_conflicts(_slot("09:30", "09:45"), existing)

    assert conflict.id == "a"
    assert conflict.title == "Standup"
    assert conflict.date == "2024-01-20"
    assert (conflict.start, conflict.end) == ("09:00", "10:00")
    assert conflict.priority == Priority.MEDIUM
    assert conflict.conflict_type == ConflictType.CONTAINS


def test_results_keep_input_order():
    existing = [
        _make_item("c", "10:00", "12:00"),
        _make_item("a", "09:00", "10:30"),
        _make_item("b", "11:00", "11:30"),
    ]
    result = detect_time_conflicts(_slot("09:00", "12:00"), existing)
    assert [c.id for c in result] == ["c", "a", "b"]


def test_detector_is_idempotent_and_does_not_mutate():
    existing = [_make_item("a", "09:00", "10:30"), _make_item("b", "10:00", "11:00")]
    snapshot = [item.model_copy() for item in existing]
    slot = _slot("10:15", "10:45")

    first = detect_time_conflicts(slot, existing)
    second = detect_time_conflicts(slot, existing)

    assert first == second
    assert existing == snapshot


def test_local_day_used_for_instants():
    """An item stored as a UTC instant is compared on its local day."""
    est = timezone(timedelta(hours=-5))
    existing = [
        _make_item("a", "21:00", "22:00", day=datetime(2024, 1, 21, 2, 0, tzinfo=timezone.utc))
    ]
    result = detect_time_conflicts(_slot("21:30", "22:30", "2024-01-20"), existing, tz=est)
    assert [c.id for c in result] == ["a"]


def test_camel_case_records_are_ingested():
    record = {
        "_id": "abc",
        "title": "Walk the Dog",
        "scheduledDate": "2024-01-20",
        "startTime": "19:00",
        "endTime": "19:30",
    }
    item = ScheduledItem.model_validate(record)
    assert item.priority == Priority.MEDIUM
    [conflict] = detect_time_conflicts(_slot("19:15", "20:00"), [item])
    assert conflict.id == "abc"


def test_malformed_records_are_excluded(caplog):
    existing = [
        _make_item("bad-date", "09:00", "10:00", day="banana"),
        _make_item("bad-time", "9am", "10:00"),
        _make_item("good", "09:00", "10:00"),
    ]
    with caplog.at_level(logging.WARNING):
        result = detect_time_conflicts(_slot("09:30", "10:30"), existing)

    assert [c.id for c in result] == ["good"]
    assert "bad-date" in caplog.text
    assert "bad-time" in caplog.text


def test_malformed_candidate_raises():
    existing = [_make_item("a", "09:00", "10:00")]
    with pytest.raises(MalformedTimeError):
        detect_time_conflicts(_slot("25:00", "26:00"), existing)
    with pytest.raises(InvalidDateError):
        detect_time_conflicts(_slot("09:00", "10:00", "banana"), existing)


def test_degenerate_intervals_are_evaluated_as_is():
    """Inverted records fail the predicate; zero-length ones inside a slot still hit."""
    inverted = _make_item("inv", "11:00", "09:00")
    empty = _make_item("empty", "10:00", "10:00")
    result = detect_time_conflicts(_slot("09:30", "10:30"), [inverted, empty])
    assert [c.id for c in result] == ["empty"]


def test_intervals_overlap_and_classify():
    assert intervals_overlap(540, 600, 570, 660)
    assert not intervals_overlap(540, 600, 600, 660)
    assert classify_overlap(540, 660, 570, 600) == ConflictType.CONTAINS
    assert classify_overlap(570, 600, 540, 660) == ConflictType.CONTAINS
    assert classify_overlap(540, 600, 570, 660) == ConflictType.OVERLAP


def test_find_conflicting_ids():
    items = [
        _make_item("a", "09:00", "10:30"),
        _make_item("b", "10:00", "11:00"),
        _make_item("c", "11:00", "12:00"),
        _make_item("d", "09:00", "10:00", day="2024-01-21"),
    ]
    assert find_conflicting_ids(items) == {"a": ["b"], "b": ["a"], "c": [], "d": []}


def test_format_conflict_message():
    [conflict] = detect_time_conflicts(
        _slot("09:00", "09:30"), [_make_item("a", "09:00", "10:00", title="Standup")]
    )
    assert format_conflict_message(conflict) == "Standup (09:00 - 10:00)"


def test_item_date_with_trailing_newline_still_conflicts():
    existing = [_make_item("a", "09:00", "10:00", day="2024-01-20\n")]
    [conflict] = detect_time_conflicts(_slot("09:30", "09:45"), existing)
    assert conflict.id == "a"
    assert conflict.date == "2024-01-20"
