"""Tests for the day-detail time-box helpers."""

from __future__ import annotations

import pytest

from grindflow.domain.models import ScheduledItem
from grindflow.services.timebox import (
    build_time_blocks,
    format_duration,
    format_to_12_hour,
)


def _make_item(item_id: str, start: str, end: str, day: str = "2024-01-20") -> ScheduledItem:
    return ScheduledItem(
        id=item_id, title=item_id, scheduled_date=day, start_time=start, end_time=end
    )


@pytest.mark.parametrize(
    "time24, expected",
    [
        ("00:15", "12:15 AM"),
        ("09:30", "9:30 AM"),
        ("12:00", "12:00 PM"),
        ("13:05", "1:05 PM"),
        ("23:59", "11:59 PM"),
        ("late", "late"),
    ],
)
def test_format_to_12_hour(time24, expected):
    assert format_to_12_hour(time24) == expected


@pytest.mark.parametrize(
    "minutes, expected", [(5, "5m"), (45, "45m"), (60, "1h"), (120, "2h"), (90, "1h 30m")]
)
def test_format_duration(minutes, expected):
    assert format_duration(minutes) == expected


def test_build_time_blocks():
    items = [
        _make_item("walk", "19:00", "19:30"),
        _make_item("coffee", "07:00", "07:30"),
        _make_item("emails", "07:15", "08:00"),
        _make_item("tomorrow", "07:00", "07:30", day="2024-01-21"),
    ]
    blocks = build_time_blocks(items, "2024-01-20")

    assert [b.item.id for b in blocks] == ["coffee", "emails", "walk"]
    coffee = blocks[0]
    assert (coffee.start_label, coffee.end_label) == ("7:00 AM", "7:30 AM")
    assert coffee.duration_minutes == 30
    assert coffee.duration_label == "30m"
    assert coffee.conflict_ids == ["emails"]
    assert blocks[1].conflict_ids == ["coffee"]
    assert blocks[2].conflict_ids == []


def test_build_time_blocks_tolerates_bad_times():
    items = [_make_item("broken", "soon", "08:00"), _make_item("ok", "09:00", "10:30")]
    blocks = build_time_blocks(items, "2024-01-20")

    assert [b.item.id for b in blocks] == ["ok", "broken"]
    assert blocks[0].duration_label == "1h 30m"
    broken = blocks[1]
    assert broken.duration_minutes is None
    assert broken.duration_label == ""
    assert broken.start_label == "soon"
    assert broken.conflict_ids == []
