"""Domain models for the GrindFlow scheduling core and task store."""

from __future__ import annotations

import re
import uuid
from datetime import date, datetime, timezone
from enum import StrEnum
from typing import Union

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)

HHMM_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")

# A native instant, a canonical "YYYY-MM-DD" string, or any other date string.
DateInput = Union[datetime, date, str]


class Priority(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Recurrence(StrEnum):
    NONE = "none"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class Category(StrEnum):
    PERSONAL = "personal"
    WORK = "work"
    LEARNING = "learning"
    HEALTH = "health"
    SHOPPING = "shopping"
    FINANCE = "finance"


class Color(StrEnum):
    BLUE = "blue"
    GREEN = "green"
    PURPLE = "purple"
    ORANGE = "orange"
    RED = "red"
    PINK = "pink"
    INDIGO = "indigo"
    TEAL = "teal"
    YELLOW = "yellow"
    GRAY = "gray"


class TaskFilter(StrEnum):
    ALL = "all"
    PENDING = "pending"
    COMPLETED = "completed"


class ConflictType(StrEnum):
    OVERLAP = "overlap"
    CONTAINS = "contains"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


def _check_time_range(start: str | None, end: str | None) -> None:
    """Raise ``ValueError`` unless both times are ``HH:mm`` and start < end."""
    for value in (start, end):
        if value is not None and not HHMM_RE.fullmatch(value):
            raise ValueError(f"time must be HH:mm (24-hour), got {value!r}")
    # Zero-padded HH:mm strings order the same way as the minutes they encode.
    if start is not None and end is not None and end <= start:
        raise ValueError("end_time must be after start_time")


# ---------------------------------------------------------------------------
# Scheduling core models
# ---------------------------------------------------------------------------


class ScheduledItem(BaseModel):
    """Read-only view of a task that occupies a day and a time range.

    Accepts the backend's camelCase JSON as well as snake_case names. Times are
    kept as raw strings: a malformed record is excluded at comparison time
    instead of failing the whole batch at ingest.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str = Field(alias="_id")
    title: str
    scheduled_date: DateInput = Field(alias="scheduledDate")
    start_time: str = Field(alias="startTime")
    end_time: str = Field(alias="endTime")
    priority: Priority = Priority.MEDIUM
    created_at: datetime | None = Field(default=None, alias="createdAt")
    is_completed: bool = Field(default=False, alias="isCompleted")
    category: str = Category.PERSONAL.value

    @field_validator("priority", mode="before")
    @classmethod
    def _default_priority(cls, value: object) -> object:
        return value or Priority.MEDIUM


class CandidateSlot(BaseModel):
    """A proposed or edited time range, checked before it is committed."""

    date: DateInput
    start: str
    end: str


class ConflictResult(BaseModel):
    id: str
    title: str
    date: str
    start: str
    end: str
    priority: Priority = Priority.MEDIUM
    conflict_type: ConflictType = ConflictType.OVERLAP


class CalendarDayGroup(BaseModel):
    date: str
    label: str
    items: list[ScheduledItem] = Field(default_factory=list)


class CalendarCell(BaseModel):
    date: str
    day: int
    is_current_month: bool
    is_today: bool
    is_weekend: bool
    items: list[ScheduledItem] = Field(default_factory=list)


class MonthMatrix(BaseModel):
    year: int
    month: int
    month_name: str
    cells: list[CalendarCell]


class TimeBlock(BaseModel):
    """One entry of the day-detail time-box grid."""

    item: ScheduledItem
    start_label: str
    end_label: str
    duration_minutes: int | None = None
    duration_label: str = ""
    conflict_ids: list[str] = Field(default_factory=list)


class TaskCounts(BaseModel):
    all: int = 0
    pending: int = 0
    completed: int = 0


# ---------------------------------------------------------------------------
# Task store models
# ---------------------------------------------------------------------------


class Task(BaseModel):
    id: str = Field(default_factory=_new_id)
    title: str
    description: str = ""
    is_completed: bool = False
    start_time: str
    end_time: str
    category: Category = Category.PERSONAL
    icon: str = ""
    recurring: Recurrence = Recurrence.NONE
    days: list[str] = Field(default_factory=list)
    priority: Priority = Priority.MEDIUM
    completed_dates: list[str] = Field(default_factory=list)
    scheduled_date: date
    color: Color = Color.BLUE
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)
    conflict_ids: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def _valid_time_range(self) -> Task:
        _check_time_range(self.start_time, self.end_time)
        return self

    def to_scheduled_item(self) -> ScheduledItem:
        return ScheduledItem(
            id=self.id,
            title=self.title,
            scheduled_date=self.scheduled_date,
            start_time=self.start_time,
            end_time=self.end_time,
            priority=self.priority,
            created_at=self.created_at,
            is_completed=self.is_completed,
            category=self.category.value,
        )


# ---------------------------------------------------------------------------
# Request / Response DTOs
# ---------------------------------------------------------------------------


class CreateTaskRequest(BaseModel):
    title: str = Field(min_length=1)
    description: str = ""
    priority: Priority = Priority.MEDIUM
    # The dashboard form posts ``due_date``; the store calls it scheduled_date.
    scheduled_date: date = Field(
        validation_alias=AliasChoices("scheduled_date", "due_date")
    )
    category: Category = Category.PERSONAL
    start_time: str
    end_time: str
    icon: str = ""
    recurring: Recurrence = Recurrence.NONE
    days: list[str] = Field(default_factory=list)
    color: Color = Color.BLUE

    @model_validator(mode="after")
    def _valid_time_range(self) -> CreateTaskRequest:
        _check_time_range(self.start_time, self.end_time)
        return self


class UpdateTaskRequest(BaseModel):
    title: str | None = Field(default=None, min_length=1)
    description: str | None = None
    priority: Priority | None = None
    scheduled_date: date | None = Field(
        default=None, validation_alias=AliasChoices("scheduled_date", "due_date")
    )
    category: Category | None = None
    start_time: str | None = None
    end_time: str | None = None
    icon: str | None = None
    recurring: Recurrence | None = None
    days: list[str] | None = None
    color: Color | None = None

    @model_validator(mode="after")
    def _valid_times(self) -> UpdateTaskRequest:
        # Ordering is re-checked against the stored task once merged.
        _check_time_range(self.start_time, None)
        _check_time_range(self.end_time, None)
        return self


class ConflictCheckRequest(BaseModel):
    slot: CandidateSlot
    exclude_id: str | None = None

    @model_validator(mode="after")
    def _valid_slot(self) -> ConflictCheckRequest:
        _check_time_range(self.slot.start, self.slot.end)
        return self


class ConflictCheckResponse(BaseModel):
    has_conflicts: bool
    conflicts: list[ConflictResult] = Field(default_factory=list)
    messages: list[str] = Field(default_factory=list)
