"""Domain events emitted while tasks are saved and removed."""

from __future__ import annotations

from pydantic import BaseModel


class TaskCreated(BaseModel):
    task_id: str


class TaskUpdated(BaseModel):
    """Fired after a task's fields were changed and stored."""

    task_id: str
    rescheduled: bool = False


class TaskDeleted(BaseModel):
    task_id: str


class ConflictDetected(BaseModel):
    """Fired when a saved task overlaps other tasks on the same day."""

    task_id: str
    conflicting_task_ids: list[str]
