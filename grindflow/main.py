"""FastAPI application — task store and scheduling views for the dashboard."""

from __future__ import annotations

import logging

from fastapi import Depends, FastAPI, HTTPException, Path, Query
from pydantic import ValidationError

from grindflow import config
from grindflow.domain.bus import TaskEventBus
from grindflow.domain.errors import SchedulingError
from grindflow.domain.events import TaskCreated, TaskDeleted, TaskUpdated
from grindflow.domain.handlers import HandlerRegistry
from grindflow.domain.models import (
    CalendarDayGroup,
    ConflictCheckRequest,
    ConflictCheckResponse,
    CreateTaskRequest,
    MonthMatrix,
    ScheduledItem,
    Task,
    TaskCounts,
    TaskFilter,
    TimeBlock,
    UpdateTaskRequest,
)
from grindflow.repos.memory import TaskRepository, create_task_repository
from grindflow.services.calendar import (
    active_items,
    count_items,
    filter_items,
    group_by_day,
    month_matrix,
)
from grindflow.services.clock import Clock, local_now
from grindflow.services.conflicts import (
    detect_time_conflicts,
    format_conflict_message,
    slot_for,
)
from grindflow.services.normalizer import normalize_day
from grindflow.services.timebox import build_time_blocks

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="GrindFlow Scheduling Service")

# ── Singletons (created at import time for simplicity) ────────────────
task_bus = TaskEventBus()
task_repo = create_task_repository() if config.SEED_DATA else TaskRepository()
handler_registry = HandlerRegistry(bus=task_bus, task_repo=task_repo, tz=config.LOCAL_TZ)
logger.info(
    "Task store ready with %d task(s); timezone=%s, conflict policy=%s",
    len(task_repo.list_all()),
    config.TIMEZONE_NAME,
    config.CONFLICT_POLICY,
)

_RESCHEDULE_FIELDS = ("scheduled_date", "start_time", "end_time")


def get_clock() -> Clock:
    """Wall clock in the configured zone; overridden in tests."""
    return lambda: local_now(config.LOCAL_TZ)


def _get_or_404(task_id: str) -> Task:
    task = task_repo.get(task_id)
    if task is None:
        raise HTTPException(status_code=404, detail="Task not found")
    return task


def _scheduled_items(task_filter: TaskFilter = TaskFilter.ALL) -> list[ScheduledItem]:
    return filter_items([t.to_scheduled_item() for t in task_repo.list_all()], task_filter)


def _enforce_conflict_policy(task: Task, exclude_id: str | None = None) -> None:
    """Refuse the save with 409 when the ``reject`` policy is configured."""
    if config.CONFLICT_POLICY != "reject":
        return
    conflicts = detect_time_conflicts(
        slot_for(task.to_scheduled_item()),
        _scheduled_items(),
        exclude_id=exclude_id,
        tz=config.LOCAL_TZ,
    )
    if conflicts:
        raise HTTPException(
            status_code=409,
            detail={
                "message": "Time slot conflicts with existing tasks",
                "conflicts": [format_conflict_message(c) for c in conflicts],
            },
        )


# ── Task routes ───────────────────────────────────────────────────────


@app.get("/task", response_model=list[Task])
def list_tasks(
    task_filter: TaskFilter = Query(TaskFilter.ALL, alias="filter"),
) -> list[Task]:
    """Return stored tasks, optionally only pending or completed ones."""
    return filter_items(task_repo.list_all(), task_filter)


@app.get("/task/counts", response_model=TaskCounts)
def task_counts() -> TaskCounts:
    return count_items(_scheduled_items())


@app.get("/task/{task_id}", response_model=Task)
def get_task(task_id: str) -> Task:
    return _get_or_404(task_id)


@app.post("/task", response_model=Task)
def create_task(body: CreateTaskRequest) -> Task:
    """Store a new task and record any time conflicts it introduces."""
    task = Task(**body.model_dump())
    _enforce_conflict_policy(task)
    task_repo.add(task)
    task_bus.publish(TaskCreated(task_id=task.id))
    return task


@app.patch("/task/{task_id}", response_model=Task)
def update_task(
    task_id: str, body: UpdateTaskRequest, clock: Clock = Depends(get_clock)
) -> Task:
    stored = _get_or_404(task_id)
    changes = body.model_dump(exclude_unset=True)
    try:
        updated = Task.model_validate(
            {**stored.model_dump(), **changes, "updated_at": clock()}
        )
    except ValidationError as exc:
        raise HTTPException(
            status_code=422, detail=[err["msg"] for err in exc.errors()]
        ) from exc

    _enforce_conflict_policy(updated, exclude_id=task_id)
    task_repo.replace(updated)
    task_bus.publish(
        TaskUpdated(
            task_id=task_id,
            rescheduled=any(field in changes for field in _RESCHEDULE_FIELDS),
        )
    )
    return updated


@app.delete("/task/{task_id}", status_code=200)
def delete_task(task_id: str) -> dict:
    if task_repo.delete(task_id) is None:
        raise HTTPException(status_code=404, detail="Task not found")
    task_bus.publish(TaskDeleted(task_id=task_id))
    return {"status": "deleted"}


@app.patch("/task/{task_id}/toggle", response_model=Task)
def toggle_task_status(task_id: str, clock: Clock = Depends(get_clock)) -> Task:
    """Flip completion, keeping today's entry in ``completed_dates`` in step."""
    stored = _get_or_404(task_id)
    now = clock()
    today = normalize_day(now, config.LOCAL_TZ)

    stored.is_completed = not stored.is_completed
    if stored.is_completed and today not in stored.completed_dates:
        stored.completed_dates.append(today)
    elif not stored.is_completed and today in stored.completed_dates:
        stored.completed_dates.remove(today)
    stored.updated_at = now
    return stored


# ── Scheduling routes ─────────────────────────────────────────────────


@app.post("/conflicts", response_model=ConflictCheckResponse)
def check_conflicts(body: ConflictCheckRequest) -> ConflictCheckResponse:
    """Check a candidate time slot against every stored task."""
    try:
        conflicts = detect_time_conflicts(
            body.slot, _scheduled_items(), body.exclude_id, config.LOCAL_TZ
        )
    except SchedulingError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return ConflictCheckResponse(
        has_conflicts=bool(conflicts),
        conflicts=conflicts,
        messages=[format_conflict_message(c) for c in conflicts],
    )


@app.get(
    "/schedule", response_model=list[CalendarDayGroup], response_model_by_alias=False
)
def list_schedule(
    task_filter: TaskFilter = Query(TaskFilter.ALL, alias="filter"),
    clock: Clock = Depends(get_clock),
) -> list[CalendarDayGroup]:
    """Return tasks grouped by day, labelled Today/Tomorrow/Yesterday or by date."""
    return group_by_day(_scheduled_items(task_filter), clock(), config.LOCAL_TZ)


@app.get(
    "/schedule/active", response_model=list[ScheduledItem], response_model_by_alias=False
)
def list_active(clock: Clock = Depends(get_clock)) -> list[ScheduledItem]:
    """Return the tasks whose time block contains the current moment."""
    return active_items(_scheduled_items(), clock(), config.LOCAL_TZ)


@app.get(
    "/schedule/{day}", response_model=list[TimeBlock], response_model_by_alias=False
)
def day_time_blocks(day: str) -> list[TimeBlock]:
    """Return one day's tasks as time blocks, earliest first."""
    try:
        return build_time_blocks(_scheduled_items(), day, config.LOCAL_TZ)
    except SchedulingError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc


@app.get(
    "/calendar/{year}/{month}",
    response_model=MonthMatrix,
    response_model_by_alias=False,
)
def calendar_month(
    year: int = Path(ge=1000, le=9998),
    month: int = Path(ge=1, le=12),
    clock: Clock = Depends(get_clock),
) -> MonthMatrix:
    """Return the 42-cell month grid with each day's tasks."""
    return month_matrix(year, month, _scheduled_items(), clock(), config.LOCAL_TZ)
