"""In-memory repository standing in for the remote task service."""

from __future__ import annotations

from datetime import date, timedelta

from grindflow.domain.models import Category, Priority, Recurrence, Task


class TaskRepository:
    """Dict-backed store for Task instances, keyed by id (insertion ordered)."""

    def __init__(self) -> None:
        self._store: dict[str, Task] = {}

    def add(self, task: Task) -> None:
        self._store[task.id] = task

    def get(self, task_id: str) -> Task | None:
        return self._store.get(task_id)

    def list_all(self) -> list[Task]:
        return list(self._store.values())

    def replace(self, task: Task) -> None:
        """Store *task* over the existing record with the same id, keeping its position."""
        if task.id not in self._store:
            raise KeyError(task.id)
        self._store[task.id] = task

    def delete(self, task_id: str) -> Task | None:
        return self._store.pop(task_id, None)

    def clear(self) -> None:
        self._store.clear()


# ---------------------------------------------------------------------------
# Seed data – a typical day, useful for trying the calendar views
# ---------------------------------------------------------------------------


def _seed_tasks(repo: TaskRepository, today: date) -> None:
    tomorrow = today + timedelta(days=1)
    seeds = [
        ("Morning Coffee & Check Emails", "07:00", "07:30", Category.PERSONAL, Priority.LOW, today),
        ("Take Vitamins & Drink Water", "08:00", "08:05", Category.HEALTH, Priority.MEDIUM, today),
        ("Walk the Dog", "19:00", "19:30", Category.PERSONAL, Priority.HIGH, today),
        ("Prepare Lunch for Tomorrow", "20:00", "20:30", Category.PERSONAL, Priority.MEDIUM, today),
        ("Read 20 Minutes Before Bed", "21:30", "21:50", Category.PERSONAL, Priority.LOW, today),
        ("Call Mom", "18:00", "18:30", Category.PERSONAL, Priority.HIGH, tomorrow),
    ]
    for title, start, end, category, priority, day in seeds:
        repo.add(
            Task(
                title=title,
                start_time=start,
                end_time=end,
                category=category,
                priority=priority,
                recurring=Recurrence.DAILY,
                scheduled_date=day,
            )
        )


def create_task_repository(today: date | None = None) -> TaskRepository:
    """Return a TaskRepository pre-loaded with sample data."""
    repo = TaskRepository()
    _seed_tasks(repo, today or date.today())
    return repo
