"""Task event handlers — wired up at application startup."""

from __future__ import annotations

import logging
from datetime import tzinfo

from grindflow.domain.bus import TaskEventBus
from grindflow.domain.events import (
    ConflictDetected,
    TaskCreated,
    TaskDeleted,
    TaskUpdated,
)
from grindflow.repos.memory import TaskRepository
from grindflow.services.conflicts import detect_time_conflicts, slot_for

logger = logging.getLogger(__name__)


class HandlerRegistry:
    """Keeps every stored task's ``conflict_ids`` in step with the schedule."""

    def __init__(
        self,
        bus: TaskEventBus,
        task_repo: TaskRepository,
        tz: tzinfo | None = None,
    ) -> None:
        self.bus = bus
        self.task_repo = task_repo
        self.tz = tz
        self._register()

    def _register(self) -> None:
        self.bus.subscribe(TaskCreated, self.on_task_created)
        self.bus.subscribe(TaskUpdated, self.on_task_updated)
        self.bus.subscribe(TaskDeleted, self.on_task_deleted)
        self.bus.subscribe(ConflictDetected, self.on_conflict_detected)

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def on_task_created(self, event: TaskCreated) -> None:
        self._check_conflicts(event.task_id)

    def on_task_updated(self, event: TaskUpdated) -> None:
        if event.rescheduled:
            self._check_conflicts(event.task_id)

    def on_task_deleted(self, event: TaskDeleted) -> None:
        self._unlink(event.task_id)

    def on_conflict_detected(self, event: ConflictDetected) -> None:
        stored = self.task_repo.get(event.task_id)
        if stored is None:
            return

        stored.conflict_ids = list(event.conflicting_task_ids)
        titles = []
        for cid in event.conflicting_task_ids:
            other = self.task_repo.get(cid)
            if other is None:
                continue
            if stored.id not in other.conflict_ids:
                other.conflict_ids.append(stored.id)
            titles.append(f"{other.title} ({cid})")
        logger.warning(
            "Task %r (%s) conflicts with: %s", stored.title, stored.id, ", ".join(titles)
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _check_conflicts(self, task_id: str) -> None:
        stored = self.task_repo.get(task_id)
        if stored is None:
            return

        # Drop stale links first; a reschedule may have resolved them.
        self._unlink(task_id)
        stored.conflict_ids = []

        items = [t.to_scheduled_item() for t in self.task_repo.list_all()]
        conflicts = detect_time_conflicts(
            slot_for(stored.to_scheduled_item()), items, exclude_id=task_id, tz=self.tz
        )
        if conflicts:
            self.bus.publish(
                ConflictDetected(
                    task_id=task_id,
                    conflicting_task_ids=[c.id for c in conflicts],
                )
            )

    def _unlink(self, task_id: str) -> None:
        for other in self.task_repo.list_all():
            if task_id in other.conflict_ids:
                other.conflict_ids.remove(task_id)
