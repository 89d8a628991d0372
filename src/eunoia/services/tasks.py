"""Task records."""

from __future__ import annotations

from datetime import datetime

from eunoia.core.models import Task, TaskStatus
from eunoia.core.storage import TASKS_KEY
from eunoia.services.base import RecordService


class TaskService(RecordService[Task]):
    """Tasks, kept in stored order (newest first)."""

    storage_key = TASKS_KEY
    model = Task

    def toggle_status(self, task_id: str) -> Task | None:
        """Flip a task between Completed and Pending.

        A task that is In Progress goes straight to Completed; it never
        returns to In Progress through a toggle.

        Returns:
            The updated task, or None if no task has that id.
        """
        task = self.get(task_id)
        if task is None:
            return None
        new_status = TaskStatus.PENDING if task.status == TaskStatus.COMPLETED else TaskStatus.COMPLETED
        return self.update(task_id, status=new_status)

    def overdue(self, now: datetime | None = None) -> list[Task]:
        """Open tasks whose due date has passed, oldest due date first."""
        now = now or self._now()
        return self._sorted(
            [task for task in self._load() if task.is_overdue(now)],
            field="due_date",
            descending=False,
        )
