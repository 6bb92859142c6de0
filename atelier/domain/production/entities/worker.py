"""Worker record supplied by the external roster."""

from collections.abc import Iterable

from pydantic import Field, field_validator

from ...shared.base import Record
from ..value_objects.enums import TaskStatus
from .task import Task


class Worker(Record):
    """
    A person on the production floor.

    The engine never stores a worker's current task; it is derived from the
    task collection by stable worker id whenever it is needed.
    """

    name: str = Field(min_length=1, max_length=100)
    department: str = Field(min_length=1, max_length=50)
    role: str | None = Field(default=None, max_length=50)
    is_active: bool = Field(default=True)

    @field_validator("name", "department")
    @classmethod
    def strip_text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v

    def current_task_in(self, tasks: Iterable[Task]) -> Task | None:
        """
        Derive the worker's current task.

        Args:
            tasks: Task collection to scan

        Returns:
            The in-progress task bound to this worker, if any
        """
        for task in tasks:
            if task.worker_ref == self.id and task.status == TaskStatus.IN_PROGRESS:
                return task
        return None

    def paused_tasks_in(self, tasks: Iterable[Task]) -> list[Task]:
        return [
            task
            for task in tasks
            if task.worker_ref == self.id and task.status == TaskStatus.PAUSED
        ]

    def is_idle_in(self, tasks: Iterable[Task]) -> bool:
        """Check if worker is active and has no in-progress task."""
        return self.is_active and self.current_task_in(tasks) is None
