"""Task record: one order's work at one production stage."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import Field, model_validator
from typing_extensions import Self

from ...shared.base import Record
from ...shared.exceptions import BusinessRuleError
from ..value_objects.enums import StageId, TaskStatus


class Task(Record):
    """
    Unit of work binding one order to one stage and, optionally, one worker.

    ``worker_ref`` is the live binding: it is set together with
    ``in_progress`` by assignment, kept while paused, and cleared on
    completion. ``completed_by`` keeps the worker that finished the task so
    performance metrics survive the release of the binding.
    """

    order_ref: UUID
    stage: StageId
    status: TaskStatus = Field(default=TaskStatus.PENDING)
    worker_ref: UUID | None = None
    completed_by: UUID | None = None

    started_at: datetime | None = None
    completed_at: datetime | None = None

    @model_validator(mode="after")
    def binding_matches_status(self) -> Self:
        if not self.stage.is_work_stage:
            raise ValueError(f"tasks cannot be opened for stage '{self.stage.value}'")
        if self.status.is_bound and self.worker_ref is None:
            raise ValueError(f"{self.status.value} tasks must have a worker_ref")
        if not self.status.is_bound and self.worker_ref is not None:
            raise ValueError(f"{self.status.value} tasks cannot have a worker_ref")
        if self.status == TaskStatus.COMPLETED and self.completed_at is None:
            raise ValueError("completed tasks must have completed_at")
        if self.status != TaskStatus.COMPLETED and (
            self.completed_at is not None or self.completed_by is not None
        ):
            raise ValueError("only completed tasks carry completion data")
        return self

    def transition_to(
        self, status: TaskStatus, *, at: datetime | None = None, **changes: Any
    ) -> "Task":
        """
        Move the task to another status.

        Args:
            status: Target status
            at: Timestamp recorded as ``updated_at``
            **changes: Other field values to replace with the status

        Returns:
            Updated copy of the task

        Raises:
            BusinessRuleError: If the status table forbids the move
        """
        if not self.status.can_transition_to(status):
            raise BusinessRuleError(
                f"Task cannot move from '{self.status.value}' to '{status.value}'",
                {
                    "task_id": str(self.id),
                    "from_status": self.status.value,
                    "to_status": status.value,
                },
            )
        return self.evolve(at=at, status=status, **changes)

    @property
    def is_open(self) -> bool:
        return self.status.is_open

    @property
    def is_in_progress(self) -> bool:
        return self.status == TaskStatus.IN_PROGRESS

    @property
    def is_available(self) -> bool:
        """Check if task can be picked up by a worker."""
        return self.status == TaskStatus.PENDING and self.worker_ref is None

    def is_bound_to(self, worker_id: UUID) -> bool:
        return self.worker_ref == worker_id

    def was_handled_by(self, worker_id: UUID) -> bool:
        """Check if the worker holds or has completed this task."""
        return self.worker_ref == worker_id or self.completed_by == worker_id

    @staticmethod
    def open_for(
        order_ref: UUID, stage: StageId, created_at: datetime | None = None
    ) -> "Task":
        """
        Factory method for a pending task at an order's stage.

        Args:
            order_ref: Order the work belongs to
            stage: Work stage the task covers
            created_at: Creation time (defaults to now)

        Returns:
            New pending Task
        """
        data: dict = {"order_ref": order_ref, "stage": stage}
        if created_at is not None:
            data["created_at"] = created_at
        return Task(**data)
