"""Order record: a customer order moving through the production pipeline."""

from datetime import datetime
from uuid import UUID

from pydantic import Field, field_validator, model_validator
from typing_extensions import Self

from ...shared.base import Record
from ..value_objects.enums import OrderPriority, OrderStatus, StageId


class Order(Record):
    """
    Manufacturing work item.

    Orders are created by the order-intake flow at ``pending``. From then on
    the stage transition engine is the only writer of ``stage``, until the
    order reaches ``completed`` and becomes read-only to the engine.
    """

    title: str = Field(min_length=1, max_length=200)
    client_ref: UUID | None = None
    priority: OrderPriority = Field(default=OrderPriority.MEDIUM)
    stage: StageId = Field(default=StageId.PENDING)
    status: OrderStatus = Field(default=OrderStatus.PENDING)
    assigned_worker_ref: UUID | None = None

    estimated_hours: float = Field(default=0.0, ge=0.0)
    actual_hours: float = Field(default=0.0, ge=0.0)

    due_date: datetime | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("title must not be blank")
        return v

    @model_validator(mode="after")
    def completion_matches_stage(self) -> Self:
        """``completed_at`` is set iff the order is at the terminal stage."""
        if self.stage.is_terminal and self.completed_at is None:
            raise ValueError("completed orders must have completed_at")
        if not self.stage.is_terminal and self.completed_at is not None:
            raise ValueError(
                f"order at stage '{self.stage.value}' cannot have completed_at"
            )
        if (
            self.started_at is not None
            and self.completed_at is not None
            and self.completed_at < self.started_at
        ):
            raise ValueError("completed_at must not be before started_at")
        return self

    @property
    def is_complete(self) -> bool:
        return self.stage.is_terminal

    @property
    def is_started(self) -> bool:
        return self.stage != StageId.PENDING

    @staticmethod
    def create(
        title: str,
        client_ref: UUID | None = None,
        priority: OrderPriority = OrderPriority.MEDIUM,
        estimated_hours: float = 0.0,
        due_date: datetime | None = None,
        created_at: datetime | None = None,
    ) -> "Order":
        """
        Factory method for a freshly taken order at the ``pending`` stage.

        Args:
            title: Order title shown on the screens
            client_ref: Client the order belongs to
            priority: Order priority level
            estimated_hours: Planned production effort
            due_date: Promised delivery date
            created_at: Intake time (defaults to now; drives FIFO ordering)

        Returns:
            New Order instance
        """
        data: dict = {
            "title": title,
            "client_ref": client_ref,
            "priority": priority,
            "estimated_hours": estimated_hours,
            "due_date": due_date,
        }
        if created_at is not None:
            data["created_at"] = created_at
        return Order(**data)
