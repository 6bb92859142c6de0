"""
Domain Events

Events produced by the production engine. Services attach them to their
``Success`` results; the application layer publishes them after the new
records are persisted.
"""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from ...shared.base import DomainEvent


@dataclass(frozen=True, kw_only=True)
class OrderStarted(DomainEvent):
    """Raised when an order leaves ``pending``."""

    order_id: UUID
    stage: str
    started_at: datetime


@dataclass(frozen=True, kw_only=True)
class OrderStageAdvanced(DomainEvent):
    """Raised on every forward stage move."""

    order_id: UUID
    from_stage: str
    to_stage: str
    progress: int


@dataclass(frozen=True, kw_only=True)
class OrderCompleted(DomainEvent):
    """Raised when an order reaches the terminal stage."""

    order_id: UUID
    completed_at: datetime


@dataclass(frozen=True, kw_only=True)
class TaskOpened(DomainEvent):
    """Raised when a pending task is created for an order's stage."""

    task_id: UUID
    order_id: UUID
    stage: str


@dataclass(frozen=True, kw_only=True)
class TaskClosed(DomainEvent):
    """Raised when an unassigned task is closed because its order moved on."""

    task_id: UUID
    order_id: UUID
    stage: str


@dataclass(frozen=True, kw_only=True)
class TaskAssigned(DomainEvent):
    """Raised when a worker is bound to a pending task."""

    task_id: UUID
    order_id: UUID
    worker_id: UUID
    stage: str


@dataclass(frozen=True, kw_only=True)
class TaskCompleted(DomainEvent):
    """Raised when a worker completes their current task."""

    task_id: UUID
    order_id: UUID
    worker_id: UUID
    stage: str
    completed_at: datetime


@dataclass(frozen=True, kw_only=True)
class TaskPaused(DomainEvent):
    """Raised when in-progress work is interrupted."""

    task_id: UUID
    worker_id: UUID


@dataclass(frozen=True, kw_only=True)
class TaskResumed(DomainEvent):
    """Raised when paused work is picked up again."""

    task_id: UUID
    worker_id: UUID


@dataclass(frozen=True, kw_only=True)
class OrderReadyToAdvance(DomainEvent):
    """
    Raised when the last open task of an order's stage is completed.

    This is a signal only; advancing the order stays a separate caller action.
    """

    order_id: UUID
    stage: str


__all__ = [
    "DomainEvent",
    "OrderCompleted",
    "OrderReadyToAdvance",
    "OrderStageAdvanced",
    "OrderStarted",
    "TaskAssigned",
    "TaskClosed",
    "TaskCompleted",
    "TaskOpened",
    "TaskPaused",
    "TaskResumed",
]
