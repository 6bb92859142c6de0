"""
Test factories for production records.

Factory functions take keyword overrides so each test states only the
fields it cares about. Timestamps default to a fixed, timezone-aware base
time so ordering-sensitive assertions are deterministic.
"""

from datetime import UTC, datetime, timedelta
from uuid import UUID

from atelier.domain.production.entities.order import Order
from atelier.domain.production.entities.task import Task
from atelier.domain.production.entities.worker import Worker
from atelier.domain.production.value_objects.department_map import DepartmentStageMap
from atelier.domain.production.value_objects.enums import (
    OrderPriority,
    StageId,
    TaskStatus,
)

BASE_TIME = datetime(2024, 3, 4, 8, 0, tzinfo=UTC)  # Monday 8:00


def at(minutes: int) -> datetime:
    """Base time shifted by a number of minutes."""
    return BASE_TIME + timedelta(minutes=minutes)


class FixedClock:
    """Manually advanced clock injected into the domain services."""

    def __init__(self, start: datetime = BASE_TIME) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def tick(self, minutes: int = 1) -> datetime:
        self.now += timedelta(minutes=minutes)
        return self.now


def make_department_map(**overrides: str) -> DepartmentStageMap:
    mapping = {
        "design": "design",
        "cutting": "cutting",
        "sewing": "sewing",
        "tailoring": "sewing",
        "fitting": "fitting",
    }
    mapping.update(overrides)
    return DepartmentStageMap.from_mapping(mapping)


def make_order(
    title: str = "Wedding dress",
    stage: StageId = StageId.PENDING,
    priority: OrderPriority = OrderPriority.MEDIUM,
    created_at: datetime = BASE_TIME,
    **overrides,
) -> Order:
    data: dict = {
        "title": title,
        "stage": stage,
        "priority": priority,
        "created_at": created_at,
    }
    if stage != StageId.PENDING:
        data["started_at"] = created_at
    if stage == StageId.COMPLETED:
        data["completed_at"] = created_at + timedelta(days=1)
    data.update(overrides)
    return Order(**data)


def make_task(
    order: Order | None = None,
    stage: StageId | None = None,
    status: TaskStatus = TaskStatus.PENDING,
    worker_ref: UUID | None = None,
    created_at: datetime = BASE_TIME,
    **overrides,
) -> Task:
    order_ref = order.id if order is not None else overrides.pop("order_ref")
    if stage is None:
        stage = order.stage if order is not None and order.stage.is_work_stage else StageId.DESIGN
    data: dict = {
        "order_ref": order_ref,
        "stage": stage,
        "status": status,
        "worker_ref": worker_ref,
        "created_at": created_at,
    }
    if status == TaskStatus.COMPLETED:
        data.setdefault("completed_at", created_at + timedelta(hours=1))
        data["completed_by"] = worker_ref
        data["worker_ref"] = None
    data.update(overrides)
    return Task(**data)


def make_worker(
    name: str = "Ana",
    department: str = "design",
    is_active: bool = True,
    **overrides,
) -> Worker:
    return Worker(name=name, department=department, is_active=is_active, **overrides)
