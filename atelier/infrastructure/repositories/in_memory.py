"""In-memory repositories with optimistic concurrency."""

import asyncio
from collections.abc import Iterable, Mapping
from typing import Generic, TypeVar
from uuid import UUID

from ...core.observability import get_logger
from ...domain.production.entities.order import Order
from ...domain.production.entities.task import Task
from ...domain.production.entities.worker import Worker
from ...domain.production.repositories import (
    AttendanceSource,
    OrderRepository,
    TaskRepository,
    WorkerRepository,
)
from ...domain.production.value_objects.metrics import AttendanceRecord
from ...domain.shared.base import Record
from ...domain.shared.exceptions import ConcurrencyError

logger = get_logger(__name__)

RecordT = TypeVar("RecordT", bound=Record)


class InMemoryRepository(Generic[RecordT]):
    """
    Generic repository backed by a dictionary.

    ``save`` accepts a record only when its ``version`` matches the stored
    one (new records are always accepted) and stores it with the version
    incremented, so two writers that read the same version cannot both win.
    """

    entity_type = "record"

    def __init__(self, records: Iterable[RecordT] = ()) -> None:
        self._items: dict[UUID, RecordT] = {record.id: record for record in records}
        self._lock = asyncio.Lock()

    def __contains__(self, record_id: object) -> bool:
        return record_id in self._items

    def __len__(self) -> int:
        return len(self._items)

    async def save(self, record: RecordT) -> RecordT:
        async with self._lock:
            stored = self._items.get(record.id)
            if stored is not None and stored.version != record.version:
                logger.warning(
                    "Optimistic concurrency conflict",
                    entity_type=self.entity_type,
                    record_id=str(record.id),
                    expected_version=record.version,
                    actual_version=stored.version,
                )
                raise ConcurrencyError(
                    self.entity_type, record.id, record.version, stored.version
                )
            saved = record.model_copy(update={"version": record.version + 1})
            self._items[record.id] = saved
            return saved

    async def get_by_id(self, record_id: UUID) -> RecordT | None:
        return self._items.get(record_id)

    async def get_all(self) -> list[RecordT]:
        return list(self._items.values())


class InMemoryOrderRepository(InMemoryRepository[Order], OrderRepository):
    entity_type = "order"


class InMemoryTaskRepository(InMemoryRepository[Task], TaskRepository):
    entity_type = "task"

    async def get_by_order_id(self, order_id: UUID) -> list[Task]:
        return [task for task in self._items.values() if task.order_ref == order_id]


class InMemoryWorkerRepository(InMemoryRepository[Worker], WorkerRepository):
    entity_type = "worker"


class InMemoryAttendanceSource(AttendanceSource):
    """Attendance figures held in memory; workers without data return None."""

    def __init__(self, records: Mapping[UUID, AttendanceRecord] | None = None) -> None:
        self._records = dict(records or {})

    def record(self, attendance: AttendanceRecord) -> None:
        self._records[attendance.worker_ref] = attendance

    async def get_attendance(self, worker_id: UUID) -> AttendanceRecord | None:
        return self._records.get(worker_id)
