"""Immutable production snapshot passed into the engine."""

from collections.abc import Iterable, Mapping
from types import MappingProxyType
from uuid import UUID

from .entities.order import Order
from .entities.task import Task
from .entities.worker import Worker


class ProductionSnapshot:
    """
    Arena of orders, tasks and workers keyed by id.

    A snapshot is never modified; ``with_*`` methods return a new snapshot
    sharing the untouched records. The caller owns the read-modify-write
    cycle around it.
    """

    __slots__ = ("_orders", "_tasks", "_workers")

    def __init__(
        self,
        orders: Mapping[UUID, Order] | None = None,
        tasks: Mapping[UUID, Task] | None = None,
        workers: Mapping[UUID, Worker] | None = None,
    ) -> None:
        self._orders = MappingProxyType(dict(orders or {}))
        self._tasks = MappingProxyType(dict(tasks or {}))
        self._workers = MappingProxyType(dict(workers or {}))

    @classmethod
    def from_records(
        cls,
        orders: Iterable[Order] = (),
        tasks: Iterable[Task] = (),
        workers: Iterable[Worker] = (),
    ) -> "ProductionSnapshot":
        return cls(
            orders={o.id: o for o in orders},
            tasks={t.id: t for t in tasks},
            workers={w.id: w for w in workers},
        )

    @property
    def orders(self) -> Mapping[UUID, Order]:
        return self._orders

    @property
    def tasks(self) -> Mapping[UUID, Task]:
        return self._tasks

    @property
    def workers(self) -> Mapping[UUID, Worker]:
        return self._workers

    def with_order(self, order: Order) -> "ProductionSnapshot":
        return ProductionSnapshot({**self._orders, order.id: order}, self._tasks, self._workers)

    def with_task(self, task: Task) -> "ProductionSnapshot":
        return self.with_tasks((task,))

    def with_tasks(self, tasks: Iterable[Task]) -> "ProductionSnapshot":
        merged = dict(self._tasks)
        merged.update({t.id: t for t in tasks})
        return ProductionSnapshot(self._orders, merged, self._workers)

    def with_worker(self, worker: Worker) -> "ProductionSnapshot":
        return ProductionSnapshot(self._orders, self._tasks, {**self._workers, worker.id: worker})

    def current_task_for(self, worker_id: UUID) -> Task | None:
        """Derived current task of a worker, or None if unknown or idle."""
        worker = self._workers.get(worker_id)
        if worker is None:
            return None
        return worker.current_task_in(self._tasks.values())

    def tasks_for_order(self, order_id: UUID) -> list[Task]:
        return [t for t in self._tasks.values() if t.order_ref == order_id]

    def __repr__(self) -> str:
        return (
            f"ProductionSnapshot(orders={len(self._orders)}, "
            f"tasks={len(self._tasks)}, workers={len(self._workers)})"
        )
