"""
Station read models.

Read-only views of the production floor for the station screens: head
counts per department and one row per worker station. Everything here is
derived from a record snapshot on every call; nothing is cached or stored.
"""

from collections.abc import Iterable, Mapping
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing_extensions import Self

from ..entities.order import Order
from ..entities.task import Task
from ..entities.worker import Worker
from ..services.assignment_matcher import index_orders
from ..services.stage_transition_engine import progress_for
from ..value_objects.department_map import DepartmentStageMap, normalize_department
from ..value_objects.enums import (
    OrderPriority,
    StageId,
    TaskStatus,
    WorkerStationStatus,
)
from ..value_objects.stage_catalog import DEFAULT_STAGE_CATALOG, StageCatalog

ALL_DEPARTMENTS = "all"


class StationSummary(BaseModel):
    """Head counts for one department (or the whole floor)."""

    model_config = ConfigDict(frozen=True)

    department: str = ALL_DEPARTMENTS
    stage: StageId | None = None

    # Worker counts
    total_workers: int = Field(ge=0, default=0)
    available_workers: int = Field(ge=0, default=0)
    busy_workers: int = Field(ge=0, default=0)
    offline_workers: int = Field(ge=0, default=0)

    # Work counts
    active_tasks: int = Field(ge=0, default=0)
    paused_tasks: int = Field(ge=0, default=0)
    pending_tasks: int = Field(ge=0, default=0)
    pending_orders: int = Field(ge=0, default=0)

    unmapped_departments: tuple[str, ...] = ()

    @model_validator(mode="after")
    def worker_counts_add_up(self) -> Self:
        """Every worker is counted in exactly one of available/busy/offline."""
        counted = self.available_workers + self.busy_workers + self.offline_workers
        if counted != self.total_workers:
            raise ValueError(
                f"worker counts ({counted}) do not add up to total ({self.total_workers})"
            )
        return self

    @property
    def has_configuration_errors(self) -> bool:
        return bool(self.unmapped_departments)

    @property
    def utilization_rate(self) -> float:
        """Share of on-shift workers currently busy (0.0 to 1.0)."""
        on_shift = self.total_workers - self.offline_workers
        if on_shift <= 0:
            return 0.0
        return self.busy_workers / on_shift


class WorkerStation(BaseModel):
    """One row of the station board."""

    model_config = ConfigDict(frozen=True)

    worker_id: UUID
    name: str
    department: str
    role: str | None = None
    status: WorkerStationStatus
    stage: StageId | None = None

    current_task_id: UUID | None = None
    order_id: UUID | None = None
    order_title: str | None = None
    order_priority: OrderPriority | None = None
    order_progress: int | None = Field(default=None, ge=0, le=100)
    paused_tasks: int = Field(ge=0, default=0)


class StationAggregator:
    """
    Builds station views from a snapshot of workers, tasks and orders.

    Departments are resolved to stages through the ``DepartmentStageMap``.
    Workers of an unmapped department are still counted, and the department
    is listed in ``unmapped_departments`` so an operator can fix the mapping.
    """

    def __init__(
        self,
        department_map: DepartmentStageMap,
        catalog: StageCatalog = DEFAULT_STAGE_CATALOG,
    ) -> None:
        self._department_map = department_map
        self._catalog = catalog

    def station_status(self, worker: Worker, tasks: Iterable[Task]) -> WorkerStationStatus:
        if not worker.is_active:
            return WorkerStationStatus.OFFLINE
        if worker.current_task_in(tasks) is not None:
            return WorkerStationStatus.BUSY
        return WorkerStationStatus.AVAILABLE

    def summarize(
        self,
        workers: Iterable[Worker],
        tasks: Iterable[Task],
        orders: Iterable[Order] | Mapping[UUID, Order],
        department_filter: str = ALL_DEPARTMENTS,
    ) -> StationSummary:
        """
        Summarize the floor, or one department of it.

        Args:
            workers: Worker roster snapshot
            tasks: Task snapshot
            orders: Order snapshot
            department_filter: Department name, or ``"all"``

        Returns:
            StationSummary whose worker counts add up to the filtered roster
        """
        task_list = list(tasks)
        order_list = list(index_orders(orders).values())
        everyone = normalize_department(department_filter) == ALL_DEPARTMENTS

        if everyone:
            stage = None
            selected_workers = list(workers)
            selected_tasks = task_list
            pending_orders = sum(1 for o in order_list if o.stage == StageId.PENDING)
        else:
            key = normalize_department(department_filter)
            stage = self._department_map.stage_for(department_filter)
            selected_workers = [
                w for w in workers if normalize_department(w.department) == key
            ]
            selected_tasks = [t for t in task_list if stage is not None and t.stage == stage]
            waiting = {t.order_ref for t in selected_tasks if t.status == TaskStatus.PENDING}
            pending_orders = sum(
                1 for o in order_list if o.stage == stage and o.id in waiting
            )

        statuses = [self.station_status(w, task_list) for w in selected_workers]
        unmapped = self._unmapped(selected_workers)
        if not everyone and stage is None and not unmapped:
            unmapped = (department_filter.strip(),)

        return StationSummary(
            department=ALL_DEPARTMENTS if everyone else department_filter.strip(),
            stage=stage,
            total_workers=len(selected_workers),
            available_workers=statuses.count(WorkerStationStatus.AVAILABLE),
            busy_workers=statuses.count(WorkerStationStatus.BUSY),
            offline_workers=statuses.count(WorkerStationStatus.OFFLINE),
            active_tasks=sum(1 for t in selected_tasks if t.status == TaskStatus.IN_PROGRESS),
            paused_tasks=sum(1 for t in selected_tasks if t.status == TaskStatus.PAUSED),
            pending_tasks=sum(1 for t in selected_tasks if t.is_available),
            pending_orders=pending_orders,
            unmapped_departments=unmapped,
        )

    def summarize_by_department(
        self,
        workers: Iterable[Worker],
        tasks: Iterable[Task],
        orders: Iterable[Order] | Mapping[UUID, Order],
    ) -> dict[str, StationSummary]:
        """One summary per configured department, keyed by department name."""
        worker_list = list(workers)
        task_list = list(tasks)
        order_index = index_orders(orders)
        return {
            department: self.summarize(worker_list, task_list, order_index, department)
            for department in self._department_map.departments
        }

    def station_board(
        self,
        workers: Iterable[Worker],
        tasks: Iterable[Task],
        orders: Iterable[Order] | Mapping[UUID, Order],
        department_filter: str = ALL_DEPARTMENTS,
    ) -> list[WorkerStation]:
        """
        Build the per-worker station rows, sorted by name.

        The current task is derived by worker id; the order title, priority
        and progress come from the task's order when it is in the snapshot.
        """
        task_list = list(tasks)
        order_index = index_orders(orders)
        key = normalize_department(department_filter)

        rows: list[WorkerStation] = []
        for worker in sorted(workers, key=lambda w: (w.name.casefold(), str(w.id))):
            if key != ALL_DEPARTMENTS and normalize_department(worker.department) != key:
                continue
            current = worker.current_task_in(task_list)
            order = order_index.get(current.order_ref) if current else None
            rows.append(
                WorkerStation(
                    worker_id=worker.id,
                    name=worker.name,
                    department=worker.department,
                    role=worker.role,
                    status=self.station_status(worker, task_list),
                    stage=self._department_map.stage_for(worker.department),
                    current_task_id=current.id if current else None,
                    order_id=current.order_ref if current else None,
                    order_title=order.title if order else None,
                    order_priority=order.priority if order else None,
                    order_progress=progress_for(order.stage, self._catalog)
                    if order
                    else None,
                    paused_tasks=len(worker.paused_tasks_in(task_list)),
                )
            )
        return rows

    def _unmapped(self, workers: Iterable[Worker]) -> tuple[str, ...]:
        seen: dict[str, str] = {}
        for worker in workers:
            if not self._department_map.is_mapped(worker.department):
                seen.setdefault(normalize_department(worker.department), worker.department)
        return tuple(sorted(seen.values()))
