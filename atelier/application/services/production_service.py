"""
Production application service.

Coordinates the read-modify-write cycle around the pure production engine:
fetch a snapshot from the repositories, ask the domain services for the
change, persist the changed records with version checks, then publish the
resulting domain events.
"""

import asyncio
from collections import Counter
from collections.abc import AsyncIterator, Callable, Iterable
from contextlib import asynccontextmanager
from datetime import datetime
from uuid import UUID

from ...core.config import settings
from ...core.observability import (
    get_logger,
    record_assignment_outcome,
    record_configuration_error,
    record_stage_transition,
)
from ...domain.production.entities.order import Order
from ...domain.production.entities.task import Task
from ...domain.production.entities.worker import Worker
from ...domain.production.events import OrderStageAdvanced
from ...domain.production.read_models.station_summary import (
    ALL_DEPARTMENTS,
    StationAggregator,
    StationSummary,
    WorkerStation,
)
from ...domain.production.repositories import (
    AttendanceSource,
    OrderRepository,
    TaskRepository,
    WorkerRepository,
)
from ...domain.production.services.assignment_matcher import (
    AssignmentMatcher,
    Distribution,
    TaskCompletion,
)
from ...domain.production.services.metrics_calculator import MetricsCalculator
from ...domain.production.services.stage_transition_engine import (
    StageTransitionEngine,
)
from ...domain.production.snapshot import ProductionSnapshot
from ...domain.production.value_objects.department_map import DepartmentStageMap
from ...domain.production.value_objects.metrics import (
    AttendanceRecord,
    PerformanceSnapshot,
    TrackingStatistics,
)
from ...domain.production.value_objects.stage_catalog import (
    DEFAULT_STAGE_CATALOG,
    StageCatalog,
)
from ...domain.shared.base import DomainEvent, utcnow
from ...domain.shared.exceptions import (
    ConcurrencyError,
    OrderNotFoundError,
    TaskNotFoundError,
    WorkerNotFoundError,
)
from ...domain.shared.results import ErrorKind, Failure, Result, Success
from ...infrastructure.events.event_bus import EventBusInterface

logger = get_logger(__name__)


class ProductionService:
    """
    Application service for the production floor.

    Every mutation returns the engine's ``Success | Failure`` result with the
    persisted records. Missing records raise ``RecordNotFoundError``
    subclasses; a version conflict while saving an order raises
    ``ConcurrencyError``. A conflict while binding a task is reported as
    ``TASK_UNAVAILABLE`` so the caller can retry with a fresh snapshot, and a
    conflict while closing leftover tasks on advance as ``INVALID_TRANSITION``.

    Within one process, operations on the same worker or order run one at a
    time. Binding a task takes the worker lock first, then the order lock,
    and re-checks the assignment against freshly loaded tasks.
    """

    def __init__(
        self,
        order_repository: OrderRepository,
        task_repository: TaskRepository,
        worker_repository: WorkerRepository,
        event_bus: EventBusInterface | None = None,
        attendance_source: AttendanceSource | None = None,
        department_map: DepartmentStageMap | None = None,
        catalog: StageCatalog = DEFAULT_STAGE_CATALOG,
        clock: Callable[[], datetime] = utcnow,
        neutral_efficiency: float | None = None,
        auto_open_stage_tasks: bool | None = None,
        close_unassigned_tasks_on_advance: bool | None = None,
    ):
        """
        Initialize the production service.

        Args:
            order_repository: Order store
            task_repository: Task store
            worker_repository: Worker roster
            event_bus: Where domain events are published (optional)
            attendance_source: Attendance/biometric service (optional)
            department_map: Department to stage table (defaults to settings)
            catalog: Pipeline definition
            clock: Source of "now"
            neutral_efficiency: Efficiency for workers without history
            auto_open_stage_tasks: Open a task whenever an order enters a work stage
            close_unassigned_tasks_on_advance: Close leftover pending tasks on advance
        """
        self._order_repository = order_repository
        self._task_repository = task_repository
        self._worker_repository = worker_repository
        self._event_bus = event_bus
        self._attendance_source = attendance_source
        self._department_map = department_map or DepartmentStageMap.from_settings()
        self._clock = clock

        self._engine = StageTransitionEngine(catalog, clock)
        self._matcher = AssignmentMatcher(self._department_map, clock)
        self._metrics = MetricsCalculator(
            catalog,
            neutral_efficiency
            if neutral_efficiency is not None
            else settings.NEUTRAL_EFFICIENCY_BASELINE,
            clock,
        )
        self._aggregator = StationAggregator(self._department_map, catalog)

        self._auto_open_stage_tasks = (
            settings.AUTO_OPEN_STAGE_TASKS
            if auto_open_stage_tasks is None
            else auto_open_stage_tasks
        )
        self._close_unassigned_tasks = (
            settings.CLOSE_UNASSIGNED_TASKS_ON_ADVANCE
            if close_unassigned_tasks_on_advance is None
            else close_unassigned_tasks_on_advance
        )

        # Single logical writer per order/worker within this process.
        # Bindings take the worker lock, then the order lock.
        self._locks: dict[UUID, asyncio.Lock] = {}
        self._lock_users: Counter[UUID] = Counter()

    # Order workflow

    async def start_order(self, order_id: UUID) -> Result[Order]:
        """
        Start production of a pending order.

        Args:
            order_id: Order to start

        Returns:
            Success with the saved order at the first work stage, or
            INVALID_TRANSITION

        Raises:
            OrderNotFoundError: If the order does not exist
        """
        async with self._locked(order_id):
            order = await self._get_order(order_id)
            result = self._engine.start(order)
            if isinstance(result, Failure):
                return self._rejected("start_order", result)
            return await self._persist_stage_move("start_order", order, result, ())

    async def advance_order(self, order_id: UUID) -> Result[Order]:
        """
        Move an order to the next stage.

        Refused with INVALID_TRANSITION while a worker still holds a task of
        the current stage (in progress or paused). Unassigned pending tasks
        of the stage being left are closed, and a task is opened for the new
        stage when it takes work.

        Args:
            order_id: Order to advance

        Returns:
            Success with the saved order, or INVALID_TRANSITION (also when
            a leftover task was taken by another writer before it could be
            closed; the order then stays at its stage)

        Raises:
            OrderNotFoundError: If the order does not exist
            ConcurrencyError: If the order was changed concurrently
        """
        async with self._locked(order_id):
            order = await self._get_order(order_id)
            tasks = await self._task_repository.get_by_order_id(order_id)

            held = [t for t in tasks if t.stage == order.stage and t.status.is_bound]
            if held:
                return self._rejected(
                    "advance_order",
                    Failure(
                        ErrorKind.INVALID_TRANSITION,
                        f"Order '{order.title}' still has {len(held)} assigned "
                        f"task(s) at stage '{order.stage.value}'",
                        {
                            "order_id": str(order.id),
                            "current_stage": order.stage.value,
                            "assigned_tasks": len(held),
                        },
                    ),
                )

            result = self._engine.advance(order)
            if isinstance(result, Failure):
                return self._rejected("advance_order", result)

            closed: Success[list[Task]] = Success([])
            if self._close_unassigned_tasks:
                closed = self._engine.close_stage_tasks(order, tasks)
            return await self._persist_stage_move(
                "advance_order", order, result, closed.value, closed.events
            )

    async def order_progress(self, order_id: UUID) -> int:
        """Integer progress percentage of an order."""
        order = await self._get_order(order_id)
        return self._metrics.compute_order_progress(order)

    # Assignment workflow

    async def claim_next_task(self, worker_id: UUID) -> Result[Task]:
        """
        Find the best pending task for a worker and bind it.

        Returns:
            Success with the bound task; NO_ELIGIBLE_TASK when there is
            nothing to do; otherwise the assignment failure

        Raises:
            WorkerNotFoundError: If the worker does not exist
        """
        async with self._locked(worker_id):
            worker = await self._get_worker(worker_id)
            snapshot = await self._load_snapshot()
            tasks = list(snapshot.tasks.values())

            found = self._matcher.find_task_for_worker(worker, tasks, snapshot.orders)
            if isinstance(found, Failure):
                return self._rejected("claim_next_task", found)
            async with self._locked(found.value.order_ref):
                return await self._assign_fresh("claim_next_task", worker, found.value.id)

    async def assign_task(self, worker_id: UUID, task_id: UUID) -> Result[Task]:
        """
        Bind a specific task to a worker.

        Raises:
            WorkerNotFoundError: If the worker does not exist
            TaskNotFoundError: If the task does not exist
        """
        async with self._locked(worker_id):
            worker = await self._get_worker(worker_id)
            task = await self._get_task(task_id)
            async with self._locked(task.order_ref):
                return await self._assign_fresh("assign_task", worker, task_id)

    async def complete_current_task(self, worker_id: UUID) -> Result[TaskCompletion]:
        """
        Complete the worker's in-progress task.

        The order is not advanced; an ``OrderReadyToAdvance`` event is
        published when the stage has no other open work.

        Raises:
            WorkerNotFoundError: If the worker does not exist
        """
        async with self._locked(worker_id):
            worker = await self._get_worker(worker_id)
            tasks = await self._task_repository.get_all()
            result = self._matcher.complete(worker, tasks)
            if isinstance(result, Failure):
                return self._rejected("complete_task", result)

            saved = await self._task_repository.save(result.value.task)
            completion = TaskCompletion(
                task=saved, order_ready_to_advance=result.value.order_ready_to_advance
            )
            record_assignment_outcome("complete_task", "success")
            logger.info(
                "Task completed",
                worker_id=str(worker_id),
                task_id=str(saved.id),
                order_id=str(saved.order_ref),
                order_ready_to_advance=completion.order_ready_to_advance,
            )
            await self._publish(result.events)
            return Success(completion, result.events)

    async def pause_current_task(self, worker_id: UUID) -> Result[Task]:
        """Pause the worker's in-progress task."""
        async with self._locked(worker_id):
            worker = await self._get_worker(worker_id)
            tasks = await self._task_repository.get_all()
            result = self._matcher.pause(worker, tasks)
            if isinstance(result, Failure):
                return self._rejected("pause_task", result)
            return await self._save_task("pause_task", result)

    async def resume_task(self, worker_id: UUID, task_id: UUID) -> Result[Task]:
        """Resume one of the worker's paused tasks."""
        async with self._locked(worker_id):
            worker = await self._get_worker(worker_id)
            task = await self._get_task(task_id)
            tasks = await self._task_repository.get_all()
            result = self._matcher.resume(worker, task, tasks)
            if isinstance(result, Failure):
                return self._rejected("resume_task", result)
            return await self._save_task("resume_task", result)

    async def auto_distribute(self) -> Distribution:
        """
        Hand every idle worker the best remaining task.

        The pairs are planned on one snapshot, then each is re-checked under
        the worker's and the order's lock against freshly loaded tasks before
        it is saved. Pairs that no longer hold (the worker took other work or
        the task was taken) are dropped and their workers reported idle.
        """
        snapshot = await self._load_snapshot()
        planned = self._matcher.auto_distribute(
            snapshot.workers.values(), snapshot.tasks.values(), snapshot.orders
        )
        for failure in planned.configuration_errors:
            self._rejected("auto_distribute", failure)

        saved: list[Task] = []
        events: list[DomainEvent] = []
        idle = list(planned.idle_workers)
        for task in planned.assigned:
            worker_id = task.worker_ref
            if worker_id is None:
                continue
            async with self._locked(worker_id):
                worker = await self._get_worker(worker_id)
                async with self._locked(task.order_ref):
                    result = await self._assign_fresh("auto_distribute", worker, task.id)
            if isinstance(result, Failure):
                idle.append(worker_id)
                continue
            saved.append(result.value)
            events.extend(result.events)

        logger.info(
            "Workers distributed",
            assigned=len(saved),
            idle_workers=len(idle),
            configuration_errors=len(planned.configuration_errors),
        )
        return Distribution(
            assigned=tuple(saved),
            idle_workers=tuple(idle),
            configuration_errors=planned.configuration_errors,
            events=tuple(events),
        )

    # Read side

    async def worker_performance(self, worker_id: UUID) -> PerformanceSnapshot:
        """
        Performance snapshot of one worker.

        Raises:
            WorkerNotFoundError: If the worker does not exist
        """
        worker = await self._get_worker(worker_id)
        tasks = await self._task_repository.get_all()
        attendance = await self._attendance_for(worker_id)
        return self._metrics.compute_worker_performance(worker, tasks, attendance)

    async def station_summary(
        self, department_filter: str = ALL_DEPARTMENTS
    ) -> StationSummary:
        """Head counts for a department, or for the whole floor."""
        snapshot = await self._load_snapshot()
        summary = self._aggregator.summarize(
            snapshot.workers.values(),
            snapshot.tasks.values(),
            snapshot.orders,
            department_filter,
        )
        self._report_unmapped(summary.unmapped_departments)
        return summary

    async def station_board(
        self, department_filter: str = ALL_DEPARTMENTS
    ) -> list[WorkerStation]:
        """Per-worker station rows for a department, or for the whole floor."""
        snapshot = await self._load_snapshot()
        return self._aggregator.station_board(
            snapshot.workers.values(),
            snapshot.tasks.values(),
            snapshot.orders,
            department_filter,
        )

    async def tracking_statistics(self) -> TrackingStatistics:
        snapshot = await self._load_snapshot()
        attendance: dict[UUID, AttendanceRecord] = {}
        for worker_id in snapshot.workers:
            record = await self._attendance_for(worker_id)
            if record is not None:
                attendance[worker_id] = record
        return self._metrics.compute_tracking_statistics(
            snapshot.orders.values(),
            snapshot.workers.values(),
            snapshot.tasks.values(),
            attendance,
            self._clock(),
        )

    # Helpers

    async def _load_snapshot(self) -> ProductionSnapshot:
        orders, tasks, workers = await asyncio.gather(
            self._order_repository.get_all(),
            self._task_repository.get_all(),
            self._worker_repository.get_all(),
        )
        return ProductionSnapshot.from_records(orders, tasks, workers)

    async def _get_order(self, order_id: UUID) -> Order:
        order = await self._order_repository.get_by_id(order_id)
        if order is None:
            raise OrderNotFoundError(order_id)
        return order

    async def _get_task(self, task_id: UUID) -> Task:
        task = await self._task_repository.get_by_id(task_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        return task

    async def _get_worker(self, worker_id: UUID) -> Worker:
        worker = await self._worker_repository.get_by_id(worker_id)
        if worker is None:
            raise WorkerNotFoundError(worker_id)
        return worker

    async def _attendance_for(self, worker_id: UUID) -> AttendanceRecord | None:
        if self._attendance_source is None:
            return None
        return await self._attendance_source.get_attendance(worker_id)

    @asynccontextmanager
    async def _locked(self, key: UUID) -> AsyncIterator[None]:
        """Hold the writer lock for an order or worker id; unused locks are dropped."""
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._lock_users[key] += 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[key] -= 1
            if not self._lock_users[key]:
                del self._lock_users[key]
                del self._locks[key]

    async def _assign_fresh(
        self, operation: str, worker: Worker, task_id: UUID
    ) -> Result[Task]:
        # Callers hold the worker and order locks; decide on current records
        task = await self._get_task(task_id)
        tasks = await self._task_repository.get_all()
        return await self._bind(operation, self._matcher.assign(worker, task, tasks))

    async def _persist_stage_move(
        self,
        operation: str,
        previous: Order,
        result: Success[Order],
        closed_tasks: Iterable[Task],
        closed_events: tuple[DomainEvent, ...] = (),
    ) -> Result[Order]:
        # Leftover tasks go first so a lost race leaves the order where it was
        for task in closed_tasks:
            try:
                await self._task_repository.save(task)
            except ConcurrencyError as exc:
                return self._rejected(
                    operation,
                    Failure(
                        ErrorKind.INVALID_TRANSITION,
                        f"Task {task.id} at stage '{previous.stage.value}' was "
                        f"taken while order '{previous.title}' was advancing",
                        {
                            "order_id": str(previous.id),
                            "current_stage": previous.stage.value,
                            "task_id": str(task.id),
                            "expected_version": exc.expected,
                            "actual_version": exc.actual,
                        },
                    ),
                )
        saved = await self._order_repository.save(result.value)

        events: list[DomainEvent] = [*closed_events, *result.events]
        if self._auto_open_stage_tasks and saved.stage.is_work_stage:
            opened = self._engine.open_stage_task(saved)
            if isinstance(opened, Success):
                await self._task_repository.save(opened.value)
                events.extend(opened.events)

        record_stage_transition(previous.stage.value, saved.stage.value)
        logger.info(
            "Order stage advanced",
            order_id=str(saved.id),
            from_stage=previous.stage.value,
            to_stage=saved.stage.value,
            progress=next(
                (e.progress for e in events if isinstance(e, OrderStageAdvanced)), None
            ),
        )
        await self._publish(events)
        return Success(saved, tuple(events))

    async def _bind(self, operation: str, result: Result[Task]) -> Result[Task]:
        if isinstance(result, Failure):
            return self._rejected(operation, result)
        try:
            saved = await self._task_repository.save(result.value)
        except ConcurrencyError as exc:
            return self._rejected(
                operation,
                Failure(
                    ErrorKind.TASK_UNAVAILABLE,
                    f"Task {result.value.id} was taken by another assignment",
                    {
                        "task_id": str(result.value.id),
                        "expected_version": exc.expected,
                        "actual_version": exc.actual,
                    },
                ),
            )
        record_assignment_outcome(operation, "success")
        logger.info(
            "Task assigned",
            worker_id=str(saved.worker_ref),
            task_id=str(saved.id),
            order_id=str(saved.order_ref),
            stage=saved.stage.value,
        )
        await self._publish(result.events)
        return Success(saved, result.events)

    async def _save_task(self, operation: str, result: Success[Task]) -> Success[Task]:
        saved = await self._task_repository.save(result.value)
        record_assignment_outcome(operation, "success")
        logger.info(
            "Task updated",
            operation=operation,
            task_id=str(saved.id),
            status=saved.status.value,
        )
        await self._publish(result.events)
        return Success(saved, result.events)

    def _rejected(self, operation: str, failure: Failure) -> Failure:
        """Log and count a failure, then hand it back to the caller."""
        if failure.kind.is_configuration_error:
            department = str(failure.details.get("department", ""))
            record_configuration_error(department)
            logger.warning(
                "Unknown department mapping",
                operation=operation,
                department=department,
                **{k: v for k, v in failure.details.items() if k != "department"},
            )
        elif not failure.is_actionable:
            logger.debug("Nothing to do", operation=operation, reason=failure.message)
        else:
            logger.info(
                "Operation rejected",
                operation=operation,
                kind=failure.kind.value,
                reason=failure.message,
            )
        record_assignment_outcome(operation, failure.kind.value)
        return failure

    def _report_unmapped(self, departments: Iterable[str]) -> None:
        for department in departments:
            record_configuration_error(department)
            logger.warning("Unknown department mapping", department=department)

    async def _publish(self, events: Iterable[DomainEvent]) -> None:
        if self._event_bus is None:
            return
        for event in events:
            await self._event_bus.publish_async(event)
