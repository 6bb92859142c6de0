"""
Assignment Matcher Domain Service

Matches idle workers to pending work in their department and performs the
task binding transitions (assign, complete, pause, resume). Department to
stage matching always goes through the ``DepartmentStageMap``.
"""

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID

from ...shared.base import DomainEvent, utcnow
from ...shared.results import ErrorKind, Failure, Result, Success
from ..entities.order import Order
from ..entities.task import Task
from ..entities.worker import Worker
from ..events import (
    OrderReadyToAdvance,
    TaskAssigned,
    TaskCompleted,
    TaskPaused,
    TaskResumed,
)
from ..value_objects.department_map import DepartmentStageMap
from ..value_objects.enums import TaskStatus


@dataclass(frozen=True)
class TaskCompletion:
    """Outcome of ``complete``: the closed task and the advancement signal."""

    task: Task
    order_ready_to_advance: bool


@dataclass(frozen=True)
class Distribution:
    """Outcome of ``auto_distribute``."""

    assigned: tuple[Task, ...] = ()
    idle_workers: tuple[UUID, ...] = ()
    configuration_errors: tuple[Failure, ...] = ()
    events: tuple[DomainEvent, ...] = field(default=())


def index_orders(orders: Iterable[Order] | Mapping[UUID, Order]) -> dict[UUID, Order]:
    if isinstance(orders, Mapping):
        return dict(orders)
    return {order.id: order for order in orders}


class AssignmentMatcher:
    """
    Domain service pairing workers with tasks.

    Eligibility: the task is pending and unbound, and its stage is the stage
    the worker's department maps to. Among eligible tasks the highest order
    priority wins, then the oldest order (FIFO within a priority band), then
    the oldest task, then ids, so the choice is total and repeatable.
    """

    def __init__(
        self,
        department_map: DepartmentStageMap,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        """
        Initialize the matcher.

        Args:
            department_map: Department to stage lookup table
            clock: Source of "now" for timestamps
        """
        self._department_map = department_map
        self._clock = clock

    @property
    def department_map(self) -> DepartmentStageMap:
        return self._department_map

    def is_eligible(self, worker: Worker, task: Task) -> bool:
        """Check if ``task`` is pending work of ``worker``'s department."""
        stage = self._department_map.stage_for(worker.department)
        return stage is not None and task.is_available and task.stage == stage

    def task_priority_key(
        self, task: Task, orders: Mapping[UUID, Order]
    ) -> tuple:
        """
        Sort key for eligible tasks (smallest key is served first).

        Tasks whose order is missing from the snapshot sort after every task
        with a known order.
        """
        order = orders.get(task.order_ref)
        if order is None:
            return (1, 0, task.created_at, str(task.order_ref), str(task.id))
        return (
            0,
            -order.priority.rank,
            order.created_at,
            task.created_at,
            str(order.id),
            str(task.id),
        )

    def eligible_tasks(
        self,
        worker: Worker,
        tasks: Iterable[Task],
        orders: Iterable[Order] | Mapping[UUID, Order],
    ) -> list[Task]:
        """All tasks the worker may pick up, best first."""
        order_index = index_orders(orders)
        eligible = [task for task in tasks if self.is_eligible(worker, task)]
        eligible.sort(key=lambda task: self.task_priority_key(task, order_index))
        return eligible

    def find_task_for_worker(
        self,
        worker: Worker,
        tasks: Iterable[Task],
        orders: Iterable[Order] | Mapping[UUID, Order],
    ) -> Result[Task]:
        """
        Find the best pending task for a worker.

        Args:
            worker: Worker looking for work
            tasks: Current task snapshot
            orders: Orders the tasks belong to (priority and FIFO tie-break)

        Returns:
            Success with the chosen task; NO_ELIGIBLE_TASK when nothing
            matches; UNKNOWN_DEPARTMENT_MAPPING when the worker's department
            is not configured
        """
        if not self._department_map.is_mapped(worker.department):
            return self._unmapped(worker)

        eligible = self.eligible_tasks(worker, tasks, orders)
        if not eligible:
            return Failure(
                ErrorKind.NO_ELIGIBLE_TASK,
                f"No pending work for department '{worker.department}'",
                {"worker_id": str(worker.id), "department": worker.department},
            )
        return Success(eligible[0])

    def find_worker_for_task(
        self, task: Task, workers: Iterable[Worker], tasks: Iterable[Task]
    ) -> Result[Worker]:
        """
        Find an idle worker for a pending task.

        Candidates are active, idle workers whose department maps to the
        task's stage. The least loaded candidate (fewest tasks ever handled)
        wins, then name, then id.

        Returns:
            Success with the worker, TASK_UNAVAILABLE if the task cannot be
            picked up, or NO_ELIGIBLE_TASK if no worker is free for it
        """
        if not task.is_available:
            return self._task_unavailable(task)

        task_list = list(tasks)
        candidates = [
            worker
            for worker in workers
            if worker.is_idle_in(task_list) and self.is_eligible(worker, task)
        ]
        if not candidates:
            return Failure(
                ErrorKind.NO_ELIGIBLE_TASK,
                f"No idle worker for stage '{task.stage.value}'",
                {"task_id": str(task.id), "stage": task.stage.value},
            )

        def load(worker: Worker) -> int:
            return sum(1 for t in task_list if t.was_handled_by(worker.id))

        candidates.sort(key=lambda w: (load(w), w.name.casefold(), str(w.id)))
        return Success(candidates[0])

    def assign(self, worker: Worker, task: Task, tasks: Iterable[Task]) -> Result[Task]:
        """
        Bind a worker to a pending task.

        Args:
            worker: Worker taking the task
            task: Task to bind
            tasks: Current task snapshot (used for the exclusivity check)

        Returns:
            Success with the task now ``in_progress`` and bound to the worker,
            or a failure: WORKER_INACTIVE, WORKER_BUSY, TASK_UNAVAILABLE,
            UNKNOWN_DEPARTMENT_MAPPING or DEPARTMENT_MISMATCH
        """
        if not worker.is_active:
            return Failure(
                ErrorKind.WORKER_INACTIVE,
                f"Worker '{worker.name}' is not active",
                {"worker_id": str(worker.id)},
            )

        current = worker.current_task_in(tasks)
        if current is not None:
            return Failure(
                ErrorKind.WORKER_BUSY,
                f"Worker '{worker.name}' is already working on another task",
                {"worker_id": str(worker.id), "current_task_id": str(current.id)},
            )

        if not task.is_available:
            return self._task_unavailable(task)

        stage = self._department_map.stage_for(worker.department)
        if stage is None:
            return self._unmapped(worker)
        if task.stage != stage:
            return Failure(
                ErrorKind.DEPARTMENT_MISMATCH,
                f"Department '{worker.department}' does not work stage "
                f"'{task.stage.value}'",
                {
                    "worker_id": str(worker.id),
                    "task_id": str(task.id),
                    "department_stage": stage.value,
                    "task_stage": task.stage.value,
                },
            )

        now = self._clock()
        assigned = task.transition_to(
            TaskStatus.IN_PROGRESS,
            at=now,
            worker_ref=worker.id,
            started_at=task.started_at or now,
        )
        event = TaskAssigned(
            aggregate_id=task.order_ref,
            occurred_at=now,
            task_id=task.id,
            order_id=task.order_ref,
            worker_id=worker.id,
            stage=task.stage.value,
        )
        return Success(assigned, (event,))

    def complete(self, worker: Worker, tasks: Iterable[Task]) -> Result[TaskCompletion]:
        """
        Complete the worker's current task and free the worker.

        The result signals whether the task's order has no other open work at
        that stage. Advancing the order is left to the caller.

        Returns:
            Success with a TaskCompletion, or NO_ACTIVE_TASK
        """
        task_list = list(tasks)
        current = worker.current_task_in(task_list)
        if current is None:
            return self._no_active_task(worker)

        now = self._clock()
        completed = current.transition_to(
            TaskStatus.COMPLETED,
            at=now,
            worker_ref=None,
            completed_by=worker.id,
            completed_at=now,
        )
        siblings_open = any(
            t.id != current.id
            and t.order_ref == current.order_ref
            and t.stage == current.stage
            and t.is_open
            for t in task_list
        )

        events: list[DomainEvent] = [
            TaskCompleted(
                aggregate_id=current.order_ref,
                occurred_at=now,
                task_id=current.id,
                order_id=current.order_ref,
                worker_id=worker.id,
                stage=current.stage.value,
                completed_at=now,
            )
        ]
        if not siblings_open:
            events.append(
                OrderReadyToAdvance(
                    aggregate_id=current.order_ref,
                    occurred_at=now,
                    order_id=current.order_ref,
                    stage=current.stage.value,
                )
            )
        return Success(
            TaskCompletion(task=completed, order_ready_to_advance=not siblings_open),
            tuple(events),
        )

    def pause(self, worker: Worker, tasks: Iterable[Task]) -> Result[Task]:
        """Pause the worker's current task; the worker keeps the binding."""
        current = worker.current_task_in(tasks)
        if current is None:
            return self._no_active_task(worker)

        now = self._clock()
        paused = current.transition_to(TaskStatus.PAUSED, at=now)
        event = TaskPaused(
            aggregate_id=current.order_ref,
            occurred_at=now,
            task_id=current.id,
            worker_id=worker.id,
        )
        return Success(paused, (event,))

    def resume(self, worker: Worker, task: Task, tasks: Iterable[Task]) -> Result[Task]:
        """
        Resume one of the worker's paused tasks.

        Returns:
            Success with the task back ``in_progress``; TASK_UNAVAILABLE if
            the task is not paused under this worker; WORKER_BUSY if the
            worker already has another task in progress
        """
        if task.status != TaskStatus.PAUSED or not task.is_bound_to(worker.id):
            return self._task_unavailable(task)

        current = worker.current_task_in(tasks)
        if current is not None:
            return Failure(
                ErrorKind.WORKER_BUSY,
                f"Worker '{worker.name}' is already working on another task",
                {"worker_id": str(worker.id), "current_task_id": str(current.id)},
            )

        now = self._clock()
        resumed = task.transition_to(TaskStatus.IN_PROGRESS, at=now)
        event = TaskResumed(
            aggregate_id=task.order_ref,
            occurred_at=now,
            task_id=task.id,
            worker_id=worker.id,
        )
        return Success(resumed, (event,))

    def auto_distribute(
        self,
        workers: Iterable[Worker],
        tasks: Iterable[Task],
        orders: Iterable[Order] | Mapping[UUID, Order],
    ) -> Distribution:
        """
        Pair every idle worker with the best remaining task in one pass.

        Workers are served in name/id order; each assignment is applied to the
        working snapshot before the next worker is matched, so a task is
        never handed out twice.

        Returns:
            Distribution with the newly assigned tasks, the workers left
            idle, and one failure per unmapped department
        """
        order_index = index_orders(orders)
        working: dict[UUID, Task] = {task.id: task for task in tasks}
        assigned: list[Task] = []
        idle: list[UUID] = []
        errors: dict[str, Failure] = {}
        events: list[DomainEvent] = []

        for worker in sorted(workers, key=lambda w: (w.name.casefold(), str(w.id))):
            if not worker.is_idle_in(working.values()):
                continue
            found = self.find_task_for_worker(worker, working.values(), order_index)
            if isinstance(found, Failure):
                if found.kind == ErrorKind.UNKNOWN_DEPARTMENT_MAPPING:
                    errors.setdefault(worker.department, found)
                idle.append(worker.id)
                continue
            outcome = self.assign(worker, found.value, working.values())
            if isinstance(outcome, Failure):
                idle.append(worker.id)
                continue
            working[outcome.value.id] = outcome.value
            assigned.append(outcome.value)
            events.extend(outcome.events)

        return Distribution(
            assigned=tuple(assigned),
            idle_workers=tuple(idle),
            configuration_errors=tuple(errors.values()),
            events=tuple(events),
        )

    def _unmapped(self, worker: Worker) -> Failure:
        return Failure(
            ErrorKind.UNKNOWN_DEPARTMENT_MAPPING,
            f"Department '{worker.department}' has no production stage mapping",
            {"worker_id": str(worker.id), "department": worker.department},
        )

    @staticmethod
    def _task_unavailable(task: Task) -> Failure:
        return Failure(
            ErrorKind.TASK_UNAVAILABLE,
            f"Task {task.id} is not available ({task.status.value})",
            {
                "task_id": str(task.id),
                "status": task.status.value,
                "worker_ref": str(task.worker_ref) if task.worker_ref else None,
            },
        )

    @staticmethod
    def _no_active_task(worker: Worker) -> Failure:
        return Failure(
            ErrorKind.NO_ACTIVE_TASK,
            f"Worker '{worker.name}' has no task in progress",
            {"worker_id": str(worker.id)},
        )
