"""
Stage Transition Engine

Moves orders forward through the stage catalog. This is the only writer of
``Order.stage`` after intake; it never regresses a stage.
"""

from collections.abc import Callable, Iterable
from datetime import datetime

from ...shared.base import DomainEvent, utcnow
from ...shared.results import ErrorKind, Failure, Result, Success
from ..entities.order import Order
from ..entities.task import Task
from ..events import (
    OrderCompleted,
    OrderStageAdvanced,
    OrderStarted,
    TaskClosed,
    TaskOpened,
)
from ..value_objects.enums import OrderStatus, StageId, TaskStatus
from ..value_objects.stage_catalog import DEFAULT_STAGE_CATALOG, StageCatalog


def progress_for(stage: StageId, catalog: StageCatalog = DEFAULT_STAGE_CATALOG) -> int:
    """Integer percentage position of ``stage`` within the pipeline."""
    return round((catalog.index(stage) + 1) / len(catalog) * 100)


class StageTransitionEngine:
    """
    Domain service for order stage transitions.

    All methods are pure: they take an order snapshot and return a result
    holding the new snapshot, leaving persistence to the caller.
    """

    def __init__(
        self,
        catalog: StageCatalog = DEFAULT_STAGE_CATALOG,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        """
        Initialize the engine.

        Args:
            catalog: Pipeline definition
            clock: Source of "now" for timestamps
        """
        self._catalog = catalog
        self._clock = clock

    @property
    def catalog(self) -> StageCatalog:
        return self._catalog

    def next_stage(self, stage: StageId) -> StageId | None:
        """Stage following ``stage``, or None if ``stage`` is terminal."""
        return self._catalog.next_stage(stage)

    def start(self, order: Order) -> Result[Order]:
        """
        Start production of a pending order.

        Args:
            order: Order at ``pending``

        Returns:
            Success with the order at the first work stage, or an
            INVALID_TRANSITION failure if the order was already started
        """
        if order.stage != StageId.PENDING:
            return self._invalid(
                order,
                f"Order '{order.title}' is already at stage '{order.stage.value}'",
                requested=self._catalog.first_work_stage,
            )
        return self._move(order, self._catalog.first_work_stage)

    def advance(self, order: Order) -> Result[Order]:
        """
        Advance an order to the next stage.

        Args:
            order: Order that is not yet completed

        Returns:
            Success with the advanced order, or an INVALID_TRANSITION failure
            when the order is already at the terminal stage
        """
        target = self._catalog.next_stage(order.stage)
        if target is None:
            return self._invalid(
                order, f"Order '{order.title}' is already completed", requested=None
            )
        return self._move(order, target)

    def advance_to(self, order: Order, target: StageId) -> Result[Order]:
        """
        Advance an order to an explicitly requested stage.

        Only the immediately following stage is accepted; skipping stages or
        moving backwards is reported as INVALID_TRANSITION.
        """
        expected = self._catalog.next_stage(order.stage)
        if expected is None:
            return self._invalid(
                order, f"Order '{order.title}' is already completed", requested=target
            )
        if target != expected:
            return self._invalid(
                order,
                f"Cannot move order '{order.title}' from '{order.stage.value}' "
                f"to '{target.value}'; next stage is '{expected.value}'",
                requested=target,
            )
        return self._move(order, target)

    def open_stage_task(self, order: Order) -> Result[Task]:
        """
        Open a pending task for the order's current stage.

        Args:
            order: Order at a work stage

        Returns:
            Success with the new task, or INVALID_TRANSITION when the order is
            at a stage that takes no work (``pending`` or ``completed``)
        """
        if not order.stage.is_work_stage:
            return self._invalid(
                order,
                f"Stage '{order.stage.value}' of order '{order.title}' takes no tasks",
                requested=None,
            )
        now = self._clock()
        task = Task.open_for(order.id, order.stage, created_at=now)
        event = TaskOpened(
            aggregate_id=order.id,
            occurred_at=now,
            task_id=task.id,
            order_id=order.id,
            stage=order.stage.value,
        )
        return Success(task, (event,))

    def close_stage_tasks(
        self, order: Order, tasks: Iterable[Task]
    ) -> Success[list[Task]]:
        """
        Close the unassigned tasks an order leaves behind at its current stage.

        Only pending, unbound tasks are closed; tasks held by a worker are
        left alone (the caller refuses to advance while any exist).

        Args:
            order: Order about to advance
            tasks: Tasks of the order

        Returns:
            Success with the closed tasks (``completed`` without a worker)
        """
        now = self._clock()
        closed: list[Task] = []
        events: list[DomainEvent] = []
        for task in tasks:
            if task.order_ref != order.id or task.stage != order.stage:
                continue
            if not task.is_available:
                continue
            closed.append(
                task.transition_to(TaskStatus.COMPLETED, at=now, completed_at=now)
            )
            events.append(
                TaskClosed(
                    aggregate_id=order.id,
                    occurred_at=now,
                    task_id=task.id,
                    order_id=order.id,
                    stage=task.stage.value,
                )
            )
        return Success(closed, tuple(events))

    def _move(self, order: Order, target: StageId) -> Success[Order]:
        now = self._clock()
        previous = order.stage
        changes: dict = {"stage": target}
        events: list[DomainEvent] = []

        if previous == StageId.PENDING:
            changes["started_at"] = now
            changes["status"] = OrderStatus.IN_PROGRESS
            events.append(
                OrderStarted(
                    aggregate_id=order.id,
                    occurred_at=now,
                    order_id=order.id,
                    stage=target.value,
                    started_at=now,
                )
            )

        if target.is_terminal:
            changes["completed_at"] = now
            changes["status"] = OrderStatus.COMPLETED

        advanced = order.evolve(at=now, **changes)
        events.append(
            OrderStageAdvanced(
                aggregate_id=order.id,
                occurred_at=now,
                order_id=order.id,
                from_stage=previous.value,
                to_stage=target.value,
                progress=progress_for(target, self._catalog),
            )
        )
        if target.is_terminal:
            events.append(
                OrderCompleted(
                    aggregate_id=order.id,
                    occurred_at=now,
                    order_id=order.id,
                    completed_at=now,
                )
            )
        return Success(advanced, tuple(events))

    @staticmethod
    def _invalid(order: Order, message: str, requested: StageId | None) -> Failure:
        return Failure(
            ErrorKind.INVALID_TRANSITION,
            message,
            {
                "order_id": str(order.id),
                "current_stage": order.stage.value,
                "requested_stage": requested.value if requested else None,
            },
        )
