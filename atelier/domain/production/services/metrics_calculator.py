"""
Metrics Calculator

Derives worker performance, order progress and tracking statistics from
record snapshots. Metric computation never fails: figures that cannot be
derived are reported as ``UNKNOWN`` rather than guessed.
"""

from collections.abc import Callable, Iterable, Mapping
from datetime import datetime
from uuid import UUID

from ...shared.base import utcnow
from ..entities.order import Order
from ..entities.task import Task
from ..entities.worker import Worker
from ..value_objects.enums import OrderStatus, StageId, TaskStatus
from ..value_objects.metrics import (
    UNKNOWN,
    AttendanceRecord,
    MaybeMetric,
    PerformanceSnapshot,
    TrackingStatistics,
)
from ..value_objects.stage_catalog import DEFAULT_STAGE_CATALOG, StageCatalog
from .stage_transition_engine import progress_for


def _clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, value))


class MetricsCalculator:
    """Domain service for derived production metrics."""

    def __init__(
        self,
        catalog: StageCatalog = DEFAULT_STAGE_CATALOG,
        neutral_efficiency: float = 100.0,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        """
        Initialize the calculator.

        Args:
            catalog: Pipeline definition used for progress
            neutral_efficiency: Efficiency reported for workers with no history
            clock: Source of "now" for delay checks
        """
        if not 0.0 <= neutral_efficiency <= 100.0:
            raise ValueError("neutral_efficiency must be within 0-100")
        self._catalog = catalog
        self._neutral_efficiency = neutral_efficiency
        self._clock = clock

    def compute_worker_performance(
        self,
        worker: Worker,
        tasks: Iterable[Task],
        attendance: AttendanceRecord | None = None,
    ) -> PerformanceSnapshot:
        """
        Compute a worker's performance snapshot.

        Efficiency is completed tasks over all tasks ever assigned to the
        worker (completed ones plus those still bound to them), clamped to
        0-100. A worker with no assignment history gets the neutral baseline
        and ``has_history=False``.

        Args:
            worker: Worker to evaluate
            tasks: Task snapshot
            attendance: Attendance figures, if the attendance service has any

        Returns:
            PerformanceSnapshot
        """
        handled = [task for task in tasks if task.was_handled_by(worker.id)]
        completed = sum(
            1
            for task in handled
            if task.status == TaskStatus.COMPLETED and task.completed_by == worker.id
        )
        assigned = len(handled)

        if assigned == 0:
            efficiency = self._neutral_efficiency
        else:
            efficiency = _clamp(completed / assigned * 100)

        avg_hours: MaybeMetric = UNKNOWN
        quality_score: MaybeMetric = UNKNOWN
        if attendance is not None and attendance.worker_ref == worker.id:
            if attendance.avg_hours is not None:
                avg_hours = attendance.avg_hours
            if attendance.quality_score is not None:
                quality_score = attendance.quality_score

        return PerformanceSnapshot(
            worker_ref=worker.id,
            efficiency=round(efficiency, 1),
            has_history=assigned > 0,
            completed_tasks=completed,
            assigned_tasks=assigned,
            avg_hours=avg_hours,
            quality_score=quality_score,
        )

    def compute_order_progress(self, order: Order) -> int:
        """
        Integer percentage of the order's position in the pipeline.

        Progress depends only on the stage, never on elapsed time:
        ``(index(stage) + 1) / len(catalog) * 100``.
        """
        return progress_for(order.stage, self._catalog)

    def compute_order_efficiency(self, order: Order) -> MaybeMetric:
        """
        Estimated over actual hours as a percentage, clamped to 0-100.

        Returns:
            Efficiency, or UNKNOWN when no actual hours were recorded
        """
        if order.actual_hours <= 0:
            return UNKNOWN
        return round(_clamp(order.estimated_hours / order.actual_hours * 100), 1)

    def is_order_delayed(self, order: Order, now: datetime | None = None) -> bool:
        """
        Check if an order is running late.

        An order is delayed when it is past its due date without being
        completed, or when its recorded hours exceed the estimate.
        """
        now = now or self._clock()
        if order.is_complete:
            overdue = (
                order.due_date is not None
                and order.completed_at is not None
                and order.completed_at > order.due_date
            )
        else:
            overdue = order.due_date is not None and now > order.due_date
        over_budget = order.estimated_hours > 0 and order.actual_hours > order.estimated_hours
        return overdue or over_budget

    def compute_tracking_statistics(
        self,
        orders: Iterable[Order],
        workers: Iterable[Worker],
        tasks: Iterable[Task],
        attendance: Mapping[UUID, AttendanceRecord] | None = None,
        now: datetime | None = None,
    ) -> TrackingStatistics:
        """
        Order counts and average worker efficiency for the tracking header.

        The average only includes workers with assignment history; it is
        UNKNOWN when no worker has any.
        """
        now = now or self._clock()
        order_list = list(orders)
        task_list = list(tasks)
        attendance = attendance or {}

        snapshots = [
            self.compute_worker_performance(
                worker, task_list, attendance.get(worker.id)
            )
            for worker in workers
        ]
        with_history = [s.efficiency for s in snapshots if s.has_history]
        average: MaybeMetric = (
            round(sum(with_history) / len(with_history), 1) if with_history else UNKNOWN
        )

        return TrackingStatistics(
            total_orders=len(order_list),
            pending_orders=sum(1 for o in order_list if o.stage == StageId.PENDING),
            in_progress_orders=sum(
                1 for o in order_list if o.is_started and not o.is_complete
            ),
            completed_orders=sum(
                1 for o in order_list if o.is_complete or o.status == OrderStatus.COMPLETED
            ),
            delayed_orders=sum(1 for o in order_list if self.is_order_delayed(o, now)),
            average_efficiency=average,
        )
