"""
Unit tests for the station aggregator read models.
"""

from uuid import uuid4

import pytest
from pydantic import ValidationError

from atelier.domain.production.read_models.station_summary import StationSummary
from atelier.domain.production.value_objects.enums import (
    OrderPriority,
    StageId,
    TaskStatus,
    WorkerStationStatus,
)
from atelier.tests.fixtures import make_order, make_task, make_worker


@pytest.fixture
def floor():
    """A small floor: two designers, a tailor, an offline cutter, a finisher."""
    design_order = make_order(title="Gown", stage=StageId.DESIGN, priority=OrderPriority.HIGH)
    sewing_order = make_order(title="Suit", stage=StageId.SEWING)
    waiting_order = make_order(title="Blouse")

    ana = make_worker(name="Ana", department="design")
    bea = make_worker(name="Bea", department="design")
    tom = make_worker(name="Tom", department="tailoring")
    cal = make_worker(name="Cal", department="cutting", is_active=False)
    fin = make_worker(name="Fin", department="Finishing")

    tasks = [
        make_task(design_order, status=TaskStatus.IN_PROGRESS, worker_ref=ana.id),
        make_task(design_order),
        make_task(sewing_order, status=TaskStatus.PAUSED, worker_ref=tom.id),
    ]
    return {
        "orders": [design_order, sewing_order, waiting_order],
        "workers": [ana, bea, tom, cal, fin],
        "tasks": tasks,
        "design_order": design_order,
        "ana": ana,
        "tom": tom,
    }


class TestSummarize:
    """Test head counts for the floor and for single departments."""

    def test_whole_floor(self, aggregator, floor):
        summary = aggregator.summarize(floor["workers"], floor["tasks"], floor["orders"])

        assert summary.department == "all"
        assert summary.total_workers == 5
        assert summary.busy_workers == 1
        assert summary.offline_workers == 1
        assert summary.available_workers == 3
        assert summary.active_tasks == 1
        assert summary.paused_tasks == 1
        assert summary.pending_tasks == 1
        assert summary.pending_orders == 1
        assert summary.unmapped_departments == ("Finishing",)
        assert summary.has_configuration_errors

    def test_department_filter(self, aggregator, floor):
        summary = aggregator.summarize(
            floor["workers"], floor["tasks"], floor["orders"], "Design"
        )

        assert summary.stage == StageId.DESIGN
        assert summary.total_workers == 2
        assert summary.busy_workers == 1
        assert summary.available_workers == 1
        assert summary.active_tasks == 1
        assert summary.pending_tasks == 1
        assert summary.pending_orders == 1
        assert summary.unmapped_departments == ()

    def test_paused_worker_counts_as_available(self, aggregator, floor):
        summary = aggregator.summarize(
            floor["workers"], floor["tasks"], floor["orders"], "tailoring"
        )

        assert summary.stage == StageId.SEWING
        assert summary.available_workers == 1
        assert summary.paused_tasks == 1
        assert summary.pending_orders == 0

    def test_unmapped_department_filter(self, aggregator, floor):
        summary = aggregator.summarize(
            floor["workers"], floor["tasks"], floor["orders"], "finishing"
        )

        assert summary.stage is None
        assert summary.total_workers == 1
        assert summary.active_tasks == 0
        assert summary.unmapped_departments == ("Finishing",)

    def test_counts_always_add_up(self, aggregator, floor):
        for department in ["all", "design", "cutting", "tailoring", "finishing", "nobody"]:
            summary = aggregator.summarize(
                floor["workers"], floor["tasks"], floor["orders"], department
            )
            assert (
                summary.available_workers + summary.busy_workers + summary.offline_workers
                == summary.total_workers
            )

    def test_inconsistent_summary_rejected(self):
        with pytest.raises(ValidationError):
            StationSummary(total_workers=3, available_workers=1, busy_workers=1)

    def test_utilization_rate(self):
        summary = StationSummary(
            total_workers=4, available_workers=1, busy_workers=2, offline_workers=1
        )

        assert summary.utilization_rate == pytest.approx(2 / 3)
        assert StationSummary().utilization_rate == 0.0

    def test_summarize_by_department(self, aggregator, floor):
        summaries = aggregator.summarize_by_department(
            floor["workers"], floor["tasks"], floor["orders"]
        )

        assert list(summaries) == ["cutting", "design", "fitting", "sewing", "tailoring"]
        assert summaries["cutting"].offline_workers == 1
        assert summaries["fitting"].total_workers == 0


class TestStationBoard:
    """Test per-worker station rows."""

    def test_rows_sorted_by_name(self, aggregator, floor):
        board = aggregator.station_board(floor["workers"], floor["tasks"], floor["orders"])

        assert [row.name for row in board] == ["Ana", "Bea", "Cal", "Fin", "Tom"]

    def test_busy_row_carries_order_details(self, aggregator, floor):
        board = aggregator.station_board(floor["workers"], floor["tasks"], floor["orders"])
        row = board[0]

        assert row.worker_id == floor["ana"].id
        assert row.status == WorkerStationStatus.BUSY
        assert row.order_id == floor["design_order"].id
        assert row.order_title == "Gown"
        assert row.order_priority == OrderPriority.HIGH
        assert row.order_progress == 33

    def test_statuses(self, aggregator, floor):
        board = {
            row.name: row
            for row in aggregator.station_board(
                floor["workers"], floor["tasks"], floor["orders"]
            )
        }

        assert board["Bea"].status == WorkerStationStatus.AVAILABLE
        assert board["Cal"].status == WorkerStationStatus.OFFLINE
        assert board["Tom"].status == WorkerStationStatus.AVAILABLE
        assert board["Tom"].paused_tasks == 1
        assert board["Fin"].stage is None

    def test_department_filter(self, aggregator, floor):
        board = aggregator.station_board(
            floor["workers"], floor["tasks"], floor["orders"], "design"
        )

        assert [row.name for row in board] == ["Ana", "Bea"]

    def test_task_of_unknown_order(self, aggregator):
        worker = make_worker()
        task = make_task(
            order_ref=uuid4(), status=TaskStatus.IN_PROGRESS, worker_ref=worker.id
        )

        row = aggregator.station_board([worker], [task], [])[0]

        assert row.current_task_id == task.id
        assert row.order_title is None
        assert row.order_progress is None
