"""
Tests for the in-memory repositories and their optimistic version check.
"""

import pytest

from atelier.domain.production.value_objects.enums import StageId, TaskStatus
from atelier.domain.production.value_objects.metrics import AttendanceRecord
from atelier.domain.shared.exceptions import ConcurrencyError
from atelier.infrastructure.repositories.in_memory import (
    InMemoryAttendanceSource,
    InMemoryOrderRepository,
    InMemoryTaskRepository,
    InMemoryWorkerRepository,
)
from atelier.tests.fixtures import make_order, make_task, make_worker


class TestInMemoryRepository:
    """Test saving and loading records."""

    @pytest.mark.asyncio
    async def test_save_bumps_version(self):
        repository = InMemoryOrderRepository()
        order = make_order()

        saved = await repository.save(order)

        assert saved.version == 1
        assert await repository.get_by_id(order.id) == saved
        assert order.id in repository
        assert len(repository) == 1

    @pytest.mark.asyncio
    async def test_stale_write_rejected(self):
        """Two writers that read the same version cannot both save."""
        repository = InMemoryOrderRepository([make_order()])
        [stored] = await repository.get_all()

        first = stored.evolve(actual_hours=1.0)
        second = stored.evolve(actual_hours=2.0)
        await repository.save(first)

        with pytest.raises(ConcurrencyError) as exc_info:
            await repository.save(second)

        assert exc_info.value.expected == 0
        assert exc_info.value.actual == 1
        assert (await repository.get_by_id(stored.id)).actual_hours == 1.0

    @pytest.mark.asyncio
    async def test_sequential_writes_succeed(self):
        repository = InMemoryWorkerRepository()
        worker = await repository.save(make_worker())

        worker = await repository.save(worker.evolve(is_active=False))

        assert worker.version == 2
        assert not (await repository.get_by_id(worker.id)).is_active

    @pytest.mark.asyncio
    async def test_missing_record(self):
        repository = InMemoryWorkerRepository()

        assert await repository.get_by_id(make_worker().id) is None
        assert await repository.get_all() == []

    @pytest.mark.asyncio
    async def test_tasks_by_order(self):
        order = make_order(stage=StageId.DESIGN)
        other = make_order(stage=StageId.DESIGN)
        mine = make_task(order)
        repository = InMemoryTaskRepository(
            [mine, make_task(order, status=TaskStatus.COMPLETED), make_task(other)]
        )

        tasks = await repository.get_by_order_id(order.id)

        assert len(tasks) == 2
        assert mine in tasks


class TestInMemoryAttendanceSource:
    """Test the attendance stand-in."""

    @pytest.mark.asyncio
    async def test_attendance_lookup(self):
        worker = make_worker()
        source = InMemoryAttendanceSource()

        assert await source.get_attendance(worker.id) is None

        source.record(AttendanceRecord(worker_ref=worker.id, avg_hours=7.0))

        assert (await source.get_attendance(worker.id)).avg_hours == 7.0
