"""
Tests for the in-memory event bus.
"""

from uuid import uuid4

import pytest

from atelier.domain.production.events import TaskOpened, TaskPaused
from atelier.domain.production.value_objects.enums import StageId
from atelier.infrastructure.events.event_bus import InMemoryEventBus


def opened() -> TaskOpened:
    order_id = uuid4()
    return TaskOpened(
        aggregate_id=order_id, task_id=uuid4(), order_id=order_id, stage=StageId.DESIGN.value
    )


def paused() -> TaskPaused:
    return TaskPaused(aggregate_id=uuid4(), task_id=uuid4(), worker_id=uuid4())


class TestInMemoryEventBus:
    """Test routing, isolation and history."""

    def test_publish_routes_by_type(self):
        bus = InMemoryEventBus()
        received = []
        bus.subscribe(TaskOpened, received.append)

        bus.publish(opened())
        bus.publish(paused())

        assert len(received) == 1
        assert isinstance(received[0], TaskOpened)
        assert len(bus.get_event_history()) == 2
        assert len(bus.get_event_history(TaskPaused)) == 1

    def test_failing_handler_does_not_stop_others(self):
        bus = InMemoryEventBus()
        received = []

        def broken(event):
            raise RuntimeError("boom")

        bus.subscribe(TaskOpened, broken)
        bus.subscribe(TaskOpened, received.append)

        bus.publish(opened())

        assert len(received) == 1

    def test_duplicate_subscription_ignored(self):
        bus = InMemoryEventBus()
        handler = [].append
        bus.subscribe(TaskOpened, handler)
        bus.subscribe(TaskOpened, handler)

        assert bus.get_handler_count(TaskOpened) == 1

        bus.unsubscribe(TaskOpened, handler)
        assert bus.get_handler_count(TaskOpened) == 0

    def test_clear_handlers(self):
        bus = InMemoryEventBus()
        bus.subscribe(TaskOpened, [].append)
        bus.subscribe(TaskPaused, [].append)

        bus.clear_handlers(TaskOpened)
        assert bus.get_handler_count(TaskOpened) == 0
        assert bus.get_handler_count(TaskPaused) == 1

        bus.clear_handlers()
        assert bus.get_handler_count(TaskPaused) == 0

    def test_history_is_bounded(self):
        bus = InMemoryEventBus(max_history_size=3)

        events = [opened() for _ in range(5)]
        for event in events:
            bus.publish(event)

        assert bus.get_event_history() == events[2:]
        bus.clear_event_history()
        assert bus.get_event_history() == []

    @pytest.mark.asyncio
    async def test_publish_async_runs_sync_and_async_handlers(self):
        bus = InMemoryEventBus()
        sync_received = []
        async_received = []

        async def handler(event):
            async_received.append(event)

        bus.subscribe(TaskOpened, sync_received.append)
        bus.subscribe_async(TaskOpened, handler)

        await bus.publish_all([opened(), opened()])

        assert len(sync_received) == 2
        assert len(async_received) == 2

    @pytest.mark.asyncio
    async def test_failing_async_handler_is_isolated(self):
        bus = InMemoryEventBus()
        received = []

        async def broken(event):
            raise RuntimeError("boom")

        async def working(event):
            received.append(event)

        bus.subscribe_async(TaskOpened, broken)
        bus.subscribe_async(TaskOpened, working)

        await bus.publish_async(opened())

        assert len(received) == 1
