"""
Event bus for production domain events.

The application service publishes the events carried on engine results
here after the records are persisted. Handlers are routed by event type.
"""

import asyncio
from abc import ABC, abstractmethod
from collections import defaultdict, deque
from collections.abc import Awaitable, Callable, Iterable
from typing import Any

from ...core.observability import get_logger
from ...domain.shared.base import DomainEvent

logger = get_logger(__name__)

Handler = Callable[[DomainEvent], Any]
AsyncHandler = Callable[[DomainEvent], Awaitable[Any]]


class EventBusInterface(ABC):
    """Contract for publishing events and subscribing to event types."""

    @abstractmethod
    def publish(self, event: DomainEvent) -> None:
        """
        Publish a domain event to all registered handlers.

        Args:
            event: Domain event to publish
        """
        pass

    @abstractmethod
    async def publish_async(self, event: DomainEvent) -> None:
        """
        Publish a domain event to sync and async handlers.

        Args:
            event: Domain event to publish
        """
        pass

    @abstractmethod
    def subscribe(self, event_type: type[DomainEvent], handler: Handler) -> None:
        pass

    @abstractmethod
    def unsubscribe(self, event_type: type[DomainEvent], handler: Handler) -> None:
        pass

    @abstractmethod
    def clear_handlers(self, event_type: type[DomainEvent] | None = None) -> None:
        pass


class InMemoryEventBus(EventBusInterface):
    """
    In-memory event bus.

    Events are delivered in publish order. A failing handler is logged and
    does not stop delivery to the remaining handlers. The most recent events
    are kept in a bounded history for inspection.
    """

    def __init__(self, max_history_size: int = 1000):
        """
        Initialize the event bus.

        Args:
            max_history_size: Number of published events kept in history
        """
        self._handlers: dict[type[DomainEvent], list[Handler]] = defaultdict(list)
        self._async_handlers: dict[type[DomainEvent], list[AsyncHandler]] = defaultdict(
            list
        )
        self._event_history: deque[DomainEvent] = deque(maxlen=max_history_size)

    def publish(self, event: DomainEvent) -> None:
        self._event_history.append(event)
        handlers = list(self._handlers.get(type(event), []))
        if not handlers:
            logger.debug("No handlers registered", event_type=event.event_name)
            return

        logger.debug(
            "Publishing event", event_type=event.event_name, handlers=len(handlers)
        )
        for handler in handlers:
            self._safe_handle_sync(handler, event)

    async def publish_async(self, event: DomainEvent) -> None:
        self._event_history.append(event)
        sync_handlers = list(self._handlers.get(type(event), []))
        async_handlers = list(self._async_handlers.get(type(event), []))
        if not sync_handlers and not async_handlers:
            logger.debug("No handlers registered", event_type=event.event_name)
            return

        logger.debug(
            "Publishing event",
            event_type=event.event_name,
            handlers=len(sync_handlers) + len(async_handlers),
        )
        for handler in sync_handlers:
            self._safe_handle_sync(handler, event)
        if async_handlers:
            await asyncio.gather(
                *(self._safe_handle_async(handler, event) for handler in async_handlers)
            )

    async def publish_all(self, events: Iterable[DomainEvent]) -> None:
        """Publish events one after another, preserving their order."""
        for event in events:
            await self.publish_async(event)

    def subscribe(self, event_type: type[DomainEvent], handler: Handler) -> None:
        """
        Subscribe a synchronous handler to a specific event type.

        Args:
            event_type: Type of event to subscribe to
            handler: Handler function to call when event is published
        """
        if handler in self._handlers[event_type]:
            logger.warning("Handler already subscribed", event_type=event_type.__name__)
            return
        self._handlers[event_type].append(handler)

    def subscribe_async(self, event_type: type[DomainEvent], handler: AsyncHandler) -> None:
        """
        Subscribe a coroutine handler to a specific event type.

        Args:
            event_type: Type of event to subscribe to
            handler: Async handler awaited by ``publish_async``
        """
        if handler in self._async_handlers[event_type]:
            logger.warning(
                "Async handler already subscribed", event_type=event_type.__name__
            )
            return
        self._async_handlers[event_type].append(handler)

    def unsubscribe(self, event_type: type[DomainEvent], handler: Handler) -> None:
        if handler in self._handlers[event_type]:
            self._handlers[event_type].remove(handler)
        elif handler in self._async_handlers[event_type]:
            self._async_handlers[event_type].remove(handler)
        else:
            logger.warning("Handler not found", event_type=event_type.__name__)

    def clear_handlers(self, event_type: type[DomainEvent] | None = None) -> None:
        if event_type:
            self._handlers.pop(event_type, None)
            self._async_handlers.pop(event_type, None)
        else:
            self._handlers.clear()
            self._async_handlers.clear()

    def get_handler_count(self, event_type: type[DomainEvent]) -> int:
        """Total number of handlers (sync + async) for an event type."""
        return len(self._handlers.get(event_type, [])) + len(
            self._async_handlers.get(event_type, [])
        )

    def get_event_history(
        self, event_type: type[DomainEvent] | None = None
    ) -> list[DomainEvent]:
        """
        Get history of published events.

        Args:
            event_type: Optional event type to filter by

        Returns:
            List of published events, oldest first
        """
        if event_type:
            return [event for event in self._event_history if type(event) is event_type]
        return list(self._event_history)

    def clear_event_history(self) -> None:
        self._event_history.clear()

    @staticmethod
    def _safe_handle_sync(handler: Handler, event: DomainEvent) -> None:
        try:
            handler(event)
        except Exception:
            logger.exception("Event handler failed", event_type=event.event_name)

    @staticmethod
    async def _safe_handle_async(handler: AsyncHandler, event: DomainEvent) -> None:
        try:
            await handler(event)
        except Exception:
            logger.exception("Async event handler failed", event_type=event.event_name)
