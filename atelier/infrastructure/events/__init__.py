from .event_bus import EventBusInterface, InMemoryEventBus

__all__ = ["EventBusInterface", "InMemoryEventBus"]
