from .in_memory import (
    InMemoryAttendanceSource,
    InMemoryOrderRepository,
    InMemoryRepository,
    InMemoryTaskRepository,
    InMemoryWorkerRepository,
)

__all__ = [
    "InMemoryAttendanceSource",
    "InMemoryOrderRepository",
    "InMemoryRepository",
    "InMemoryTaskRepository",
    "InMemoryWorkerRepository",
]
