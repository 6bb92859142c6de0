"""
Repository Interfaces

Contracts for the external order, task and worker stores and the
attendance service. The engine itself never calls these; the application
service uses them to fetch snapshots and persist results.
"""

from abc import ABC, abstractmethod
from uuid import UUID

from ..entities.order import Order
from ..entities.task import Task
from ..entities.worker import Worker
from ..value_objects.metrics import AttendanceRecord


class OrderRepository(ABC):
    """Abstract repository interface for Order records."""

    @abstractmethod
    async def save(self, order: Order) -> Order:
        """
        Save an order.

        The stored version must equal ``order.version``; the saved record is
        returned with its version incremented.

        Args:
            order: Order record to save

        Returns:
            Saved order record

        Raises:
            ConcurrencyError: If the stored version moved on since the read
        """
        pass

    @abstractmethod
    async def get_by_id(self, order_id: UUID) -> Order | None:
        """
        Retrieve an order by its ID.

        Args:
            order_id: Unique order identifier

        Returns:
            Order record or None if not found
        """
        pass

    @abstractmethod
    async def get_all(self) -> list[Order]:
        """Retrieve all orders."""
        pass


class TaskRepository(ABC):
    """Abstract repository interface for Task records."""

    @abstractmethod
    async def save(self, task: Task) -> Task:
        """
        Save a task with an optimistic version check.

        Raises:
            ConcurrencyError: If the stored version moved on since the read
        """
        pass

    @abstractmethod
    async def get_by_id(self, task_id: UUID) -> Task | None:
        pass

    @abstractmethod
    async def get_all(self) -> list[Task]:
        pass

    @abstractmethod
    async def get_by_order_id(self, order_id: UUID) -> list[Task]:
        """
        Retrieve all tasks of an order.

        Args:
            order_id: Order identifier

        Returns:
            Tasks of the order, any status
        """
        pass


class WorkerRepository(ABC):
    """Abstract repository interface for the worker roster."""

    @abstractmethod
    async def save(self, worker: Worker) -> Worker:
        pass

    @abstractmethod
    async def get_by_id(self, worker_id: UUID) -> Worker | None:
        pass

    @abstractmethod
    async def get_all(self) -> list[Worker]:
        pass


class AttendanceSource(ABC):
    """Attendance/biometric service supplying hours and quality figures."""

    @abstractmethod
    async def get_attendance(self, worker_id: UUID) -> AttendanceRecord | None:
        """
        Retrieve attendance figures for a worker.

        Args:
            worker_id: Worker identifier

        Returns:
            AttendanceRecord, or None when the service has no data
        """
        pass


__all__ = [
    "AttendanceSource",
    "OrderRepository",
    "TaskRepository",
    "WorkerRepository",
]
