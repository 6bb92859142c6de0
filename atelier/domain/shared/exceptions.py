"""
Domain Exceptions

Typed exceptions for production-engine errors. Engine entry points report
expected failures as ``Failure`` results (see ``results.py``); these classes
are raised for genuinely exceptional conditions (missing records, version
conflicts) and when a caller unwraps a failed result at a boundary.
"""

from enum import Enum
from uuid import UUID


class ErrorType(str, Enum):
    """Error type enumeration for discriminated error payloads."""

    VALIDATION = "validation"
    BUSINESS_RULE = "business_rule"
    RESOURCE_CONFLICT = "resource_conflict"
    CONFIGURATION = "configuration"
    NOT_FOUND = "not_found"
    CONCURRENCY = "concurrency"


class DomainError(Exception):
    """Base class for all domain errors with type discrimination."""

    def __init__(
        self,
        message: str,
        error_type: ErrorType,
        details: dict[str, str | int | bool | None] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_type = error_type
        self.details = details or {}

    def to_dict(self) -> dict[str, str | dict[str, str | int | bool | None]]:
        """Convert error to dictionary for API responses."""
        return {
            "type": self.error_type.value,
            "message": self.message,
            "details": self.details,
        }


class BusinessRuleError(DomainError):
    """Raised when business rules are violated."""

    def __init__(
        self, message: str, details: dict[str, str | int | bool | None] | None = None
    ) -> None:
        super().__init__(message, ErrorType.BUSINESS_RULE, details)


class ResourceConflictError(DomainError):
    """Raised when a worker or task is already taken."""

    def __init__(
        self, message: str, details: dict[str, str | int | bool | None] | None = None
    ) -> None:
        super().__init__(message, ErrorType.RESOURCE_CONFLICT, details)


# Stage transition exceptions
class InvalidTransitionError(BusinessRuleError):
    """Raised when an order cannot move to the requested stage."""


# Assignment exceptions
class WorkerBusyError(ResourceConflictError):
    """Raised when a worker already has a task in progress."""


class TaskUnavailableError(ResourceConflictError):
    """Raised when a task is already bound to a worker or not pending."""


class NoEligibleTaskError(BusinessRuleError):
    """Raised when a caller insists on a task and none matches."""


class NoActiveTaskError(BusinessRuleError):
    """Raised when a worker has no in-progress task to act on."""


class WorkerInactiveError(BusinessRuleError):
    """Raised when an inactive worker is offered work."""


class DepartmentMismatchError(BusinessRuleError):
    """Raised when a task's stage is not the worker's department stage."""


class UnknownDepartmentMappingError(DomainError):
    """Raised when a department has no production stage mapping."""

    def __init__(
        self, message: str, details: dict[str, str | int | bool | None] | None = None
    ) -> None:
        super().__init__(message, ErrorType.CONFIGURATION, details)


# Lookup exceptions
class RecordNotFoundError(DomainError):
    """Base class for missing records."""

    def __init__(self, entity_type: str, record_id: UUID) -> None:
        details = {"entity_type": entity_type, f"{entity_type}_id": str(record_id)}
        super().__init__(
            f"{entity_type.capitalize()} not found: {record_id}",
            ErrorType.NOT_FOUND,
            details,
        )
        self.record_id = record_id


class OrderNotFoundError(RecordNotFoundError):
    """Raised when an order is not found."""

    def __init__(self, order_id: UUID) -> None:
        super().__init__("order", order_id)


class TaskNotFoundError(RecordNotFoundError):
    """Raised when a task is not found."""

    def __init__(self, task_id: UUID) -> None:
        super().__init__("task", task_id)


class WorkerNotFoundError(RecordNotFoundError):
    """Raised when a worker is not found."""

    def __init__(self, worker_id: UUID) -> None:
        super().__init__("worker", worker_id)


class ConcurrencyError(DomainError):
    """Raised when a record was changed by another writer since it was read."""

    def __init__(
        self, entity_type: str, record_id: UUID, expected: int, actual: int
    ) -> None:
        details = {
            "entity_type": entity_type,
            "record_id": str(record_id),
            "expected_version": expected,
            "actual_version": actual,
        }
        super().__init__(
            f"{entity_type} {record_id} was modified concurrently "
            f"(expected version {expected}, found {actual})",
            ErrorType.CONCURRENCY,
            details,
        )
        self.record_id = record_id
        self.expected = expected
        self.actual = actual
