"""
Discriminated results for engine mutations.

``advance``, ``assign``, ``complete`` and friends never raise for expected
business outcomes. They return ``Success`` (with the new record and the
domain events it produced) or ``Failure`` (with an ``ErrorKind`` the UI
boundary can turn into a specific message).
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Generic, TypeAlias, TypeVar

from .base import DomainEvent
from .exceptions import (
    DepartmentMismatchError,
    DomainError,
    InvalidTransitionError,
    NoActiveTaskError,
    NoEligibleTaskError,
    TaskUnavailableError,
    UnknownDepartmentMappingError,
    WorkerBusyError,
    WorkerInactiveError,
)

T = TypeVar("T")

Details: TypeAlias = dict[str, str | int | bool | None]


class ErrorKind(str, Enum):
    """Failure kinds an engine entry point can report."""

    INVALID_TRANSITION = "invalid_transition"
    WORKER_BUSY = "worker_busy"
    TASK_UNAVAILABLE = "task_unavailable"
    NO_ELIGIBLE_TASK = "no_eligible_task"
    UNKNOWN_DEPARTMENT_MAPPING = "unknown_department_mapping"
    NO_ACTIVE_TASK = "no_active_task"
    WORKER_INACTIVE = "worker_inactive"
    DEPARTMENT_MISMATCH = "department_mismatch"

    @property
    def is_configuration_error(self) -> bool:
        """Configuration problems must reach an operator, not the end user."""
        return self == ErrorKind.UNKNOWN_DEPARTMENT_MAPPING


_EXCEPTIONS: dict[ErrorKind, type[DomainError]] = {
    ErrorKind.INVALID_TRANSITION: InvalidTransitionError,
    ErrorKind.WORKER_BUSY: WorkerBusyError,
    ErrorKind.TASK_UNAVAILABLE: TaskUnavailableError,
    ErrorKind.NO_ELIGIBLE_TASK: NoEligibleTaskError,
    ErrorKind.UNKNOWN_DEPARTMENT_MAPPING: UnknownDepartmentMappingError,
    ErrorKind.NO_ACTIVE_TASK: NoActiveTaskError,
    ErrorKind.WORKER_INACTIVE: WorkerInactiveError,
    ErrorKind.DEPARTMENT_MISMATCH: DepartmentMismatchError,
}


@dataclass(frozen=True)
class Success(Generic[T]):
    """Successful outcome carrying the produced value and its events."""

    value: T
    events: tuple[DomainEvent, ...] = ()

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Failure:
    """Expected failure outcome; never mutates anything."""

    kind: ErrorKind
    message: str
    details: Details = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return False

    @property
    def is_actionable(self) -> bool:
        """``NO_ELIGIBLE_TASK`` means "nothing to do" and is not shown as an error."""
        return self.kind != ErrorKind.NO_ELIGIBLE_TASK

    def to_exception(self) -> DomainError:
        """Build the matching domain exception."""
        return _EXCEPTIONS[self.kind](self.message, dict(self.details))

    def to_dict(self) -> dict[str, str | Details]:
        """Convert failure to dictionary for presentation."""
        return {
            "kind": self.kind.value,
            "message": self.message,
            "details": dict(self.details),
        }


Result: TypeAlias = Success[T] | Failure


def unwrap(result: "Success[T] | Failure") -> T:
    """
    Return the success value or raise the failure as a domain exception.

    Args:
        result: Engine result

    Returns:
        The wrapped value

    Raises:
        DomainError: Subclass matching the failure kind
    """
    if isinstance(result, Failure):
        raise result.to_exception()
    return result.value
