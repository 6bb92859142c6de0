"""Shared domain building blocks."""

from .base import DomainEvent, Record, ValueObject, utcnow
from .exceptions import (
    BusinessRuleError,
    ConcurrencyError,
    DepartmentMismatchError,
    DomainError,
    ErrorType,
    InvalidTransitionError,
    NoActiveTaskError,
    NoEligibleTaskError,
    OrderNotFoundError,
    RecordNotFoundError,
    ResourceConflictError,
    TaskNotFoundError,
    TaskUnavailableError,
    UnknownDepartmentMappingError,
    WorkerBusyError,
    WorkerInactiveError,
    WorkerNotFoundError,
)
from .results import ErrorKind, Failure, Result, Success, unwrap

__all__ = [
    "BusinessRuleError",
    "ConcurrencyError",
    "DepartmentMismatchError",
    "DomainError",
    "DomainEvent",
    "ErrorKind",
    "ErrorType",
    "Failure",
    "InvalidTransitionError",
    "NoActiveTaskError",
    "NoEligibleTaskError",
    "OrderNotFoundError",
    "Record",
    "RecordNotFoundError",
    "ResourceConflictError",
    "Result",
    "Success",
    "TaskNotFoundError",
    "TaskUnavailableError",
    "UnknownDepartmentMappingError",
    "ValueObject",
    "WorkerBusyError",
    "WorkerInactiveError",
    "WorkerNotFoundError",
    "unwrap",
    "utcnow",
]
