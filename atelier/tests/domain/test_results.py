"""
Unit tests for discriminated results, domain exceptions and base events.
"""

from dataclasses import FrozenInstanceError
from uuid import UUID, uuid4

import pytest

from atelier.domain.production.events import OrderStageAdvanced
from atelier.domain.shared.base import DomainEvent
from atelier.domain.shared.exceptions import (
    ConcurrencyError,
    DomainError,
    ErrorType,
    InvalidTransitionError,
    NoEligibleTaskError,
    OrderNotFoundError,
    ResourceConflictError,
    TaskUnavailableError,
    UnknownDepartmentMappingError,
    WorkerBusyError,
)
from atelier.domain.shared.results import ErrorKind, Failure, Success, unwrap


class TestResults:
    """Test Success/Failure behaviour."""

    def test_success(self):
        result = Success(42)

        assert result.ok
        assert result.events == ()
        assert unwrap(result) == 42

    def test_failure_to_dict(self):
        failure = Failure(ErrorKind.WORKER_BUSY, "busy", {"worker_id": "w-1"})

        assert not failure.ok
        assert failure.to_dict() == {
            "kind": "worker_busy",
            "message": "busy",
            "details": {"worker_id": "w-1"},
        }

    @pytest.mark.parametrize(
        ("kind", "exception", "error_type"),
        [
            (ErrorKind.INVALID_TRANSITION, InvalidTransitionError, ErrorType.BUSINESS_RULE),
            (ErrorKind.WORKER_BUSY, WorkerBusyError, ErrorType.RESOURCE_CONFLICT),
            (ErrorKind.TASK_UNAVAILABLE, TaskUnavailableError, ErrorType.RESOURCE_CONFLICT),
            (ErrorKind.NO_ELIGIBLE_TASK, NoEligibleTaskError, ErrorType.BUSINESS_RULE),
            (
                ErrorKind.UNKNOWN_DEPARTMENT_MAPPING,
                UnknownDepartmentMappingError,
                ErrorType.CONFIGURATION,
            ),
        ],
    )
    def test_failure_maps_to_exception(self, kind, exception, error_type):
        failure = Failure(kind, "message", {"key": "value"})

        error = failure.to_exception()

        assert isinstance(error, exception)
        assert error.error_type == error_type
        assert error.details == {"key": "value"}
        with pytest.raises(exception):
            unwrap(failure)

    def test_every_kind_has_an_exception(self):
        for kind in ErrorKind:
            assert isinstance(Failure(kind, "x").to_exception(), DomainError)

    def test_only_no_eligible_task_is_not_actionable(self):
        for kind in ErrorKind:
            assert Failure(kind, "x").is_actionable == (kind != ErrorKind.NO_ELIGIBLE_TASK)

    def test_only_mapping_errors_are_configuration_errors(self):
        assert [k for k in ErrorKind if k.is_configuration_error] == [
            ErrorKind.UNKNOWN_DEPARTMENT_MAPPING
        ]


class TestDomainErrors:
    """Test the exception hierarchy payloads."""

    def test_not_found_error(self):
        order_id = uuid4()

        error = OrderNotFoundError(order_id)

        assert error.error_type == ErrorType.NOT_FOUND
        assert error.record_id == order_id
        assert error.to_dict()["details"]["order_id"] == str(order_id)

    def test_concurrency_error(self):
        record_id = uuid4()

        error = ConcurrencyError("task", record_id, expected=1, actual=2)

        assert error.error_type == ErrorType.CONCURRENCY
        assert error.details["expected_version"] == 1
        assert error.details["actual_version"] == 2

    def test_conflicts_share_a_base(self):
        assert issubclass(WorkerBusyError, ResourceConflictError)
        assert issubclass(TaskUnavailableError, ResourceConflictError)


class TestDomainEvents:
    """Test event dataclasses."""

    def test_event_defaults(self):
        aggregate_id = uuid4()

        event = OrderStageAdvanced(
            aggregate_id=aggregate_id,
            order_id=aggregate_id,
            from_stage="design",
            to_stage="cutting",
            progress=50,
        )

        assert isinstance(event.event_id, UUID)
        assert event.occurred_at.tzinfo is not None
        assert event.event_name == "OrderStageAdvanced"
        assert isinstance(event, DomainEvent)

    def test_events_are_immutable(self):
        event = DomainEvent(aggregate_id=uuid4())

        with pytest.raises(FrozenInstanceError):
            event.aggregate_id = uuid4()  # type: ignore[misc]
