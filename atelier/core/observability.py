"""
Observability Infrastructure

Structured logging and Prometheus counters for the production engine's
callers. Domain services stay pure; the application and infrastructure
layers log and count the outcomes they receive from them.
"""

import contextvars
import logging
import sys
import uuid
from typing import Any

import structlog
from prometheus_client import Counter

from .config import settings

# Context variables for correlation tracking
correlation_id_var: contextvars.ContextVar[str] = contextvars.ContextVar(
    "correlation_id", default=""
)

STAGE_TRANSITIONS = Counter(
    "atelier_stage_transitions_total",
    "Order stage transitions",
    ["from_stage", "to_stage"],
)

ASSIGNMENT_OPERATIONS = Counter(
    "atelier_assignment_operations_total",
    "Worker/task assignment operations",
    ["operation", "outcome"],
)

CONFIGURATION_ERRORS = Counter(
    "atelier_configuration_errors_total",
    "Departments without a production stage mapping",
    ["department"],
)


class CorrelationIdProcessor:
    """Structlog processor to add correlation ID to all log entries."""

    def __call__(
        self, logger: Any, name: str, event_dict: dict[str, Any]
    ) -> dict[str, Any]:
        correlation_id = correlation_id_var.get("")
        if correlation_id:
            event_dict["correlation_id"] = correlation_id
        return event_dict


def setup_structured_logging() -> None:
    """Configure structured logging with JSON output and correlation tracking."""
    log_level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    processors = [
        structlog.contextvars.merge_contextvars,
        CorrelationIdProcessor(),
        structlog.processors.TimeStamper(fmt="ISO"),
        structlog.processors.add_log_level,
        structlog.stdlib.add_logger_name,
    ]

    if settings.LOG_FORMAT == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=settings.is_local))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=log_level,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)


def set_correlation_id(correlation_id: str | None = None) -> str:
    """Set correlation ID for request tracking."""
    if correlation_id is None:
        correlation_id = str(uuid.uuid4())

    correlation_id_var.set(correlation_id)
    return correlation_id


def get_correlation_id() -> str:
    """Get current correlation ID."""
    return correlation_id_var.get("")


def record_assignment_outcome(operation: str, outcome: str) -> None:
    """Count an assignment-side operation when metrics are enabled."""
    if settings.ENABLE_METRICS:
        ASSIGNMENT_OPERATIONS.labels(operation=operation, outcome=outcome).inc()


def record_stage_transition(from_stage: str, to_stage: str) -> None:
    """Count an order stage transition when metrics are enabled."""
    if settings.ENABLE_METRICS:
        STAGE_TRANSITIONS.labels(from_stage=from_stage, to_stage=to_stage).inc()


def record_configuration_error(department: str) -> None:
    """Count a department that could not be mapped to a stage."""
    if settings.ENABLE_METRICS:
        CONFIGURATION_ERRORS.labels(department=department).inc()
