"""Derived metric value objects."""

from typing import Literal, TypeAlias
from uuid import UUID

from pydantic import Field

from ...shared.base import ValueObject

UNKNOWN: Literal["unknown"] = "unknown"

# A metric that is either measured or explicitly unknown, never guessed
MaybeMetric: TypeAlias = float | Literal["unknown"]


def is_known(value: MaybeMetric) -> bool:
    return value != UNKNOWN


class AttendanceRecord(ValueObject):
    """Attendance/time-tracking figures supplied by the biometric service."""

    worker_ref: UUID
    avg_hours: float | None = Field(default=None, ge=0.0)
    quality_score: float | None = Field(default=None, ge=0.0, le=100.0)
    confirmed_active: bool | None = None


class PerformanceSnapshot(ValueObject):
    """
    Per-worker performance derived from tasks and attendance.

    ``has_history`` separates "never assigned anything" (efficiency is the
    neutral baseline) from "assigned work and completed none" (0%).
    """

    worker_ref: UUID
    efficiency: float = Field(ge=0.0, le=100.0)
    has_history: bool
    completed_tasks: int = Field(ge=0)
    assigned_tasks: int = Field(ge=0)
    avg_hours: MaybeMetric = UNKNOWN
    quality_score: MaybeMetric = UNKNOWN


class TrackingStatistics(ValueObject):
    """Order-level statistics for the production tracking header."""

    total_orders: int = Field(ge=0)
    pending_orders: int = Field(ge=0)
    in_progress_orders: int = Field(ge=0)
    completed_orders: int = Field(ge=0)
    delayed_orders: int = Field(ge=0)
    average_efficiency: MaybeMetric = UNKNOWN
