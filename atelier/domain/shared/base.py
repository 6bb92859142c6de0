"""Base classes for domain records and value objects."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, TypeVar
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field


def utcnow() -> datetime:
    """Timezone-aware current time used as the default engine clock."""
    return datetime.now(UTC)


class ValueObject(BaseModel):
    """Base class for value objects (immutable, defined by their values)."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)


RecordT = TypeVar("RecordT", bound="Record")


class Record(BaseModel):
    """
    Base class for production records (orders, tasks, workers).

    Records are immutable snapshots of a row owned by an external repository.
    Every change produces a new record through ``evolve``, which re-runs the
    model validators so record invariants cannot be bypassed. ``version`` is the
    optimistic-concurrency key a repository checks on save.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    id: UUID = Field(default_factory=uuid4)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime | None = None
    version: int = Field(default=0, ge=0)

    def evolve(self: RecordT, *, at: datetime | None = None, **changes: Any) -> RecordT:
        """
        Return a validated copy of this record with ``changes`` applied.

        Args:
            at: Timestamp recorded as ``updated_at`` (defaults to now)
            **changes: Field values to replace

        Returns:
            New record of the same type
        """
        data = self.model_dump()
        data.update(changes)
        data["updated_at"] = at or utcnow()
        return type(self).model_validate(data)

    def is_same_record(self, other: "Record") -> bool:
        """Records are the same row if they have the same ID and type."""
        return isinstance(other, self.__class__) and self.id == other.id


@dataclass(frozen=True, kw_only=True)
class DomainEvent:
    """Base class for domain events."""

    event_id: UUID = field(default_factory=uuid4)
    occurred_at: datetime = field(default_factory=utcnow)
    aggregate_id: UUID

    @property
    def event_name(self) -> str:
        return type(self).__name__
