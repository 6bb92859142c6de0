"""Department to production stage lookup table."""

from collections.abc import Mapping

from pydantic import Field, field_validator

from ...shared.base import ValueObject
from .enums import StageId


def normalize_department(department: str) -> str:
    """Canonical key for a department name ("Sewing " -> "sewing")."""
    return department.strip().casefold()


class DepartmentStageMap(ValueObject):
    """
    Tagged mapping from worker departments to the stage they work.

    Department names are roster data and may diverge from stage identifiers
    ("tailoring" works the ``sewing`` stage), so matching always goes through
    this table. A department missing from the table is a configuration error.
    """

    entries: dict[str, StageId] = Field(default_factory=dict)

    @field_validator("entries")
    @classmethod
    def validate_entries(cls, v: dict[str, StageId]) -> dict[str, StageId]:
        normalized: dict[str, StageId] = {}
        for department, stage in v.items():
            if not stage.is_work_stage:
                raise ValueError(
                    f"department '{department}' must map to a work stage, not '{stage.value}'"
                )
            key = normalize_department(department)
            if not key:
                raise ValueError("department names must not be blank")
            if key in normalized:
                raise ValueError(
                    f"department '{department}' is configured more than once"
                )
            normalized[key] = stage
        return normalized

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, str | StageId]) -> "DepartmentStageMap":
        return cls(entries={name: StageId(stage) for name, stage in mapping.items()})

    @classmethod
    def from_settings(cls) -> "DepartmentStageMap":
        from ....core.config import settings

        return cls.from_mapping(settings.DEPARTMENT_STAGE_MAP)

    def stage_for(self, department: str) -> StageId | None:
        """
        Look up the stage a department works.

        Args:
            department: Worker department as recorded in the roster

        Returns:
            Mapped stage, or None if the department is not configured
        """
        return self.entries.get(normalize_department(department))

    def is_mapped(self, department: str) -> bool:
        return self.stage_for(department) is not None

    def departments_for(self, stage: StageId) -> list[str]:
        """All configured departments that work ``stage``, sorted."""
        return sorted(name for name, mapped in self.entries.items() if mapped == stage)

    @property
    def departments(self) -> list[str]:
        return sorted(self.entries)
