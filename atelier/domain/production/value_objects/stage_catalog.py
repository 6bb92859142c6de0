"""Stage catalog: the fixed, ordered manufacturing pipeline."""

from collections.abc import Iterator

from pydantic import Field, field_validator

from ...shared.base import ValueObject
from .enums import StageId


class StageCatalog(ValueObject):
    """
    Ordered definition of the manufacturing stages.

    The catalog starts at ``pending`` and ends at the terminal ``completed``
    stage; everything in between is a work stage that tasks can be opened for.
    """

    stages: tuple[StageId, ...] = Field(default=tuple(StageId))

    @field_validator("stages")
    @classmethod
    def validate_pipeline(cls, v: tuple[StageId, ...]) -> tuple[StageId, ...]:
        if len(set(v)) != len(v):
            raise ValueError("stage catalog contains duplicate stages")
        if len(v) < 2 or v[0] != StageId.PENDING or v[-1] != StageId.COMPLETED:
            raise ValueError("stage catalog must run from 'pending' to 'completed'")
        return v

    def __iter__(self) -> Iterator[StageId]:  # type: ignore[override]
        return iter(self.stages)

    def __len__(self) -> int:
        return len(self.stages)

    def __contains__(self, stage: object) -> bool:
        return stage in self.stages

    def index(self, stage: StageId) -> int:
        """Zero-based pipeline position of a stage."""
        return self.stages.index(stage)

    def next_stage(self, stage: StageId) -> StageId | None:
        """
        Get the stage immediately after ``stage``.

        Args:
            stage: Current stage

        Returns:
            Following stage, or None when ``stage`` is terminal
        """
        position = self.index(stage)
        if position + 1 >= len(self.stages):
            return None
        return self.stages[position + 1]

    def is_before(self, stage: StageId, other: StageId) -> bool:
        return self.index(stage) < self.index(other)

    @property
    def first_work_stage(self) -> StageId:
        return self.stages[1]

    @property
    def last_work_stage(self) -> StageId:
        return self.stages[-2]

    @property
    def work_stages(self) -> tuple[StageId, ...]:
        return self.stages[1:-1]


DEFAULT_STAGE_CATALOG = StageCatalog()
