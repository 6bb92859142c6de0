from typing import Literal

from pydantic import computed_field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing_extensions import Self

DEFAULT_DEPARTMENT_STAGE_MAP: dict[str, str] = {
    "design": "design",
    "cutting": "cutting",
    "sewing": "sewing",
    "tailoring": "sewing",
    "fitting": "fitting",
    "alterations": "fitting",
}

WORK_STAGE_VALUES = {"design", "cutting", "sewing", "fitting"}


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="ATELIER_",
        env_file=".env",
        env_ignore_empty=True,
        extra="ignore",
    )

    PROJECT_NAME: str = "atelier-production"
    ENVIRONMENT: Literal["local", "staging", "production"] = "local"

    # Observability Configuration
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: Literal["json", "console"] = "json"
    ENABLE_METRICS: bool = True

    # Department -> production stage lookup used by the assignment matcher
    # JSON object in the environment, e.g. {"tailoring": "sewing"}
    DEPARTMENT_STAGE_MAP: dict[str, str] = DEFAULT_DEPARTMENT_STAGE_MAP

    # Efficiency reported for workers with no assignment history (percent)
    NEUTRAL_EFFICIENCY_BASELINE: float = 100.0

    # Workflow behaviour of the application service
    AUTO_OPEN_STAGE_TASKS: bool = True
    CLOSE_UNASSIGNED_TASKS_ON_ADVANCE: bool = True

    @model_validator(mode="after")
    def _check_department_map(self) -> Self:
        unknown = {
            department: stage
            for department, stage in self.DEPARTMENT_STAGE_MAP.items()
            if stage not in WORK_STAGE_VALUES
        }
        if unknown:
            raise ValueError(
                f"DEPARTMENT_STAGE_MAP points at non-work stages: {unknown}"
            )
        seen: set[str] = set()
        for department in self.DEPARTMENT_STAGE_MAP:
            key = department.strip().casefold()
            if key in seen:
                raise ValueError(
                    f"DEPARTMENT_STAGE_MAP lists department '{key}' more than once"
                )
            seen.add(key)
        if not 0.0 <= self.NEUTRAL_EFFICIENCY_BASELINE <= 100.0:
            raise ValueError("NEUTRAL_EFFICIENCY_BASELINE must be within 0-100")
        return self

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_local(self) -> bool:
        return self.ENVIRONMENT == "local"


settings = Settings()  # type: ignore
