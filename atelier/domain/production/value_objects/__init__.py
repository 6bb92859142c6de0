from .department_map import DepartmentStageMap, normalize_department
from .enums import (
    OrderPriority,
    OrderStatus,
    StageId,
    TaskStatus,
    WorkerStationStatus,
)
from .metrics import (
    UNKNOWN,
    AttendanceRecord,
    MaybeMetric,
    PerformanceSnapshot,
    TrackingStatistics,
    is_known,
)
from .stage_catalog import DEFAULT_STAGE_CATALOG, StageCatalog

__all__ = [
    "DEFAULT_STAGE_CATALOG",
    "UNKNOWN",
    "AttendanceRecord",
    "DepartmentStageMap",
    "MaybeMetric",
    "OrderPriority",
    "OrderStatus",
    "PerformanceSnapshot",
    "StageCatalog",
    "StageId",
    "TaskStatus",
    "TrackingStatistics",
    "WorkerStationStatus",
    "is_known",
    "normalize_department",
]
