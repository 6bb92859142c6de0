from .station_summary import (
    ALL_DEPARTMENTS,
    StationAggregator,
    StationSummary,
    WorkerStation,
)

__all__ = ["ALL_DEPARTMENTS", "StationAggregator", "StationSummary", "WorkerStation"]
