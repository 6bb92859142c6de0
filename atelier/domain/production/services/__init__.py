from .assignment_matcher import (
    AssignmentMatcher,
    Distribution,
    TaskCompletion,
    index_orders,
)
from .metrics_calculator import MetricsCalculator
from .stage_transition_engine import StageTransitionEngine, progress_for

__all__ = [
    "AssignmentMatcher",
    "Distribution",
    "MetricsCalculator",
    "StageTransitionEngine",
    "TaskCompletion",
    "index_orders",
    "progress_for",
]
