"""Domain enums for production tracking."""

from enum import Enum


class StageId(str, Enum):
    """Manufacturing pipeline stages, declared in pipeline order."""

    PENDING = "pending"
    DESIGN = "design"
    CUTTING = "cutting"
    SEWING = "sewing"
    FITTING = "fitting"
    COMPLETED = "completed"

    @property
    def is_terminal(self) -> bool:
        """Check if stage is terminal (cannot transition further)."""
        return self == StageId.COMPLETED

    @property
    def is_work_stage(self) -> bool:
        """Check if tasks can be opened at this stage."""
        return self not in {StageId.PENDING, StageId.COMPLETED}


class OrderPriority(str, Enum):
    """Order priority enumeration."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def rank(self) -> int:
        """Get numeric value for priority comparison (higher is served first)."""
        priority_map = {
            OrderPriority.LOW: 1,
            OrderPriority.MEDIUM: 2,
            OrderPriority.HIGH: 3,
        }
        return priority_map[self]

    def is_higher_than(self, other: "OrderPriority") -> bool:
        """Check if this priority is higher than another."""
        return self.rank > other.rank


class OrderStatus(str, Enum):
    """Denormalized order status mirrored for the order screens."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class TaskStatus(str, Enum):
    """Task status enumeration."""

    PENDING = "pending"  # Waiting for a worker
    IN_PROGRESS = "in_progress"  # Bound to a worker and being worked
    PAUSED = "paused"  # Bound to a worker, work interrupted
    COMPLETED = "completed"  # Closed

    @property
    def is_open(self) -> bool:
        """Check if task still represents outstanding work."""
        return self != TaskStatus.COMPLETED

    @property
    def is_bound(self) -> bool:
        """Check if the status requires a worker binding."""
        return self in {TaskStatus.IN_PROGRESS, TaskStatus.PAUSED}

    def can_transition_to(self, target_status: "TaskStatus") -> bool:
        """Check if task can transition from current status to target status."""
        valid_transitions = {
            TaskStatus.PENDING: {TaskStatus.IN_PROGRESS, TaskStatus.COMPLETED},
            TaskStatus.IN_PROGRESS: {TaskStatus.PAUSED, TaskStatus.COMPLETED},
            TaskStatus.PAUSED: {TaskStatus.IN_PROGRESS},
            TaskStatus.COMPLETED: set(),  # Terminal state
        }
        return target_status in valid_transitions.get(self, set())


class WorkerStationStatus(str, Enum):
    """Derived station status of a worker; every worker is in exactly one."""

    AVAILABLE = "available"
    BUSY = "busy"
    OFFLINE = "offline"
