from .order import Order
from .task import Task
from .worker import Worker

__all__ = ["Order", "Task", "Worker"]
