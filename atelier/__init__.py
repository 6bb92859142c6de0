"""Garment workshop production stage and worker-assignment engine."""

__version__ = "0.1.0"
