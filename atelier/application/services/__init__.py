from .production_service import ProductionService

__all__ = ["ProductionService"]
