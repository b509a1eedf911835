from .service import AvailabilityEngine

__all__ = ["AvailabilityEngine"]
