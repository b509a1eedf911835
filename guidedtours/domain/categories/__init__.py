from .registry import BUILT_IN_CATEGORIES, CategoryRegistry

__all__ = ["BUILT_IN_CATEGORIES", "CategoryRegistry"]
