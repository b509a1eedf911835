"""Visit category registry - built-in categories plus custom entries"""

import logging
import threading
from typing import Iterable, Optional

from ...schemas import VisitCategory

logger = logging.getLogger(__name__)


STORICA = VisitCategory(
    name="STORICA",
    description="Un percorso guidato alla scoperta della storia e dei monumenti principali della città.",
)
SCIENTIFICA = VisitCategory(
    name="SCIENTIFICA",
    description="Un'esperienza educativa dedicata alle scienze e alle innovazioni tecnologiche.",
)
ENOGASTRONOMICA = VisitCategory(
    name="ENOGASTRONOMICA",
    description="Un viaggio tra i sapori tipici locali con degustazioni di prodotti tradizionali.",
)
LABBAMBINI = VisitCategory(
    name="LABBAMBINI",
    description="Attività ludico-didattiche pensate per i più piccoli, con laboratori creativi e giochi.",
)

BUILT_IN_CATEGORIES = (STORICA, SCIENTIFICA, ENOGASTRONOMICA, LABBAMBINI)


def _key(name: Optional[str]) -> str:
    return (name or "").strip().lower()


class CategoryRegistry:
    """Thread-safe registry of visit categories keyed by case-insensitive name"""

    def __init__(self, custom: Optional[Iterable[VisitCategory]] = None):
        self._lock = threading.RLock()
        self._categories: dict[str, VisitCategory] = {_key(c.name): c for c in BUILT_IN_CATEGORIES}
        for category in custom or []:
            self._categories.setdefault(_key(category.name), category)

    @staticmethod
    def is_built_in(name: str) -> bool:
        return _key(name) in {_key(c.name) for c in BUILT_IN_CATEGORIES}

    def get(self, name: str) -> Optional[VisitCategory]:
        return self._categories.get(_key(name))

    def from_name(self, name: str) -> VisitCategory:
        """Return the registered category, or an ad hoc one with an empty description"""
        category = self.get(name)
        if category is not None:
            return category
        return VisitCategory(name=name.strip(), description="")

    def register(self, name: str, description: str = "") -> bool:
        """Register a custom category; False if the name is blank or already taken"""
        if not name or not name.strip():
            return False
        with self._lock:
            key = _key(name)
            if key in self._categories:
                return False
            self._categories[key] = VisitCategory(name=name.strip(), description=description or "")
        logger.info(f"✅ Registered visit category {name.strip()}")
        return True

    def remove(self, name: str) -> bool:
        """Remove a custom category; built-ins are never removed"""
        if not name or not name.strip() or self.is_built_in(name):
            return False
        with self._lock:
            removed = self._categories.pop(_key(name), None)
        if removed is not None:
            logger.info(f"🗑️ Removed visit category {removed.name}")
        return removed is not None

    def reload(self, categories: Iterable[VisitCategory]) -> None:
        """Replace custom entries with the given set, keeping the built-ins"""
        with self._lock:
            fresh = {_key(c.name): c for c in BUILT_IN_CATEGORIES}
            for category in categories:
                fresh.setdefault(_key(category.name), category)
            self._categories = fresh

    def names(self) -> list[str]:
        return [c.name for c in self._categories.values()]

    def values(self) -> list[VisitCategory]:
        return list(self._categories.values())

    def resolve(self, names: Iterable[str]) -> list[VisitCategory]:
        """Resolve names to registered categories, skipping unknown entries"""
        resolved = []
        for name in names:
            category = self.get(name)
            if category is None:
                logger.warning(f"⚠️ Unknown visit category '{name}' skipped")
                continue
            resolved.append(category)
        return resolved
