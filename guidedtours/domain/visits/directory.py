"""Lookup of places by name and guides by email"""

import logging
import threading
from typing import Iterable, Optional

from ...schemas import Guide, Place

logger = logging.getLogger(__name__)


class EntityDirectory:
    """Places and guides known to the engine; guide emails match case-insensitively"""

    def __init__(
        self,
        places: Optional[Iterable[Place]] = None,
        guides: Optional[Iterable[Guide]] = None,
    ):
        self._places_lock = threading.RLock()
        self._guides_lock = threading.RLock()
        self._places: dict[str, Place] = {}
        self._guides: dict[str, Guide] = {}
        if places:
            self.reload_places(places)
        if guides:
            self.reload_guides(guides)

    def reload_places(self, places: Iterable[Place]) -> int:
        fresh = {p.name: p for p in places}
        with self._places_lock:
            self._places = fresh
        return len(fresh)

    def reload_guides(self, guides: Iterable[Guide]) -> int:
        fresh = {g.email.lower(): g for g in guides}
        with self._guides_lock:
            self._guides = fresh
        return len(fresh)

    def place(self, name: str) -> Optional[Place]:
        return self._places.get(name)

    def guide(self, email: Optional[str]) -> Optional[Guide]:
        if not email:
            return None
        return self._guides.get(email.strip().lower())

    def put_place(self, place: Place) -> None:
        with self._places_lock:
            self._places[place.name] = place

    def put_guide(self, guide: Guide) -> None:
        with self._guides_lock:
            self._guides[guide.email.lower()] = guide

    def places(self) -> list[Place]:
        return list(self._places.values())

    def guides(self) -> list[Guide]:
        return list(self._guides.values())

    def places_offering(self, category: str) -> list[Place]:
        return [p for p in self.places() if p.offers(category)]

    def guides_qualified_for(self, category: str) -> list[Guide]:
        return [g for g in self.guides() if g.is_qualified_for(category)]
