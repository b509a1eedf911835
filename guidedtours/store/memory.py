"""Thread-safe in-memory store, used by tests and by embedding callers"""

import threading
from datetime import date
from typing import Iterable, Optional

from ..schemas import Guide, Place, Visit, VisitCategory
from .base import TourStore


class InMemoryStore(TourStore):
    def __init__(
        self,
        visits: Optional[Iterable[Visit]] = None,
        places: Optional[Iterable[Place]] = None,
        guides: Optional[Iterable[Guide]] = None,
        blackout_dates: Optional[dict[date, str]] = None,
        availability: Optional[dict[str, list[date]]] = None,
        categories: Optional[Iterable[VisitCategory]] = None,
    ):
        self._lock = threading.RLock()
        self.visits: dict[int, Visit] = {v.id: v for v in visits or []}
        self.places: dict[str, Place] = {p.name: p for p in places or []}
        self.guides: dict[str, Guide] = {g.email: g for g in guides or []}
        self.blackout_dates: dict[date, str] = dict(blackout_dates or {})
        self.availability: dict[str, list[date]] = {
            email.lower(): list(dates) for email, dates in (availability or {}).items()
        }
        self.categories: dict[str, VisitCategory] = {
            c.name.lower(): c for c in categories or []
        }
        self.collection_open: Optional[bool] = None

    def load_visits(self) -> list[Visit]:
        with self._lock:
            return list(self.visits.values())

    def add_visit(self, visit: Visit) -> bool:
        with self._lock:
            for existing in self.visits.values():
                if (
                    existing.place == visit.place
                    and existing.visit_date == visit.visit_date
                    and existing.guide_email == visit.guide_email
                    and existing.start_time == visit.start_time
                ):
                    return False
            self.visits[visit.id] = visit
            return True

    def save_visit(self, visit: Visit) -> bool:
        with self._lock:
            self.visits[visit.id] = visit
            return True

    def load_blackout_dates(self) -> dict[date, str]:
        with self._lock:
            return dict(self.blackout_dates)

    def add_blackout_date(self, day: date, reason: str) -> bool:
        with self._lock:
            self.blackout_dates.setdefault(day, reason)
            return True

    def remove_blackout_date(self, day: date) -> bool:
        with self._lock:
            return self.blackout_dates.pop(day, None) is not None

    def load_availability(self, guide_email: str) -> list[date]:
        with self._lock:
            return sorted(self.availability.get(guide_email.lower(), []))

    def replace_availability(self, availability: dict[str, list[date]]) -> bool:
        with self._lock:
            for email, dates in availability.items():
                self.availability[email.lower()] = list(dates)
            return True

    def set_collection_open(self, is_open: bool) -> None:
        with self._lock:
            self.collection_open = is_open

    def load_places(self) -> list[Place]:
        with self._lock:
            return list(self.places.values())

    def load_guides(self) -> list[Guide]:
        with self._lock:
            return list(self.guides.values())

    def load_categories(self) -> list[VisitCategory]:
        with self._lock:
            return list(self.categories.values())

    def save_category(self, category: VisitCategory) -> bool:
        with self._lock:
            if category.name.lower() in self.categories:
                return False
            self.categories[category.name.lower()] = category
            return True
