"""
In-memory collections shared by interactive callers and the lifecycle scheduler.

Each collection guards its own dict with a lock. Bulk reloads swap the whole
mapping while holding the lock; single-key writes replace one immutable entity.
There is no locking across collections.
"""

import logging
import threading
from datetime import date
from typing import Callable, Iterable, Optional

from ...schemas import Visit, VisitState

logger = logging.getLogger(__name__)


class VisitCollection:
    """Visits keyed by id"""

    def __init__(self, visits: Optional[Iterable[Visit]] = None):
        self._lock = threading.RLock()
        self._visits: dict[int, Visit] = {}
        if visits:
            self.reload(visits)

    def reload(self, visits: Iterable[Visit]) -> int:
        fresh: dict[int, Visit] = {}
        for visit in visits:
            fresh.setdefault(visit.id, visit)
        with self._lock:
            self._visits = fresh
        return len(fresh)

    def get(self, visit_id: int) -> Optional[Visit]:
        return self._visits.get(visit_id)

    def all(self) -> list[Visit]:
        return list(self._visits.values())

    def __len__(self) -> int:
        return len(self._visits)

    def __contains__(self, visit_id: int) -> bool:
        return visit_id in self._visits

    def put(self, visit: Visit) -> None:
        """Store a visit, replacing any previous version with the same id"""
        with self._lock:
            self._visits[visit.id] = visit

    def put_if_absent(self, visit: Visit) -> bool:
        with self._lock:
            if visit.id in self._visits:
                return False
            self._visits[visit.id] = visit
            return True

    def update(self, visit_id: int, **changes) -> Optional[Visit]:
        """Atomically replace a visit with a copy carrying the given field changes"""
        with self._lock:
            current = self._visits.get(visit_id)
            if current is None:
                return None
            updated = current.model_copy(update=changes)
            self._visits[visit_id] = updated
            return updated

    def remove(self, visit_id: int) -> Optional[Visit]:
        with self._lock:
            return self._visits.pop(visit_id, None)

    def next_id(self) -> int:
        with self._lock:
            return max(self._visits, default=0) + 1

    def filter(self, predicate: Callable[[Visit], bool]) -> list[Visit]:
        return [v for v in self.all() if predicate(v)]

    def on_date(self, day: date) -> list[Visit]:
        return self.filter(lambda v: v.visit_date == day)

    def at_place_on(self, place: str, day: date) -> list[Visit]:
        return self.filter(lambda v: v.visit_date == day and v.place == place)

    def for_guide_on(self, guide_email: str, day: date) -> list[Visit]:
        return self.filter(lambda v: v.visit_date == day and v.is_assigned_to(guide_email))

    def by_state(self, state: VisitState) -> list[Visit]:
        return self.filter(lambda v: v.state == state)


class BlackoutCalendar:
    """Blackout dates mapped to their reason"""

    def __init__(self, dates: Optional[dict[date, str]] = None):
        self._lock = threading.RLock()
        self._dates: dict[date, str] = dict(dates or {})

    def reload(self, dates: dict[date, str]) -> int:
        with self._lock:
            self._dates = dict(dates)
        return len(dates)

    def add(self, day: date, reason: str) -> bool:
        """Add a blackout date; returns False (not an error) when it already exists"""
        with self._lock:
            if day in self._dates:
                return False
            self._dates[day] = reason
            return True

    def remove(self, day: date) -> bool:
        with self._lock:
            return self._dates.pop(day, None) is not None

    def is_blackout(self, day: date) -> bool:
        return day in self._dates

    def reason(self, day: date) -> Optional[str]:
        return self._dates.get(day)

    def items(self) -> list[tuple[date, str]]:
        return sorted(self._dates.items())

    def dates(self) -> list[date]:
        return sorted(self._dates)

    def __len__(self) -> int:
        return len(self._dates)

    def __contains__(self, day: date) -> bool:
        return day in self._dates
