"""
Volunteer availability cache for the upcoming month.

Guides declare the days they can lead a visit between the 1st and the
collection deadline of each month. The cache is reloaded from the store on
every sync and written back as a full snapshot (delete-then-insert per
guide) together with the collection open/closed flag.
"""

import logging
import threading
from datetime import date
from typing import Callable, Iterable, Optional

from ...config import AVAILABILITY_COLLECTION_LAST_DAY
from ...schemas import Guide
from ...store.base import StoreError, TourStore

logger = logging.getLogger(__name__)


class AvailabilityEngine:
    def __init__(
        self,
        store: TourStore,
        guides_source: Optional[Callable[[], Iterable[Guide]]] = None,
        today_provider: Callable[[], date] = date.today,
        collection_last_day: int = AVAILABILITY_COLLECTION_LAST_DAY,
    ):
        self.store = store
        self.guides_source = guides_source
        self.today_provider = today_provider
        self.collection_last_day = collection_last_day
        self._lock = threading.RLock()
        self._dates: dict[str, list[date]] = {}
        self._versions: dict[str, int] = {}

    def is_collection_open(self, today: Optional[date] = None) -> bool:
        """Availability can be declared from the 1st up to the collection deadline"""
        today = today or self.today_provider()
        return 1 <= today.day <= self.collection_last_day

    def sync(self, guides: Optional[Iterable[Guide]] = None) -> int:
        """
        Reload every guide's dates from the store.

        A guide whose record is missing, or whose load fails, gets an empty
        list. Once the collection window has closed the whole snapshot is
        persisted so guides without declarations are recorded as such.

        Returns:
            Number of guides in the refreshed cache
        """
        if guides is None:
            guides = self.guides_source() if self.guides_source else []

        with self._lock:
            started = dict(self._versions)

        fresh: dict[str, list[date]] = {}
        for guide in guides:
            if guide is None or not guide.email:
                continue
            try:
                dates = self.store.load_availability(guide.email) or []
            except StoreError as e:
                logger.error(f"❌ Could not load availability for {guide.email}: {e}")
                dates = []
            fresh[guide.email.lower()] = sorted(d for d in dates if d is not None)

        with self._lock:
            # Keep entries saved or consumed while the store was being read
            for key, version in self._versions.items():
                if version != started.get(key):
                    fresh[key] = list(self._dates.get(key, []))
            self._dates = fresh

        if not self.is_collection_open():
            self._persist_snapshot()

        logger.info(f"🔄 Availability synced for {len(fresh)} guides")
        return len(fresh)

    def days_available_in_month(self, guide: Guide, year: int, month: int) -> list[int]:
        return [
            d.day
            for d in self.availability_for(guide.email)
            if d.year == year and d.month == month
        ]

    def save(self, guide: Guide, dates: Optional[Iterable[date]], merge: bool = False) -> list[date]:
        """
        Replace the guide's dates, or add to them when merge is set.
        Duplicates and None entries are dropped and the result is sorted.
        """
        key = guide.email.lower()
        with self._lock:
            if merge:
                current = list(self._dates.get(key, []))
                for d in dates or []:
                    if d is not None and d not in current:
                        current.append(d)
            else:
                current = []
                for d in dates or []:
                    if d is not None and d not in current:
                        current.append(d)
            current.sort()
            self._dates[key] = current
            self._touch(key)

        self._persist_snapshot()
        return list(current)

    def consume_date(self, guide: Guide, day: date) -> bool:
        """Remove a date from the guide's availability once a visit was planned on it"""
        key = guide.email.lower()
        with self._lock:
            current = self._dates.get(key, [])
            if day not in current:
                return False
            self._dates[key] = [d for d in current if d != day]
            self._touch(key)

        self._persist_snapshot()
        return True

    def availability_for(self, email: Optional[str]) -> list[date]:
        if not email:
            return []
        return list(self._dates.get(email.strip().lower(), []))

    def guides_with_availability(self) -> list[str]:
        return sorted(email for email, dates in self._dates.items() if dates)

    def snapshot(self) -> dict[str, list[date]]:
        with self._lock:
            return {email: list(dates) for email, dates in self._dates.items()}

    def _touch(self, key: str) -> None:
        self._versions[key] = self._versions.get(key, 0) + 1

    def _persist_snapshot(self) -> bool:
        # Held across the writes so snapshots reach the store in cache order
        with self._lock:
            snapshot = self.snapshot()
            try:
                self.store.set_collection_open(self.is_collection_open())
                self.store.replace_availability(snapshot)
                return True
            except StoreError as e:
                logger.error(f"❌ Failed to persist availability snapshot: {e}")
                return False
