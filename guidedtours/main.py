"""
Scheduling engine composition root.

Wires the store into the shared collections and builds every component on
top of them. Interactive callers and the lifecycle host both go through the
same SchedulingEngine instance.
"""

import logging
from datetime import date, datetime, time
from typing import Callable, Iterable, Optional

from .domain.availability.service import AvailabilityEngine
from .domain.categories.registry import CategoryRegistry
from .domain.scheduling.conflicts import ConflictDetector
from .domain.scheduling.slots import SlotFinder
from .domain.scheduling.validator import VisitValidator
from .domain.visits.collections import BlackoutCalendar, VisitCollection
from .domain.visits.directory import EntityDirectory
from .schemas import Guide, GuidedPlanRequest, Visit, VisitCategory, VisitPlanRequest
from .services.visit_service import VisitPlanningService
from .store.base import StoreError, TourStore
from .workers.lifecycle_worker import LifecycleScheduler
from .workers.pool import WorkerPool

logger = logging.getLogger(__name__)


class SchedulingEngine:
    def __init__(
        self,
        store: Optional[TourStore] = None,
        pool: Optional[WorkerPool] = None,
        now_provider: Callable[[], datetime] = datetime.now,
    ):
        if store is None:
            from .store.sql import SqlAlchemyStore

            store = SqlAlchemyStore()

        self.store = store
        self.pool = pool or WorkerPool()
        self.now_provider = now_provider

        self.visits = VisitCollection()
        self.blackouts = BlackoutCalendar()
        self.directory = EntityDirectory()
        self.categories = CategoryRegistry()

        self.conflicts = ConflictDetector(self.visits)
        self.slot_finder = SlotFinder(self.conflicts)
        self.validator = VisitValidator(self.visits, self.conflicts, self.categories)
        self.availability = AvailabilityEngine(
            store,
            guides_source=self.directory.guides,
            today_provider=self.today,
        )
        self.planning = VisitPlanningService(
            self.visits,
            self.blackouts,
            self.directory,
            self.categories,
            self.validator,
            self.slot_finder,
            self.availability,
            store,
            today_provider=self.today,
        )
        self.scheduler = LifecycleScheduler(
            self.visits,
            self.blackouts,
            self.availability,
            store,
            self.pool,
            now_provider=now_provider,
        )

    def today(self) -> date:
        return self.now_provider().date()

    def load_all(self) -> dict:
        """
        Bulk reload every collection from the store. A collection whose load
        fails keeps its current contents.
        """
        counts = {}
        loaders = [
            ("categories", self.store.load_categories, self.categories.reload),
            ("places", self.store.load_places, self.directory.reload_places),
            ("guides", self.store.load_guides, self.directory.reload_guides),
            ("visits", self.store.load_visits, self.visits.reload),
            ("blackout_dates", self.store.load_blackout_dates, self.blackouts.reload),
        ]
        for name, load, reload in loaders:
            try:
                items = load()
                reload(items)
                counts[name] = len(items)
            except StoreError as e:
                logger.error(f"❌ Failed to load {name}: {e}")
                counts[name] = None

        counts["availability"] = self.availability.sync()
        logger.info(f"📊 Engine loaded: {counts}")
        return counts

    # Scheduling host
    def run_immediate_cycle(self):
        return self.scheduler.run_immediate_cycle()

    def start_periodic(self, interval: Optional[float] = None, include_maintenance: bool = False):
        if interval is None:
            return self.scheduler.start_periodic(include_maintenance=include_maintenance)
        return self.scheduler.start_periodic(interval, include_maintenance)

    def stop_periodic(self) -> bool:
        return self.scheduler.stop_periodic()

    def shutdown(self, wait: bool = True) -> None:
        self.scheduler.stop_periodic()
        self.pool.shutdown_all(wait=wait)

    # Interactive operations
    def find_slots(self, day: date, place: str, duration_minutes: int) -> list[time]:
        return self.slot_finder.find_slots(day, place, duration_minutes)

    def validate_new_visit(self, candidate: Visit) -> bool:
        return self.validator.validate_new_visit(candidate)

    def validate_assignment(self, visit: Visit, guide_email: str) -> tuple:
        return self.validator.validate_assignment(visit, guide_email)

    def eligible_days_for_guide(self, guide: Guide, year: int, month: int) -> list[int]:
        return self.validator.eligible_days_for_guide(guide, year, month)

    def save_availability(
        self, guide: Guide, dates: Optional[Iterable[date]], merge: bool = False
    ) -> list[date]:
        return self.availability.save(guide, dates, merge)

    def plan_visit(self, request: VisitPlanRequest) -> Visit:
        return self.planning.plan_visit(request)

    def plan_guided_visit(self, request: GuidedPlanRequest) -> Visit:
        return self.planning.plan_guided_visit(request)

    def assign_guide(self, visit_id: int, guide_email: str) -> Visit:
        return self.planning.assign_guide(visit_id, guide_email)

    def change_state(self, visit_id: int, new_state) -> Visit:
        return self.planning.change_state(visit_id, new_state)

    def reschedule_visit(self, visit_id: int, new_date: date, **kwargs) -> Visit:
        return self.planning.reschedule_visit(visit_id, new_date, **kwargs)

    def add_blackout_date(self, day: date, reason: str) -> bool:
        return self.planning.add_blackout_date(day, reason)

    def remove_blackout_date(self, day: date) -> bool:
        return self.planning.remove_blackout_date(day)

    def bookable_visits(self) -> list[Visit]:
        return self.planning.bookable_visits()

    def visits_by_state(self, state) -> list[Visit]:
        return self.planning.visits_by_state(state)

    def register_category(self, name: str, description: str = "") -> bool:
        """Register a custom category and persist it; False if the name is taken"""
        if not self.categories.register(name, description):
            return False
        try:
            self.store.save_category(VisitCategory(name=name, description=description))
        except StoreError as e:
            logger.error(f"❌ Failed to persist category {name}: {e}")
        return True
