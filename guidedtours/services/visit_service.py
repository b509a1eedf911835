"""
Visit Planning Service
Handles free-form and guided planning, guide assignment, state changes,
rescheduling and blackout date administration
"""

import logging
from datetime import date, time
from typing import Callable, List, Optional

from ..config import MAX_PEOPLE_PER_VISIT
from ..domain.availability.service import AvailabilityEngine
from ..domain.categories.registry import CategoryRegistry
from ..domain.scheduling.calendar_rules import end_time, is_category_schedulable_on
from ..domain.scheduling.slots import SlotFinder, check_duration_fits, check_operating_window
from ..domain.scheduling.validator import VisitValidator
from ..domain.visits.collections import BlackoutCalendar, VisitCollection
from ..domain.visits.directory import EntityDirectory
from ..schemas import GuidedPlanRequest, Visit, VisitPlanRequest, VisitState
from ..store.base import StoreError, TourStore
from .status_automation import validate_state_transition

logger = logging.getLogger(__name__)


class VisitPlanningService:
    """Service for planning visits and administering their lifecycle"""

    def __init__(
        self,
        visits: VisitCollection,
        blackouts: BlackoutCalendar,
        directory: EntityDirectory,
        categories: CategoryRegistry,
        validator: VisitValidator,
        slot_finder: SlotFinder,
        availability: AvailabilityEngine,
        store: TourStore,
        today_provider: Callable[[], date] = date.today,
    ):
        self.visits = visits
        self.blackouts = blackouts
        self.directory = directory
        self.categories = categories
        self.validator = validator
        self.slot_finder = slot_finder
        self.availability = availability
        self.store = store
        self.today_provider = today_provider

    # Planning
    def plan_visit(self, request: VisitPlanRequest) -> Visit:
        """
        Plan a visit at a place chosen by the caller.

        Every requested category must be offered by the place. Without a
        start time the first free slot of the day is taken.

        Raises:
            ValueError: unknown place or guide, or a plan the calendar rejects
        """
        place = self.directory.place(request.place)
        if not place:
            raise ValueError(f"Place '{request.place}' not found")

        missing = [c for c in request.categories if not place.offers(c)]
        if missing:
            raise ValueError(f"Place '{place.name}' does not offer: {', '.join(missing)}")

        self._check_date(request.visit_date, request.categories)
        self._check_duration(request.duration_minutes)
        if request.start_time is not None:
            self._check_window(request.start_time, request.duration_minutes)

        guide_email = None
        if request.guide_email:
            guide = self.directory.guide(request.guide_email)
            if not guide:
                raise ValueError(f"Guide '{request.guide_email}' not found")
            if not any(guide.is_qualified_for(c) for c in request.categories):
                raise ValueError(f"Guide {guide.email} is not qualified for this visit")
            guide_email = guide.email

        capacity = self._effective_capacity(request.capacity, request.min_participants)
        visit = Visit(
            id=self.visits.next_id(),
            title=request.title,
            place=place.name,
            categories=request.categories,
            guide_email=guide_email,
            visit_date=request.visit_date,
            start_time=request.start_time,
            duration_minutes=request.duration_minutes,
            capacity=capacity,
            min_participants=request.min_participants,
            ticket_required=request.ticket_required,
            accessible=request.accessible,
        )

        if visit.start_time is None:
            slots = self.slot_finder.find_slots(
                visit.visit_date, visit.place, visit.duration_minutes
            )
            if not slots:
                raise ValueError(f"No free slot at {visit.place} on {visit.visit_date}")
            visit = visit.model_copy(update={"start_time": slots[0]})
        elif not self.validator.validate_new_visit(visit):
            raise ValueError(
                f"Visit overlaps another visit at {visit.place} on {visit.visit_date}"
            )

        if guide_email:
            ok, reason = self.validator.validate_assignment(visit, guide_email)
            if not ok:
                raise ValueError(reason)

        return self._commit_new_visit(visit)

    def plan_guided_visit(self, request: GuidedPlanRequest) -> Visit:
        """
        Plan a visit on a date the guide declared available.

        The place defaults to the first one offering the chosen category.
        The date is consumed from the guide's availability once planned.
        """
        guide = self.directory.guide(request.guide_email)
        if not guide:
            raise ValueError(f"Guide '{request.guide_email}' not found")

        if request.visit_date not in self.availability.availability_for(guide.email):
            raise ValueError(f"Guide {guide.email} is not available on {request.visit_date}")

        category = self.categories.from_name(request.category)
        if not guide.is_qualified_for(category.name):
            raise ValueError(f"Guide {guide.email} is not qualified for {category.name}")

        if request.place:
            place = self.directory.place(request.place)
            if not place:
                raise ValueError(f"Place '{request.place}' not found")
            if not place.offers(category.name):
                raise ValueError(f"Place '{place.name}' does not offer {category.name}")
        else:
            candidates = self.directory.places_offering(category.name)
            if not candidates:
                raise ValueError(f"No place offers {category.name}")
            place = candidates[0]

        self._check_date(request.visit_date, [category.name])
        self._check_duration(request.duration_minutes)
        self._check_window(request.start_time, request.duration_minutes)

        capacity = self._effective_capacity(request.capacity, request.min_participants)
        visit = Visit(
            id=self.visits.next_id(),
            title=request.title,
            place=place.name,
            categories=[category.name],
            guide_email=guide.email,
            visit_date=request.visit_date,
            start_time=request.start_time,
            duration_minutes=request.duration_minutes,
            capacity=capacity,
            min_participants=request.min_participants,
            ticket_required=request.ticket_required,
            accessible=request.accessible,
        )

        if not self.validator.validate_new_visit(visit):
            raise ValueError(
                f"Visit overlaps another visit at {visit.place} on {visit.visit_date}"
            )
        ok, reason = self.validator.validate_assignment(visit, guide.email)
        if not ok:
            raise ValueError(reason)

        visit = self._commit_new_visit(visit)
        self.availability.consume_date(guide, visit.visit_date)
        return visit

    # Administration
    def assign_guide(self, visit_id: int, guide_email: str) -> Visit:
        visit = self._get_visit(visit_id)
        if visit.state.is_terminal:
            raise ValueError(f"Visit {visit_id} is {visit.state.value} and cannot be reassigned")

        guide = self.directory.guide(guide_email)
        if not guide:
            raise ValueError(f"Guide '{guide_email}' not found")

        ok, reason = self.validator.validate_assignment(visit, guide.email)
        if not ok:
            raise ValueError(reason)

        updated = self.visits.update(visit_id, guide_email=guide.email)
        logger.info(f"✅ Guide {guide.email} assigned to visit {visit_id}")
        self._save(updated)
        return updated

    def change_state(self, visit_id: int, new_state) -> Visit:
        """Manual state change; must follow the administrative transition map"""
        visit = self._get_visit(visit_id)
        new_state = VisitState(new_state)

        if not validate_state_transition(visit.state, new_state):
            raise ValueError(
                f"Cannot change visit {visit_id} from {visit.state.value} to {new_state.value}"
            )
        if new_state == visit.state:
            return visit

        updated = self.visits.update(visit_id, state=new_state)
        logger.info(f"✅ Visit {visit_id} state: {visit.state.value} → {new_state.value}")
        self._save(updated)
        return updated

    def reschedule_visit(
        self,
        visit_id: int,
        new_date: date,
        start_time: Optional[time] = None,
        duration_minutes: Optional[int] = None,
    ) -> Visit:
        """
        Move a visit to another date (and optionally time/duration).
        A visit moved to a future date goes back to Proposta.
        """
        visit = self._get_visit(visit_id)
        if visit.state.is_terminal:
            raise ValueError(f"Visit {visit_id} is {visit.state.value} and cannot be rescheduled")

        self._check_date(new_date, visit.categories)

        changes = {"visit_date": new_date}
        if start_time is not None:
            changes["start_time"] = start_time
        if duration_minutes is not None:
            self._check_duration(duration_minutes)
            changes["duration_minutes"] = duration_minutes
        candidate = visit.model_copy(update=changes)

        if candidate.start_time is None:
            slots = self.slot_finder.find_slots(
                candidate.visit_date, candidate.place, candidate.duration_minutes
            )
            if not slots:
                raise ValueError(f"No free slot at {candidate.place} on {new_date}")
            candidate = candidate.model_copy(update={"start_time": slots[0]})
        else:
            self._check_window(candidate.start_time, candidate.duration_minutes)
            if not self.validator.validate_new_visit(candidate):
                raise ValueError(
                    f"Visit overlaps another visit at {candidate.place} on {new_date}"
                )

        if candidate.guide_email:
            ok, reason = self.validator.validate_assignment(candidate, candidate.guide_email)
            if not ok:
                raise ValueError(reason)

        changes["start_time"] = candidate.start_time
        if new_date > self.today_provider():
            changes["state"] = VisitState.PROPOSED

        updated = self.visits.update(visit_id, **changes)
        logger.info(f"🔄 Visit {visit_id} rescheduled to {new_date} {candidate.start_time}")
        self._save(updated)
        return updated

    def add_blackout_date(self, day: date, reason: str) -> bool:
        """Returns False if the date was already blacked out"""
        added = self.blackouts.add(day, reason)
        if not added:
            logger.info(f"Blackout date {day} already present")
            return False
        try:
            self.store.add_blackout_date(day, reason)
        except StoreError as e:
            logger.error(f"❌ Failed to persist blackout date {day}: {e}")
        return True

    def remove_blackout_date(self, day: date) -> bool:
        removed = self.blackouts.remove(day)
        if removed:
            try:
                self.store.remove_blackout_date(day)
            except StoreError as e:
                logger.error(f"❌ Failed to remove blackout date {day} from store: {e}")
        return removed

    # Queries
    def bookable_visits(self, today: Optional[date] = None) -> List[Visit]:
        """Proposed visits from today on that still have free seats"""
        today = today or self.today_provider()
        visits = self.visits.filter(
            lambda v: v.state == VisitState.PROPOSED
            and v.visit_date >= today
            and v.free_seats > 0
        )
        return sorted(visits, key=_visit_sort_key)

    def visits_by_state(self, state) -> List[Visit]:
        return sorted(self.visits.by_state(VisitState(state)), key=_visit_sort_key)

    # Helpers
    def _get_visit(self, visit_id: int) -> Visit:
        visit = self.visits.get(visit_id)
        if not visit:
            raise ValueError("Visit not found")
        return visit

    def _check_date(self, day: date, category_names: List[str]) -> None:
        if day < self.today_provider():
            raise ValueError(f"Date {day} is in the past")
        if self.blackouts.is_blackout(day):
            raise ValueError(f"{day} is a blackout date ({self.blackouts.reason(day)})")
        resolved = [self.categories.from_name(name) for name in category_names]
        if not any(is_category_schedulable_on(c, day) for c in resolved):
            raise ValueError(f"No visits can be scheduled on {day}")

    @staticmethod
    def _check_duration(duration_minutes: int) -> None:
        ok, message = check_duration_fits(duration_minutes)
        if not ok:
            raise ValueError(message)

    @staticmethod
    def _check_window(start: time, duration_minutes: int) -> None:
        ok, message = check_operating_window(start, duration_minutes)
        if not ok:
            raise ValueError(message)

    @staticmethod
    def _effective_capacity(capacity: Optional[int], min_participants: int) -> int:
        if capacity is None:
            capacity = MAX_PEOPLE_PER_VISIT
        if min_participants > capacity:
            raise ValueError(
                f"Minimum participants ({min_participants}) exceed capacity ({capacity})"
            )
        return capacity

    def _commit_new_visit(self, visit: Visit) -> Visit:
        while not self.visits.put_if_absent(visit):
            visit = visit.model_copy(update={"id": self.visits.next_id()})

        logger.info(
            f"✅ Visit {visit.id} '{visit.title}' planned at {visit.place} "
            f"on {visit.visit_date} {visit.start_time}-{end_time(visit.start_time, visit.duration_minutes)}"
        )
        try:
            if not self.store.add_visit(visit):
                logger.warning(f"⚠️ Store already holds an identical visit to {visit.id}")
        except StoreError as e:
            logger.error(f"❌ Failed to persist visit {visit.id}: {e}")
        return visit

    def _save(self, visit: Visit) -> None:
        try:
            self.store.save_visit(visit)
        except StoreError as e:
            logger.error(f"❌ Failed to save visit {visit.id}: {e}")


def _visit_sort_key(visit: Visit):
    return (visit.visit_date, visit.start_time or time.min, visit.id)
