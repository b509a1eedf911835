"""
Visit validation: guide assignment checks, new-visit conflict checks and the
per-guide eligible days of a month.
"""

import calendar
import logging
from datetime import date
from typing import Iterable, Optional

from ...schemas import Guide, Visit, VisitState
from ..categories.registry import CategoryRegistry
from ..visits.collections import VisitCollection
from .calendar_rules import is_category_schedulable_on, visit_window
from .conflicts import ConflictDetector, overlaps
from .slots import check_operating_window

logger = logging.getLogger(__name__)

MISSING_START_TIME = "La visita deve avere un orario di inizio"
GUIDE_BUSY = "Il volontario è già impegnato in un'altra visita nello stesso orario"


class VisitValidator:
    """Validates candidate visits and guide assignments against the visit set"""

    def __init__(
        self,
        visits: VisitCollection,
        conflicts: ConflictDetector,
        categories: Optional[CategoryRegistry] = None,
    ):
        self.visits = visits
        self.conflicts = conflicts
        self.categories = categories or CategoryRegistry()

    def validate_assignment(self, visit: Visit, guide_email: str) -> tuple:
        """
        Validate assigning a guide to a visit.

        Returns:
            (ok, reason): reason is "" on success, otherwise the first failed check
        """
        if not visit.is_scheduled:
            return (False, MISSING_START_TIME)

        if not self.conflicts.is_guide_free(
            guide_email,
            visit.visit_date,
            visit.start_time,
            visit.duration_minutes,
            exclude_visit_id=visit.id,
        ):
            return (False, GUIDE_BUSY)

        return check_operating_window(visit.start_time, visit.duration_minutes)

    def validate_new_visit(self, candidate: Visit) -> bool:
        """
        Check the candidate against visits at the same place on the same date.
        Returns False at the first overlap, True if none.
        """
        if not candidate.is_scheduled:
            logger.warning(f"⚠️ Visit '{candidate.title}' has no start time, cannot validate")
            return False

        candidate_start, candidate_end = visit_window(
            candidate.start_time, candidate.duration_minutes
        )
        for existing in self.visits.at_place_on(candidate.place, candidate.visit_date):
            if existing.id == candidate.id or not existing.is_scheduled:
                continue
            existing_start, existing_end = visit_window(
                existing.start_time, existing.duration_minutes
            )
            if overlaps(candidate_start, candidate_end, existing_start, existing_end):
                logger.info(
                    f"Visit '{candidate.title}' conflicts with visit {existing.id} at {candidate.place}"
                )
                return False

        return True

    def eligible_days_for_guide(self, guide: Guide, year: int, month: int) -> list[int]:
        """
        Days of the month on which the guide may declare availability.

        A day qualifies when no non-cancelled visit is booked on it (anywhere,
        at any time) and at least one of the guide's categories can be
        scheduled on that weekday.
        """
        guide_categories = self.categories.resolve(guide.categories)
        booked_days = {
            v.visit_date
            for v in self.visits.all()
            if v.visit_date is not None and v.state != VisitState.CANCELLED
        }

        days = []
        for day_number in range(1, calendar.monthrange(year, month)[1] + 1):
            day = date(year, month, day_number)
            if day in booked_days:
                continue
            if any(is_category_schedulable_on(c, day) for c in guide_categories):
                days.append(day_number)
        return days

    @staticmethod
    def dates_from_days(days: Iterable[int], year: int, month: int) -> list[date]:
        return [date(year, month, d) for d in days]

    @staticmethod
    def single_date_from_days(days: Iterable[int], year: int, month: int) -> Optional[date]:
        """The chosen date when exactly one day was selected, otherwise None"""
        dates = VisitValidator.dates_from_days(days, year, month)
        if len(dates) == 1:
            return dates[0]
        return None
