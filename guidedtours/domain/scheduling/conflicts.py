"""Time-overlap conflict detection against the shared visit collection"""

import logging
from datetime import date, time
from typing import Optional

from ...schemas import VisitState
from ..visits.collections import VisitCollection
from .calendar_rules import visit_window

logger = logging.getLogger(__name__)


def overlaps(start_a, end_a, start_b, end_b) -> bool:
    """
    Half-open interval overlap: a visit ending exactly when another starts
    does not conflict with it.
    """
    return start_a < end_b and end_a > start_b


class ConflictDetector:
    """Checks whether a guide or a place is busy during a candidate window"""

    def __init__(self, visits: VisitCollection):
        self.visits = visits

    def is_guide_free(
        self,
        guide_email: str,
        day: date,
        start: time,
        duration_minutes: int,
        excluding_cancelled: bool = True,
        exclude_visit_id: Optional[int] = None,
    ) -> bool:
        """
        Check if a guide is free on a date for the given window.

        Visits with no recorded start time cannot conflict and are skipped, as
        is the visit identified by exclude_visit_id (the one being re-validated).
        """
        candidate_start, candidate_end = visit_window(start, duration_minutes)

        for existing in self.visits.for_guide_on(guide_email, day):
            if existing.id == exclude_visit_id or existing.start_time is None:
                continue
            if excluding_cancelled and existing.state == VisitState.CANCELLED:
                continue
            existing_start, existing_end = visit_window(
                existing.start_time, existing.duration_minutes
            )
            if overlaps(candidate_start, candidate_end, existing_start, existing_end):
                logger.debug(
                    f"Guide {guide_email} busy on {day}: overlaps visit {existing.id}"
                )
                return False

        return True

    def is_place_free(
        self,
        place: str,
        day: date,
        start: time,
        duration_minutes: int,
        exclude_visit_id: Optional[int] = None,
    ) -> bool:
        """Check if no visit at the place overlaps the window, whoever guides it"""
        candidate_start, candidate_end = visit_window(start, duration_minutes)

        for existing in self.visits.at_place_on(place, day):
            if existing.id == exclude_visit_id or existing.start_time is None:
                continue
            existing_start, existing_end = visit_window(
                existing.start_time, existing.duration_minutes
            )
            if overlaps(candidate_start, candidate_end, existing_start, existing_end):
                return False

        return True
