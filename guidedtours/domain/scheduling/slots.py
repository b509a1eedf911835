"""Free slot search for a place on a date"""

import logging
from datetime import date, time
from typing import Iterator

from .calendar_rules import (
    CLOSING_TIME,
    LAST_START_TIME,
    OPENING_TIME,
    SLOT_STEP_MINUTES,
    ends_after_closing,
    fits_operating_day,
    from_minutes,
    starts_before_opening,
    to_minutes,
    visit_window,
)
from .conflicts import ConflictDetector

logger = logging.getLogger(__name__)

DURATION_TOO_LONG = "Durata troppo lunga: la visita non rientra nell'orario di apertura"
TOO_EARLY = "Orario troppo presto (minimo 09:00)"
TOO_LATE = "Orario troppo tardo (massimo 19:00)"


def candidate_starts() -> Iterator[time]:
    """Every slot-aligned start time from opening up to the latest permitted start"""
    current = to_minutes(OPENING_TIME)
    last = to_minutes(LAST_START_TIME)
    while current <= last:
        yield from_minutes(current)
        current += SLOT_STEP_MINUTES


def check_duration_fits(duration_minutes: int) -> tuple:
    """
    Check that a visit of this length can be held within the operating day.
    Returns (fits, error_message).
    """
    if duration_minutes <= 0:
        return (False, "La durata deve essere positiva")
    if not fits_operating_day(duration_minutes):
        return (False, DURATION_TOO_LONG)
    return (True, "")


def check_operating_window(start: time, duration_minutes: int) -> tuple:
    """Returns (ok, error_message) for a visit starting at `start`"""
    if starts_before_opening(start):
        return (False, TOO_EARLY)
    if ends_after_closing(start, duration_minutes):
        return (False, TOO_LATE)
    return (True, "")


class SlotFinder:
    """Greedy walk over the day grid; the grid has at most 18 candidates"""

    def __init__(self, conflicts: ConflictDetector):
        self.conflicts = conflicts

    def find_slots(self, day: date, place: str, duration_minutes: int) -> list[time]:
        """
        Find all start times at which a visit of the given duration fits at
        the place without overlapping existing visits.

        Blackout dates are not checked here; callers must do that first.
        """
        if not fits_operating_day(duration_minutes):
            logger.warning(
                f"⚠️ No slots for {place} on {day}: {duration_minutes} min exceeds the operating day"
            )
            return []

        closing = to_minutes(CLOSING_TIME)
        slots = []
        for start in candidate_starts():
            _, end = visit_window(start, duration_minutes)
            if end > closing:
                continue
            if self.conflicts.is_place_free(place, day, start, duration_minutes):
                slots.append(start)

        logger.debug(f"Found {len(slots)} free slots for {place} on {day}")
        return slots
