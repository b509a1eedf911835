"""
Calendar rules for guided visits: operating window, weekday eligibility and
the fixed national holidays seeded as blackout dates every year.
"""

from datetime import date, time
from typing import Optional

from ...schemas import VisitCategory

OPENING_TIME = time(9, 0)
CLOSING_TIME = time(19, 0)
LAST_START_TIME = time(17, 40)
SLOT_STEP_MINUTES = 30

# Movable holidays (Easter Monday, ...) are not part of this table.
_FIXED_HOLIDAYS = (
    (1, 1, "Capodanno"),
    (1, 6, "Epifania"),
    (4, 25, "Festa della Liberazione"),
    (5, 1, "Festa dei Lavoratori"),
    (8, 15, "Ferragosto"),
    (11, 1, "Ognissanti"),
    (12, 8, "Immacolata Concezione"),
    (12, 25, "Natale"),
    (12, 26, "Santo Stefano"),
)


def to_minutes(value: time) -> int:
    """Minutes since midnight"""
    return value.hour * 60 + value.minute


def from_minutes(minutes: int) -> time:
    return time(minutes // 60, minutes % 60)


def visit_window(start: time, duration_minutes: int) -> tuple[int, int]:
    """
    Half-open [start, end) window in minutes since midnight.

    The end is not wrapped at 24:00, so a late start with a long duration
    compares as "after closing" instead of looping back to the morning.
    """
    start_minutes = to_minutes(start)
    return start_minutes, start_minutes + duration_minutes


def is_weekend(day: date) -> bool:
    return day.weekday() >= 5


def is_category_schedulable_on(category: VisitCategory, day: date) -> bool:
    """Every category is currently bookable Monday to Friday only"""
    return not is_weekend(day)


def fixed_holidays(year: int) -> dict[date, str]:
    """Fixed-date national holidays for a year, in calendar order"""
    return {date(year, month, day): name for month, day, name in _FIXED_HOLIDAYS}


def starts_before_opening(start: time) -> bool:
    return start < OPENING_TIME


def ends_after_closing(start: time, duration_minutes: int) -> bool:
    _, end = visit_window(start, duration_minutes)
    return end > to_minutes(CLOSING_TIME)


def fits_operating_day(duration_minutes: int) -> bool:
    """True if a visit of this length fits between opening and closing"""
    return not ends_after_closing(OPENING_TIME, duration_minutes)


def end_time(start: Optional[time], duration_minutes: int) -> Optional[time]:
    """Clock time at which a visit ends, or None if it is unscheduled or runs past midnight"""
    if start is None:
        return None
    _, end = visit_window(start, duration_minutes)
    if end >= 24 * 60:
        return None
    return from_minutes(end)
