"""
Scheduling Domain

Pure calendar rules, overlap detection, slot search and visit validation.
Everything here works on the in-memory visit collection and never touches
the store; committing a decision is the caller's job.

Structure:
```
domain/scheduling/
├── calendar_rules.py   # Operating window, weekend rule, fixed holidays
├── conflicts.py        # overlaps() and guide/place busy checks
├── slots.py            # 30-minute slot search for a place/date/duration
└── validator.py        # Assignment and new-visit validation, eligible days
```
"""

from .calendar_rules import (
    CLOSING_TIME,
    LAST_START_TIME,
    OPENING_TIME,
    SLOT_STEP_MINUTES,
    fixed_holidays,
    is_weekend,
)
from .conflicts import ConflictDetector, overlaps
from .slots import SlotFinder, candidate_starts, check_duration_fits
from .validator import VisitValidator

__all__ = [
    "CLOSING_TIME",
    "LAST_START_TIME",
    "OPENING_TIME",
    "SLOT_STEP_MINUTES",
    "ConflictDetector",
    "SlotFinder",
    "VisitValidator",
    "candidate_starts",
    "check_duration_fits",
    "fixed_holidays",
    "is_weekend",
    "overlaps",
]
