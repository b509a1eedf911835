"""
Automated state transitions for visits and blackout dates
Handles past visits → confirmed/cancelled and complete → held on the visit day
Prunes past blackout dates and seeds the fixed holidays every January 1st
"""

from datetime import date, datetime
from typing import Optional
import logging

from ..domain.scheduling.calendar_rules import fixed_holidays, to_minutes, visit_window
from ..domain.visits.collections import BlackoutCalendar, VisitCollection
from ..schemas import Visit, VisitState
from ..store.base import StoreError, TourStore

logger = logging.getLogger(__name__)


def _next_state(visit: Visit, today: date, now_minutes: int) -> Optional[VisitState]:
    if visit.state in (VisitState.HELD, VisitState.CANCELLED):
        return None

    if visit.visit_date < today:
        if visit.reserved_seats >= visit.min_participants:
            return VisitState.CONFIRMED
        return VisitState.CANCELLED

    if visit.visit_date == today and visit.state == VisitState.COMPLETE and visit.start_time:
        _, end = visit_window(visit.start_time, visit.duration_minutes)
        if end <= now_minutes:
            return VisitState.HELD

    return None


def update_visit_states(
    visits: VisitCollection,
    store: TourStore,
    today: Optional[date] = None,
    now: Optional[datetime] = None,
) -> dict:
    """
    Update visit states based on dates
    Runs on every lifecycle tick

    Visit states: Proposta → Completa → Confermata → Effettuata, or Cancellata

    Returns:
        dict: Summary of persisted state changes; "failed" counts visits whose
        new state was applied in memory but could not be saved
    """
    now = now or datetime.now()
    today = today or now.date()
    now_minutes = to_minutes(now.time())

    summary = {
        "to_confirmed": 0,
        "to_cancelled": 0,
        "to_held": 0,
        "failed": 0,
        "total_updated": 0,
    }

    for visit in visits.all():
        try:
            new_state = _next_state(visit, today, now_minutes)
            if new_state is None or new_state == visit.state:
                continue

            updated = visits.update(visit.id, state=new_state)
            if updated is None:
                continue

            logger.info(
                f"✅ Visit {visit.id} transitioned: {visit.state.value} → {new_state.value}"
            )
            store.save_visit(updated)

            if new_state == VisitState.CONFIRMED:
                summary["to_confirmed"] += 1
            elif new_state == VisitState.CANCELLED:
                summary["to_cancelled"] += 1
            else:
                summary["to_held"] += 1
            summary["total_updated"] += 1
        except StoreError as e:
            summary["failed"] += 1
            logger.error(f"❌ Could not save state of visit {visit.id}: {e}")
        except Exception as e:
            summary["failed"] += 1
            logger.error(f"❌ Error updating state of visit {visit.id}: {str(e)}")

    if summary["total_updated"] > 0:
        logger.info(f"📊 Visit state automation summary: {summary}")
    else:
        logger.debug("ℹ️ No visit state updates needed")

    return summary


def maintain_blackout_dates(
    calendar: BlackoutCalendar,
    store: TourStore,
    today: Optional[date] = None,
) -> dict:
    """
    Remove blackout dates that are already behind us and, on January 1st,
    add the fixed holidays of the new year.

    Returns:
        dict: Summary with removed, holidays_added and failed counters. Dates
        are changed in memory even when the store write fails; those count
        only as failed.
    """
    today = today or date.today()
    summary = {"removed": 0, "holidays_added": 0, "failed": 0}

    for day in calendar.dates():
        if day >= today:
            continue
        calendar.remove(day)
        try:
            store.remove_blackout_date(day)
        except StoreError as e:
            summary["failed"] += 1
            logger.error(f"❌ Could not remove blackout date {day}: {e}")
            continue
        summary["removed"] += 1

    if today.month == 1 and today.day == 1:
        for day, reason in fixed_holidays(today.year).items():
            added = calendar.add(day, reason)
            try:
                # Store treats an existing date as success
                store.add_blackout_date(day, reason)
            except StoreError as e:
                summary["failed"] += 1
                logger.error(f"❌ Could not add holiday {day} ({reason}): {e}")
                continue
            if added:
                summary["holidays_added"] += 1

    if summary["removed"] or summary["holidays_added"]:
        logger.info(f"📊 Blackout maintenance summary: {summary}")

    return summary


def validate_state_transition(current_state: VisitState, new_state: VisitState) -> bool:
    """
    Validate if an administrative visit state transition is allowed

    Note:
    - 'Cancellata' and 'Effettuata' are terminal
    - past-date transitions are automatic and do not go through this check

    Returns:
        bool: True if transition is valid, False otherwise
    """
    current_state = VisitState(current_state)
    new_state = VisitState(new_state)

    valid_transitions = {
        VisitState.PROPOSED: [VisitState.COMPLETE, VisitState.CONFIRMED, VisitState.CANCELLED],
        VisitState.COMPLETE: [
            VisitState.PROPOSED,
            VisitState.CONFIRMED,
            VisitState.CANCELLED,
            VisitState.HELD,
        ],
        VisitState.CONFIRMED: [VisitState.COMPLETE, VisitState.CANCELLED, VisitState.HELD],
        VisitState.CANCELLED: [],  # Terminal state
        VisitState.HELD: [],  # Terminal state
    }

    # Allow same state (no-op)
    if current_state == new_state:
        return True

    return new_state in valid_transitions.get(current_state, [])
