"""
Tests for the visit planning service, exercised through the wired engine

Tests cover:
- Free-form planning with and without a start time
- Guided planning from declared availability
- Guide assignment, state changes and rescheduling
- Blackout administration and bookable visit listing
"""

import re
from datetime import date, time
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from guidedtours.domain.scheduling.slots import TOO_EARLY, TOO_LATE
from guidedtours.domain.scheduling.validator import GUIDE_BUSY
from guidedtours.schemas import GuidedPlanRequest, VisitPlanRequest, VisitState
from guidedtours.store.base import StoreError

from conftest import NEXT_MONDAY, TODAY

MARIO = "mario.rossi@example.com"
GIULIA = "giulia.bianchi@example.com"


def plan_request(**overrides):
    data = {
        "title": "Museo al mattino",
        "place": "Museo Civico",
        "categories": ["STORICA"],
        "visit_date": NEXT_MONDAY,
        "start_time": time(10, 0),
        "duration_minutes": 60,
        "min_participants": 3,
    }
    data.update(overrides)
    return VisitPlanRequest(**data)


class TestPlanVisit:
    def test_plan_with_start_time(self, engine, memory_store):
        visit = engine.plan_visit(plan_request())

        assert visit.state == VisitState.PROPOSED
        assert visit.capacity == 10
        assert engine.visits.get(visit.id) == visit
        assert memory_store.visits[visit.id] == visit

    def test_plan_without_start_time_takes_first_free_slot(self, engine):
        engine.plan_visit(plan_request(start_time=time(9, 0)))

        visit = engine.plan_visit(plan_request(title="Secondo turno", start_time=None))

        assert visit.start_time == time(10, 0)

    def test_overlapping_plan_is_rejected(self, engine):
        engine.plan_visit(plan_request())

        with pytest.raises(ValueError, match="overlaps"):
            engine.plan_visit(plan_request(start_time=time(10, 30)))

    def test_categories_must_be_offered_by_place(self, engine):
        with pytest.raises(ValueError, match="does not offer"):
            engine.plan_visit(plan_request(categories=["ENOGASTRONOMICA"]))

    def test_unknown_place(self, engine):
        with pytest.raises(ValueError, match="not found"):
            engine.plan_visit(plan_request(place="Castello"))

    def test_weekend_is_rejected(self, engine):
        with pytest.raises(ValueError):
            engine.plan_visit(plan_request(visit_date=date(2025, 3, 15)))

    def test_past_date_is_rejected(self, engine):
        with pytest.raises(ValueError, match="past"):
            engine.plan_visit(plan_request(visit_date=date(2025, 3, 10)))

    def test_blackout_date_is_rejected(self, engine):
        engine.add_blackout_date(NEXT_MONDAY, "Chiusura straordinaria")

        with pytest.raises(ValueError, match="blackout"):
            engine.plan_visit(plan_request())

    def test_duration_too_long(self, engine):
        with pytest.raises(ValueError):
            engine.plan_visit(plan_request(start_time=None, duration_minutes=700))

    def test_assigned_guide_must_be_free(self, engine):
        engine.plan_visit(plan_request(guide_email=MARIO))

        with pytest.raises(ValueError, match=GUIDE_BUSY):
            engine.plan_visit(plan_request(place="Palazzo Ducale", guide_email=MARIO))

    def test_guide_must_be_qualified(self, engine):
        with pytest.raises(ValueError, match="not qualified"):
            engine.plan_visit(plan_request(guide_email=GIULIA))

    def test_store_failure_keeps_visit_in_memory(self, engine, memory_store):
        with patch.object(memory_store, "add_visit", side_effect=StoreError("offline")):
            visit = engine.plan_visit(plan_request())

        assert visit.id in engine.visits

    def test_start_before_opening_is_rejected(self, engine):
        with pytest.raises(ValueError, match=re.escape(TOO_EARLY)):
            engine.plan_visit(plan_request(start_time=time(7, 0)))

        assert len(engine.visits) == 0

    def test_end_after_closing_is_rejected(self, engine):
        with pytest.raises(ValueError, match=re.escape(TOO_LATE)):
            engine.plan_visit(plan_request(start_time=time(18, 30)))

    def test_visit_may_end_at_closing(self, engine):
        visit = engine.plan_visit(plan_request(start_time=time(18, 0)))

        assert visit.start_time == time(18, 0)

    def test_minimum_checked_against_default_capacity(self, engine):
        with pytest.raises(ValueError, match="exceed capacity"):
            engine.plan_visit(plan_request(min_participants=20))

    def test_request_validation(self):
        with pytest.raises(ValidationError):
            plan_request(duration_minutes=0)
        with pytest.raises(ValidationError):
            plan_request(categories=[" "])
        with pytest.raises(ValidationError):
            plan_request(capacity=5, min_participants=6)


class TestPlanGuidedVisit:
    def guided_request(self, **overrides):
        data = {
            "title": "Visita guidata",
            "guide_email": MARIO,
            "visit_date": NEXT_MONDAY,
            "category": "storica",
            "start_time": time(11, 0),
            "duration_minutes": 90,
        }
        data.update(overrides)
        return GuidedPlanRequest(**data)

    def test_plans_on_available_date_and_consumes_it(self, engine):
        guide = engine.directory.guide(MARIO)
        engine.save_availability(guide, [NEXT_MONDAY, date(2025, 3, 18)])

        visit = engine.plan_guided_visit(self.guided_request())

        assert visit.place == "Museo Civico"
        assert visit.categories == ["STORICA"]
        assert visit.guide_email == MARIO
        assert engine.availability.availability_for(MARIO) == [date(2025, 3, 18)]

    def test_date_must_be_declared(self, engine):
        with pytest.raises(ValueError, match="not available"):
            engine.plan_guided_visit(self.guided_request())

    def test_guide_must_be_qualified_for_category(self, engine):
        guide = engine.directory.guide(MARIO)
        engine.save_availability(guide, [NEXT_MONDAY])

        with pytest.raises(ValueError, match="not qualified"):
            engine.plan_guided_visit(self.guided_request(category="ENOGASTRONOMICA"))

    def test_unknown_guide(self, engine):
        with pytest.raises(ValueError, match="not found"):
            engine.plan_guided_visit(self.guided_request(guide_email="nessuno@example.com"))

    def test_window_is_enforced(self, engine):
        guide = engine.directory.guide(MARIO)
        engine.save_availability(guide, [NEXT_MONDAY])

        with pytest.raises(ValueError, match=re.escape(TOO_LATE)):
            engine.plan_guided_visit(self.guided_request(start_time=time(18, 0)))

        assert engine.availability.availability_for(MARIO) == [NEXT_MONDAY]

    def test_minimum_checked_against_capacity(self, engine):
        guide = engine.directory.guide(MARIO)
        engine.save_availability(guide, [NEXT_MONDAY])

        with pytest.raises(ValueError, match="exceed capacity"):
            engine.plan_guided_visit(self.guided_request(min_participants=11))
        with pytest.raises(ValidationError):
            self.guided_request(capacity=4, min_participants=5)


class TestAdministration:
    def test_assign_guide(self, engine, memory_store):
        visit = engine.plan_visit(plan_request())

        updated = engine.assign_guide(visit.id, "Mario.Rossi@Example.com")

        assert updated.guide_email == MARIO
        assert memory_store.visits[visit.id].guide_email == MARIO

    def test_assign_busy_guide_is_rejected(self, engine):
        engine.plan_visit(plan_request(guide_email=MARIO))
        other = engine.plan_visit(plan_request(place="Palazzo Ducale"))

        with pytest.raises(ValueError, match=GUIDE_BUSY):
            engine.assign_guide(other.id, MARIO)

    def test_assign_to_unknown_visit(self, engine):
        with pytest.raises(ValueError, match="Visit not found"):
            engine.assign_guide(999, MARIO)

    def test_change_state(self, engine):
        visit = engine.plan_visit(plan_request())

        assert engine.change_state(visit.id, "Completa").state == VisitState.COMPLETE

    def test_invalid_state_change(self, engine):
        visit = engine.plan_visit(plan_request())
        engine.change_state(visit.id, VisitState.CANCELLED)

        with pytest.raises(ValueError, match="Cannot change"):
            engine.change_state(visit.id, VisitState.PROPOSED)

    def test_reschedule_to_future_date_resets_state(self, engine):
        visit = engine.plan_visit(plan_request())
        engine.change_state(visit.id, VisitState.COMPLETE)

        moved = engine.reschedule_visit(visit.id, date(2025, 3, 19), start_time=time(15, 0))

        assert moved.visit_date == date(2025, 3, 19)
        assert moved.start_time == time(15, 0)
        assert moved.state == VisitState.PROPOSED

    def test_reschedule_outside_opening_hours_is_rejected(self, engine, memory_store):
        visit = engine.plan_visit(plan_request())

        with pytest.raises(ValueError, match=re.escape(TOO_LATE)):
            engine.reschedule_visit(
                visit.id, NEXT_MONDAY, start_time=time(23, 0), duration_minutes=120
            )
        with pytest.raises(ValueError, match=re.escape(TOO_EARLY)):
            engine.reschedule_visit(visit.id, date(2025, 3, 19), start_time=time(8, 0))

        assert engine.visits.get(visit.id) == visit
        assert memory_store.visits[visit.id] == visit

    def test_longer_duration_must_still_fit(self, engine):
        visit = engine.plan_visit(plan_request(start_time=time(17, 0)))

        with pytest.raises(ValueError, match=re.escape(TOO_LATE)):
            engine.reschedule_visit(visit.id, NEXT_MONDAY, duration_minutes=180)

    def test_reschedule_into_conflict_is_rejected(self, engine):
        engine.plan_visit(plan_request(visit_date=date(2025, 3, 19)))
        visit = engine.plan_visit(plan_request())

        with pytest.raises(ValueError, match="overlaps"):
            engine.reschedule_visit(visit.id, date(2025, 3, 19))

    def test_blackout_dates(self, engine, memory_store):
        assert engine.add_blackout_date(date(2025, 4, 2), "Manutenzione")
        assert not engine.add_blackout_date(date(2025, 4, 2), "Manutenzione")
        assert memory_store.blackout_dates[date(2025, 4, 2)] == "Manutenzione"

        assert engine.remove_blackout_date(date(2025, 4, 2))
        assert not engine.remove_blackout_date(date(2025, 4, 2))
        assert date(2025, 4, 2) not in memory_store.blackout_dates


class TestQueries:
    def test_bookable_visits(self, engine, memory_store, visit_factory):
        full = visit_factory(id=50, capacity=5, reserved_seats=5)
        past = visit_factory(id=51, visit_date=date(2025, 3, 3))
        confirmed = visit_factory(id=52, state=VisitState.CONFIRMED)
        memory_store.visits.update({v.id: v for v in (full, past, confirmed)})
        engine.load_all()

        open_visit = engine.plan_visit(plan_request(start_time=time(14, 0)))

        assert [v.id for v in engine.bookable_visits()] == [open_visit.id]
        assert engine.bookable_visits()[0].free_seats == 10

    def test_visits_by_state(self, engine):
        first = engine.plan_visit(plan_request())
        second = engine.plan_visit(plan_request(start_time=time(14, 0)))
        engine.change_state(second.id, VisitState.CANCELLED)

        assert [v.id for v in engine.visits_by_state("Proposta")] == [first.id]
        assert [v.id for v in engine.visits_by_state(VisitState.CANCELLED)] == [second.id]

    def test_today_is_pinned(self, engine):
        assert engine.today() == TODAY
