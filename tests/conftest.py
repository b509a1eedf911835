"""
Pytest fixtures for the scheduling engine.

Provides:
- A fixed "now" (Wednesday 12 March 2025, 10:00)
- Sample places and guides
- A visit factory
- An in-memory store and a fully wired engine on top of it
"""

import itertools
import os
import sys
from datetime import date, datetime, time
from pathlib import Path

import pytest

# Keep the module-level engine off the developer's database file
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("DB_LOG_SLOW_QUERIES", "false")

sys.path.insert(0, str(Path(__file__).parent.parent))

from guidedtours.schemas import Guide, Place, Visit, VisitState  # noqa: E402
from guidedtours.store.memory import InMemoryStore  # noqa: E402

NOW = datetime(2025, 3, 12, 10, 0)
TODAY = NOW.date()
NEXT_MONDAY = date(2025, 3, 17)


# =============================================================================
# ENTITY FIXTURES
# =============================================================================


@pytest.fixture
def places():
    return [
        Place(
            name="Museo Civico",
            description="Collezioni archeologiche",
            location="Brescia",
            categories=["STORICA", "SCIENTIFICA"],
        ),
        Place(
            name="Cantina Sociale",
            description="Degustazioni",
            location="Franciacorta",
            categories=["ENOGASTRONOMICA"],
        ),
        Place(
            name="Palazzo Ducale",
            description="Sale affrescate",
            location="Mantova",
            categories=["STORICA", "LABBAMBINI"],
        ),
    ]


@pytest.fixture
def guides():
    return [
        Guide(
            email="mario.rossi@example.com",
            first_name="Mario",
            last_name="Rossi",
            categories=["STORICA"],
        ),
        Guide(
            email="giulia.bianchi@example.com",
            first_name="Giulia",
            last_name="Bianchi",
            categories=["ENOGASTRONOMICA", "LABBAMBINI"],
        ),
    ]


@pytest.fixture
def visit_factory():
    """Build visits with sensible defaults; ids are assigned in sequence"""
    ids = itertools.count(1)

    def make(**overrides):
        data = {
            "id": next(ids),
            "title": "Visita al museo",
            "place": "Museo Civico",
            "categories": ["STORICA"],
            "guide_email": None,
            "visit_date": NEXT_MONDAY,
            "start_time": time(10, 0),
            "duration_minutes": 60,
            "capacity": 10,
            "min_participants": 3,
            "reserved_seats": 0,
            "state": VisitState.PROPOSED,
        }
        data.update(overrides)
        return Visit(**data)

    return make


# =============================================================================
# STORE / ENGINE FIXTURES
# =============================================================================


@pytest.fixture
def memory_store(places, guides):
    return InMemoryStore(places=places, guides=guides)


@pytest.fixture
def make_engine(memory_store):
    """Factory for a loaded engine pinned to NOW; engines are shut down after the test"""
    from guidedtours.main import SchedulingEngine

    created = []

    def make(store=None, now=NOW):
        engine = SchedulingEngine(store=store or memory_store, now_provider=lambda: now)
        engine.load_all()
        created.append(engine)
        return engine

    yield make

    for engine in created:
        engine.shutdown()


@pytest.fixture
def engine(make_engine):
    return make_engine()
