"""Tests for the worker pool and the lifecycle scheduler host"""

import threading
import time as clock
from datetime import date, timedelta
from unittest.mock import patch

import pytest

from guidedtours.schemas import VisitState
from guidedtours.workers.pool import WorkerPool

from conftest import TODAY


def wait_for(predicate, timeout=5.0):
    deadline = clock.monotonic() + timeout
    while clock.monotonic() < deadline:
        if predicate():
            return True
        clock.sleep(0.01)
    return predicate()


class TestWorkerPool:
    def test_submit_runs_on_shared_executor(self):
        pool = WorkerPool(size=2)
        try:
            assert pool.submit(lambda x: x * 2, 21).result(timeout=5) == 42
            assert pool.shared is pool.shared
        finally:
            pool.shutdown_all()

    def test_shutdown_all_closes_every_executor(self):
        pool = WorkerPool()
        single = pool.create_single_thread_executor()
        pool.shutdown_all()

        assert pool.is_closed
        with pytest.raises(RuntimeError):
            single.submit(print)
        with pytest.raises(RuntimeError):
            pool.create_thread_pool(2)

    def test_shutdown_all_is_idempotent(self):
        pool = WorkerPool()
        pool.shutdown_all()
        pool.shutdown_all()


class TestImmediateCycle:
    def test_runs_all_passes(self, engine, memory_store, visit_factory):
        past = visit_factory(visit_date=TODAY - timedelta(days=2), reserved_seats=1)
        memory_store.visits[past.id] = past
        memory_store.blackout_dates[date(2024, 12, 25)] = "Natale"
        engine.load_all()

        results = engine.run_immediate_cycle().result(timeout=5)

        assert results["visits"]["to_cancelled"] == 1
        assert results["blackout_dates"]["removed"] == 1
        assert results["availability"] == 2
        assert engine.visits.get(past.id).state == VisitState.CANCELLED
        assert memory_store.visits[past.id].state == VisitState.CANCELLED

    def test_failing_pass_does_not_stop_the_others(self, engine):
        with patch.object(
            engine.scheduler, "run_blackout_pass", side_effect=RuntimeError("boom")
        ):
            results = engine.run_immediate_cycle().result(timeout=5)

        assert results["blackout_dates"] is None
        assert results["visits"]["failed"] == 0
        assert results["availability"] == 2

    def test_pending_cycle_is_reused(self, engine):
        release = threading.Event()
        started = threading.Event()

        def slow_cycle(include_maintenance=True):
            started.set()
            release.wait(5)
            return {}

        with patch.object(engine.scheduler, "run_cycle", side_effect=slow_cycle):
            first = engine.run_immediate_cycle()
            started.wait(5)
            second = engine.run_immediate_cycle()
            release.set()
            first.result(timeout=5)

        assert first is second


class TestPeriodic:
    def test_start_and_stop_are_idempotent(self, engine):
        assert engine.start_periodic(0.01)
        assert not engine.start_periodic(0.01)
        assert engine.scheduler.is_running

        assert wait_for(lambda: engine.scheduler.ticks >= 2)

        assert engine.stop_periodic()
        assert not engine.stop_periodic()
        assert not engine.scheduler.is_running

    def test_periodic_pass_transitions_visits(self, engine, visit_factory):
        past = visit_factory(visit_date=TODAY - timedelta(days=1), reserved_seats=5)
        engine.visits.put(past)

        engine.start_periodic(0.01)
        try:
            assert wait_for(
                lambda: engine.visits.get(past.id).state == VisitState.CONFIRMED
            )
        finally:
            engine.stop_periodic()

    def test_periodic_skips_maintenance_by_default(self, engine):
        engine.blackouts.add(date(2024, 1, 6), "Epifania")

        engine.start_periodic(0.01)
        try:
            assert wait_for(lambda: engine.scheduler.ticks >= 2)
        finally:
            engine.stop_periodic()

        assert date(2024, 1, 6) in engine.blackouts

    def test_periodic_with_maintenance(self, engine):
        engine.blackouts.add(date(2024, 1, 6), "Epifania")

        engine.start_periodic(0.01, include_maintenance=True)
        try:
            assert wait_for(lambda: date(2024, 1, 6) not in engine.blackouts)
        finally:
            engine.stop_periodic()

    def test_crashing_tick_keeps_thread_alive(self, engine):
        with patch.object(engine.scheduler, "run_cycle", side_effect=RuntimeError("boom")):
            engine.start_periodic(0.01)
            try:
                assert wait_for(lambda: engine.scheduler.ticks >= 3)
                assert engine.scheduler.is_running
            finally:
                engine.stop_periodic()

    def test_restart_after_stop(self, engine):
        engine.start_periodic(0.01)
        engine.stop_periodic()

        assert engine.start_periodic(0.01)
        engine.stop_periodic()
