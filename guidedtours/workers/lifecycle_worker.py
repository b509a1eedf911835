"""
Visit Lifecycle Background Worker
Transitions past visits, prunes blackout dates and resyncs guide availability
"""

import logging
import threading
from concurrent.futures import Future
from datetime import datetime
from typing import Callable, Optional

from ..config import LIFECYCLE_INTERVAL_SECONDS
from ..domain.availability.service import AvailabilityEngine
from ..domain.visits.collections import BlackoutCalendar, VisitCollection
from ..services.status_automation import maintain_blackout_dates, update_visit_states
from ..store.base import TourStore
from .pool import WorkerPool

logger = logging.getLogger(__name__)


class LifecycleScheduler:
    """
    Runs the lifecycle passes once on demand (on the worker pool) and
    periodically on a daemon thread. A failing pass is logged and the next
    tick still runs.
    """

    def __init__(
        self,
        visits: VisitCollection,
        blackouts: BlackoutCalendar,
        availability: AvailabilityEngine,
        store: TourStore,
        pool: WorkerPool,
        now_provider: Callable[[], datetime] = datetime.now,
    ):
        self.visits = visits
        self.blackouts = blackouts
        self.availability = availability
        self.store = store
        self.pool = pool
        self.now_provider = now_provider

        self._lock = threading.Lock()
        self._immediate: Optional[Future] = None
        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()
        self.ticks = 0

    # Passes
    def run_visit_pass(self) -> dict:
        now = self.now_provider()
        return update_visit_states(self.visits, self.store, today=now.date(), now=now)

    def run_blackout_pass(self) -> dict:
        return maintain_blackout_dates(self.blackouts, self.store, today=self.now_provider().date())

    def run_availability_sync(self) -> int:
        return self.availability.sync()

    def run_cycle(self, include_maintenance: bool = True) -> dict:
        """Run the passes in order; each failure is logged and the others still run"""
        logger.info("🔄 Running lifecycle cycle...")
        results = {}

        steps = [("visits", self.run_visit_pass)]
        if include_maintenance:
            steps.append(("blackout_dates", self.run_blackout_pass))
            steps.append(("availability", self.run_availability_sync))

        for name, step in steps:
            try:
                results[name] = step()
            except Exception as e:
                logger.error(f"❌ Lifecycle step '{name}' failed: {str(e)}")
                results[name] = None

        return results

    # Host contract
    def run_immediate_cycle(self) -> Future:
        """
        Submit a full cycle to the worker pool and return its future.
        While a previous immediate cycle is still running its future is returned.
        """
        with self._lock:
            if self._immediate is not None and not self._immediate.done():
                return self._immediate
            self._immediate = self.pool.submit(self.run_cycle, True)
            return self._immediate

    def start_periodic(
        self,
        interval: float = LIFECYCLE_INTERVAL_SECONDS,
        include_maintenance: bool = False,
    ) -> bool:
        """Start the timer thread; returns False if it is already running"""
        with self._lock:
            if self._thread is not None and self._thread.is_alive():
                return False

            self._stop_event = threading.Event()
            self._thread = threading.Thread(
                target=self._run_periodic,
                args=(interval, include_maintenance, self._stop_event),
                name="lifecycle-scheduler",
                daemon=True,
            )
            self._thread.start()

        logger.info(f"✅ Lifecycle scheduler started (every {interval}s)")
        return True

    def stop_periodic(self, timeout: Optional[float] = None) -> bool:
        """Signal the timer thread and wait for it; returns False if it was not running"""
        with self._lock:
            thread = self._thread
            self._thread = None
            if thread is None:
                return False
            self._stop_event.set()

        thread.join(timeout)
        logger.info("👋 Lifecycle scheduler stopped")
        return True

    @property
    def is_running(self) -> bool:
        thread = self._thread
        return thread is not None and thread.is_alive()

    def _run_periodic(self, interval: float, include_maintenance: bool, stop_event: threading.Event):
        while not stop_event.wait(interval):
            try:
                self.run_cycle(include_maintenance)
            except Exception as e:
                logger.error(f"❌ Lifecycle tick crashed: {str(e)}")
            self.ticks += 1
