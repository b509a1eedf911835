"""Explicit handle over the executors used for background work"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor

from ..config import WORKER_POOL_SIZE

logger = logging.getLogger(__name__)


class WorkerPool:
    """
    Creates executors on demand and shuts all of them down at once.
    Passed to every component that submits background work.
    """

    def __init__(self, size: int = WORKER_POOL_SIZE):
        self.size = size
        self._lock = threading.Lock()
        self._executors: list[ThreadPoolExecutor] = []
        self._shared = None
        self._closed = False

    def create_thread_pool(self, size: int, name: str = "guidedtours") -> ThreadPoolExecutor:
        with self._lock:
            if self._closed:
                raise RuntimeError("Worker pool has been shut down")
            executor = ThreadPoolExecutor(max_workers=size, thread_name_prefix=name)
            self._executors.append(executor)
            return executor

    def create_single_thread_executor(self, name: str = "guidedtours-single") -> ThreadPoolExecutor:
        return self.create_thread_pool(1, name)

    @property
    def shared(self) -> ThreadPoolExecutor:
        """Lazily created executor of the configured size"""
        with self._lock:
            if self._closed:
                raise RuntimeError("Worker pool has been shut down")
            if self._shared is None:
                self._shared = ThreadPoolExecutor(
                    max_workers=self.size, thread_name_prefix="guidedtours-shared"
                )
                self._executors.append(self._shared)
            return self._shared

    def submit(self, fn, *args, **kwargs):
        return self.shared.submit(fn, *args, **kwargs)

    @property
    def is_closed(self) -> bool:
        return self._closed

    def shutdown_all(self, wait: bool = True) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
            executors = list(self._executors)
            self._executors.clear()
            self._shared = None

        for executor in executors:
            executor.shutdown(wait=wait)
        logger.info(f"✅ Worker pool shut down ({len(executors)} executors)")
