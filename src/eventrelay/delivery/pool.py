"""
Module: delivery/pool.py
Description: Fixed-size worker thread pool with a restartable lifecycle.

The task queue belongs to the pool, not to its threads: tasks submitted
while the pool is stopped wait in the queue and run once start() spawns
a new worker set. drain_and_stop() blocks until the queue is empty and
no task is running, including tasks submitted by running tasks, then
joins every worker.
"""

import os
import threading
from collections import deque
from typing import Callable, Deque, List, Optional

from eventrelay.utils.logger import get_logger

logger = get_logger(__name__)

Task = Callable[[], None]


def detect_worker_count() -> int:
    """Return the CPU count, forcing 1 when it cannot be detected."""
    count = os.cpu_count() or 0
    if count < 1:
        logger.warning("CPU count unavailable, forcing one worker")
        return 1
    return count


class WorkerPool:
    """
    Worker threads sharing one FIFO task queue.

    States: stopped -> start() -> running -> drain_and_stop() -> stopped.

    Attributes:
        size: Number of workers spawned by start()
        name: Prefix for worker thread names
    """

    def __init__(self, size: Optional[int] = None, name: str = "eventrelay-worker"):
        """
        Initialize a stopped pool.

        Args:
            size: Worker count; detect_worker_count() when None or below 1
            name: Prefix for worker thread names
        """
        self.size = size if size and size > 0 else detect_worker_count()
        self.name = name
        self._tasks: Deque[Task] = deque()
        self._cond = threading.Condition()
        self._workers: List[threading.Thread] = []
        self._active = 0
        self._running = False
        self._stopping = False
        self._generation = 0

    @property
    def running(self) -> bool:
        with self._cond:
            return self._running

    @property
    def worker_count(self) -> int:
        """Number of live worker threads."""
        with self._cond:
            return sum(1 for worker in self._workers if worker.is_alive())

    @property
    def pending(self) -> int:
        """Number of queued tasks not yet picked up by a worker."""
        with self._cond:
            return len(self._tasks)

    def submit(self, task: Task) -> None:
        """Queue a task; never blocks on the task itself."""
        with self._cond:
            self._tasks.append(task)
            self._cond.notify()

    def start(self) -> None:
        """Spawn a fresh worker set. No-op if already running."""
        with self._cond:
            if self._running:
                return
            self._running = True
            self._stopping = False
            self._generation += 1
            for index in range(self.size):
                worker = threading.Thread(
                    target=self._work,
                    name=f"{self.name}-{self._generation}-{index}",
                    daemon=True
                )
                self._workers.append(worker)
                worker.start()
                logger.debug("Spawned worker", thread=worker.name)
            pending = len(self._tasks)

        logger.info("Worker pool started", size=self.size, pending=pending)

    def drain_and_stop(self) -> None:
        """
        Run every queued and in-flight task to completion, then join the workers.

        Blocks the calling thread. No-op on a stopped pool.

        Raises:
            RuntimeError: If called from one of this pool's workers
        """
        with self._cond:
            if not self._running:
                return
            if threading.current_thread() in self._workers:
                raise RuntimeError("drain_and_stop() cannot run on a pool worker")
            logger.info("Draining worker pool", pending=len(self._tasks), active=self._active)
            self._stopping = True
            self._cond.notify_all()
            workers = list(self._workers)

        for worker in workers:
            worker.join()
            logger.debug("Joined worker", thread=worker.name)

        with self._cond:
            self._workers.clear()
            self._running = False
            self._stopping = False

        logger.info("Worker pool stopped")

    def restart(self) -> None:
        """drain_and_stop() followed by start(); queued tasks are kept."""
        self.drain_and_stop()
        self.start()

    def discard_pending(self) -> int:
        """Drop queued tasks that have not started and return how many."""
        with self._cond:
            dropped = len(self._tasks)
            self._tasks.clear()
        if dropped:
            logger.warning("Discarded queued tasks", count=dropped)
        return dropped

    def _work(self) -> None:
        while True:
            with self._cond:
                while not self._tasks:
                    if self._stopping and self._active == 0:
                        self._cond.notify_all()
                        return
                    self._cond.wait()
                task = self._tasks.popleft()
                self._active += 1

            try:
                task()
            except Exception:
                logger.exception("Task raised", thread=threading.current_thread().name)
            finally:
                with self._cond:
                    self._active -= 1
                    if self._stopping or not self._tasks:
                        self._cond.notify_all()
