"""
WorkerLoop - Fetch, process, sleep, forever.
"""

import logging
import threading
from typing import Callable, Optional

from .batch_scheduler import BatchScheduler
from .coordinator_client import CoordinatorClient
from .worker_stats import WorkerStats


class FixedInterval:
    """Delay policy: the same pause after every cycle, good or bad."""

    def __init__(self, seconds: float):
        self.seconds = seconds

    def __call__(self, cycle_succeeded: bool) -> float:
        return self.seconds


class WorkerLoop:
    """
    Top-level polling loop.

    Each cycle fetches the pending work list and hands it to the batch
    scheduler. Nothing that happens inside a cycle stops the loop; the next
    cycle is always scheduled after the delay chosen by ``delay_policy``.
    """

    def __init__(
        self,
        coordinator: CoordinatorClient,
        scheduler: BatchScheduler,
        delay_policy: Optional[Callable[[bool], float]] = None,
        initial_delay: float = 1.0,
        stats: Optional[WorkerStats] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize loop.

        Args:
            coordinator: Source of work items
            scheduler: Runs the fetched items
            delay_policy: Seconds to wait after a cycle, given whether it
                succeeded (FixedInterval(10) by default)
            initial_delay: Seconds before the first cycle
            stats: Shared counters
            logger: Optional logger instance
        """
        self.coordinator = coordinator
        self.scheduler = scheduler
        self.delay_policy = delay_policy or FixedInterval(10.0)
        self.initial_delay = initial_delay
        self.stats = stats or WorkerStats()
        self.logger = logger or logging.getLogger(__name__)
        self._started = False
        self._start_lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> bool:
        """
        Start the loop on a background thread.

        Returns:
            False if the loop had already been started
        """
        with self._start_lock:
            if self._started:
                return False
            self._started = True
            self._stop_event.clear()
            self._thread = threading.Thread(
                target=self.run_forever,
                name='mediaworker-loop',
                daemon=True,
            )
            self._thread.start()
        self.logger.info("Worker loop started")
        return True

    def stop(self, timeout: Optional[float] = None) -> None:
        """Request the loop to stop; a running cycle finishes first."""
        self._stop_event.set()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout)
        self.logger.info("Worker loop stopped")

    def run_forever(self) -> None:
        """Run cycles until stop() is called. Blocks the calling thread."""
        delay = self.initial_delay
        while not self._stop_event.wait(delay):
            succeeded = self.run_cycle()
            delay = self.delay_policy(succeeded)

    def run_cycle(self) -> bool:
        """
        Run one fetch/process cycle.

        Returns:
            True if the cycle completed, False if it failed
        """
        self.stats.increment('cycles')
        try:
            items = self.coordinator.fetch_work()
            if items:
                self.scheduler.run(items)
            else:
                self.logger.debug("No work available")
            return True
        except Exception as e:
            self.stats.increment('cycle_failures')
            self.logger.exception(f"Transcode loop failed: {e}")
            return False
