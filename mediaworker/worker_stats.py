"""
WorkerStats - Counters for one worker instance.
"""

import threading
import time
from dataclasses import dataclass, field
from typing import List


@dataclass
class WorkerStats:
    """
    Statistics shared by the jobs of one worker.

    Updated concurrently from batch threads; use ``increment`` rather than
    assigning the counters directly.

    Attributes:
        finished: Jobs that completed every step
        failed: Jobs aborted by an error
        invalid: Jobs rejected for an unsupported media kind
        derivatives_uploaded: Previews uploaded across all jobs
        cycles: Poll cycles run
        cycle_failures: Poll cycles that ended in an error
        start_time: Start timestamp
        error_details: Most recent error messages
    """
    finished: int = 0
    failed: int = 0
    invalid: int = 0
    derivatives_uploaded: int = 0
    cycles: int = 0
    cycle_failures: int = 0
    start_time: float = field(default_factory=time.time)
    error_details: List[str] = field(default_factory=list)

    MAX_ERROR_DETAILS = 100

    def __post_init__(self):
        self._lock = threading.Lock()

    def increment(self, counter: str, amount: int = 1) -> None:
        with self._lock:
            setattr(self, counter, getattr(self, counter) + amount)

    def record_error(self, message: str) -> None:
        with self._lock:
            self.error_details.append(message)
            del self.error_details[:-self.MAX_ERROR_DETAILS]

    @property
    def completed_jobs(self) -> int:
        """Jobs that reached any terminal state."""
        return self.finished + self.failed + self.invalid

    @property
    def total(self) -> int:
        """Finished jobs plus uploaded previews."""
        return self.finished + self.derivatives_uploaded

    @property
    def elapsed_seconds(self) -> float:
        """Elapsed time in seconds."""
        return time.time() - self.start_time

    @property
    def rate_per_minute(self) -> float:
        """Finished jobs per minute."""
        if self.elapsed_seconds > 0:
            return self.finished / self.elapsed_seconds * 60
        return 0.0

    def to_dict(self) -> dict:
        return {
            'total': self.total,
            'finished': self.finished,
            'failed': self.failed,
            'invalid': self.invalid,
            'derivatives_uploaded': self.derivatives_uploaded,
            'cycles': self.cycles,
            'cycle_failures': self.cycle_failures,
            'elapsed_seconds': round(self.elapsed_seconds, 1),
        }
