"""
BatchScheduler - Runs work items in sequential batches of concurrent jobs.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass
from typing import Callable, Iterator, List, Optional, Sequence

from .work_item import JobOutcome, WorkItem


@dataclass
class JobResult:
    """Settled result of one job."""
    work_item: WorkItem
    outcome: JobOutcome
    error: Optional[BaseException] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


class BatchScheduler:
    """
    Drains a work list in contiguous batches.

    All jobs of a batch run concurrently; the next batch starts only after
    every job of the current one has settled. A failing job is logged and
    never affects its siblings or later batches.
    """

    def __init__(
        self,
        job: Callable[[WorkItem], JobOutcome],
        batch_size: int = 1,
        on_failure: Optional[Callable[[WorkItem, BaseException], JobOutcome]] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize scheduler.

        Args:
            job: Runs one work item, raising on failure
            batch_size: Jobs per batch (at least 1)
            on_failure: Classifies a failed job into an outcome
            logger: Optional logger instance
        """
        if batch_size < 1:
            raise ValueError(f"batch_size must be at least 1, got {batch_size}")
        self.job = job
        self.batch_size = batch_size
        self.on_failure = on_failure
        self.logger = logger or logging.getLogger(__name__)

    def batches(self, items: Sequence[WorkItem]) -> Iterator[List[WorkItem]]:
        """Split items into batches, preserving arrival order."""
        items = list(items)
        for i in range(0, len(items), self.batch_size):
            yield items[i:i + self.batch_size]

    def run(self, items: Sequence[WorkItem]) -> List[JobResult]:
        """
        Process all items.

        Returns:
            One result per item, in arrival order
        """
        results: List[JobResult] = []
        if not items:
            return results

        with ThreadPoolExecutor(
            max_workers=self.batch_size,
            thread_name_prefix='mediaworker-job',
        ) as executor:
            for batch in self.batches(items):
                futures = [executor.submit(self._run_one, item) for item in batch]
                wait(futures)
                results.extend(future.result() for future in futures)

        failed = sum(1 for r in results if not r.succeeded)
        self.logger.info(f"Processed {len(results)} work item(s), {failed} failed")
        return results

    def _run_one(self, work_item: WorkItem) -> JobResult:
        try:
            outcome = self.job(work_item)
        except Exception as e:
            self.logger.exception(f"Error processing file {work_item.file_key}: {e}")
            return JobResult(work_item, self._classify(work_item, e), e)
        return JobResult(work_item, outcome or JobOutcome.FINISHED)

    def _classify(self, work_item: WorkItem, error: Exception) -> JobOutcome:
        if self.on_failure is None:
            return JobOutcome.FAILED
        try:
            return self.on_failure(work_item, error)
        except Exception:
            self.logger.exception(f"Failure handler raised for {work_item.file_key}")
            return JobOutcome.FAILED
