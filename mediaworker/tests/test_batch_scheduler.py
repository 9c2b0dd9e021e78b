"""Tests for BatchScheduler class."""

import threading
import time

import pytest

from mediaworker.batch_scheduler import BatchScheduler, JobResult
from mediaworker.errors import DerivativeFailure, UnsupportedMediaKind
from mediaworker.work_item import JobOutcome


@pytest.fixture
def items(make_work_item):
    """Fixture providing five work items in arrival order."""
    return [make_work_item(id=f"file-{i}", file_key=f"user-1/{i}.jpg") for i in range(5)]


class TestBatches:
    """Tests for batch splitting."""

    def test_contiguous_batches(self, items, logger):
        """Test items are split into contiguous batches in arrival order."""
        scheduler = BatchScheduler(lambda item: None, batch_size=2, logger=logger)

        batches = [[item.id for item in batch] for batch in scheduler.batches(items)]

        assert batches == [['file-0', 'file-1'], ['file-2', 'file-3'], ['file-4']]

    def test_batch_larger_than_list(self, items, logger):
        """Test a batch size above the item count gives one batch."""
        scheduler = BatchScheduler(lambda item: None, batch_size=10, logger=logger)

        assert len(list(scheduler.batches(items))) == 1

    @pytest.mark.parametrize('batch_size', [0, -1])
    def test_invalid_batch_size(self, batch_size):
        """Test a batch size below one is rejected."""
        with pytest.raises(ValueError):
            BatchScheduler(lambda item: None, batch_size=batch_size)


class TestRun:
    """Tests for running batches."""

    def test_empty_list(self, logger):
        """Test nothing runs for an empty work list."""
        calls = []
        scheduler = BatchScheduler(calls.append, logger=logger)

        assert scheduler.run([]) == []
        assert calls == []

    def test_results_in_arrival_order(self, items, logger):
        """Test one finished result per item, in order."""
        scheduler = BatchScheduler(lambda item: JobOutcome.FINISHED, batch_size=2, logger=logger)

        results = scheduler.run(items)

        assert [r.work_item.id for r in results] == [item.id for item in items]
        assert all(r.outcome == JobOutcome.FINISHED and r.succeeded for r in results)

    def test_batch_size_one_is_sequential(self, items, logger):
        """Test with batch size 1 each job ends before the next starts."""
        events = []

        def job(item):
            events.append(('start', item.id))
            time.sleep(0.01)
            events.append(('end', item.id))

        BatchScheduler(job, batch_size=1, logger=logger).run(items[:3])

        assert events == [
            ('start', 'file-0'), ('end', 'file-0'),
            ('start', 'file-1'), ('end', 'file-1'),
            ('start', 'file-2'), ('end', 'file-2'),
        ]

    def test_jobs_in_a_batch_run_concurrently(self, items, logger):
        """Test both jobs of a batch are in flight at the same time."""
        barrier = threading.Barrier(2, timeout=5)

        def job(item):
            barrier.wait()
            return JobOutcome.FINISHED

        results = BatchScheduler(job, batch_size=2, logger=logger).run(items[:2])

        assert all(r.succeeded for r in results)

    def test_next_batch_waits_for_current(self, items, logger):
        """Test batch k+1 starts only after every job of batch k has settled."""
        started = {}
        ended = {}
        durations = {'file-0': 0.01, 'file-1': 0.1}

        def job(item):
            started[item.id] = time.monotonic()
            time.sleep(durations.get(item.id, 0.01))
            ended[item.id] = time.monotonic()

        BatchScheduler(job, batch_size=2, logger=logger).run(items[:4])

        assert started['file-2'] >= ended['file-1']
        assert started['file-3'] >= ended['file-1']

    def test_failure_is_isolated(self, items, logger):
        """Test a failing job does not affect siblings or later batches."""
        processed = []

        def job(item):
            if item.id == 'file-1':
                raise DerivativeFailure('ffmpeg exited 1')
            processed.append(item.id)
            return JobOutcome.FINISHED

        results = BatchScheduler(job, batch_size=2, logger=logger).run(items)

        assert sorted(processed) == ['file-0', 'file-2', 'file-3', 'file-4']
        failed = [r for r in results if not r.succeeded]
        assert len(failed) == 1
        assert failed[0].work_item.id == 'file-1'
        assert failed[0].outcome == JobOutcome.FAILED
        assert isinstance(failed[0].error, DerivativeFailure)

    def test_on_failure_classifies(self, items, logger):
        """Test the failure handler decides the outcome of a failed job."""
        seen = []

        def job(item):
            raise UnsupportedMediaKind('AUDIO')

        def on_failure(item, error):
            seen.append((item.id, type(error)))
            return JobOutcome.INVALID_FILE

        results = BatchScheduler(job, on_failure=on_failure, logger=logger).run(items[:2])

        assert [r.outcome for r in results] == [JobOutcome.INVALID_FILE] * 2
        assert seen == [('file-0', UnsupportedMediaKind), ('file-1', UnsupportedMediaKind)]

    def test_failing_failure_handler(self, items, logger):
        """Test an error in the failure handler still settles the job."""
        def job(item):
            raise DerivativeFailure('boom')

        def on_failure(item, error):
            raise RuntimeError('handler broke')

        results = BatchScheduler(job, on_failure=on_failure, logger=logger).run(items[:3])

        assert [r.outcome for r in results] == [JobOutcome.FAILED] * 3


class TestJobResult:
    """Tests for JobResult dataclass."""

    def test_succeeded(self, image_item):
        """Test a result without an error succeeded."""
        assert JobResult(image_item, JobOutcome.FINISHED).succeeded
        assert not JobResult(image_item, JobOutcome.FAILED, ValueError('x')).succeeded
