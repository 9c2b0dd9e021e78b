"""
JobPipeline - Runs every derivative step for one work item.
"""

import logging
from typing import Callable, List, Optional

from .coordinator_client import CoordinatorClient
from .derivative_generator import DerivativeGenerator
from .downloader import Downloader
from .errors import UnsupportedMediaKind
from .file_pointer import LocalFilePointer
from .quality import ladder_height, tiers_for_height
from .resource_tracker import ResourceTracker
from .upload_client import UploadClient
from .work_item import JobOutcome, WorkItem
from .worker_stats import WorkerStats


class JobPipeline:
    """
    Processes one work item end to end.

    Steps, in order:
        1. download the original
        2. make a thumbnail (measures dimensions and preview hash)
        3. upload metadata with the thumbnail
        4. for each applicable quality tier: scale, upload, delete
        5. delete the original
        6. report the item finished

    The first failing step aborts the job and the error propagates to the
    caller. Previews already uploaded stay on the shard. Every temporary file
    the job created is deleted before the outcome is reported, on success
    and on failure.
    """

    def __init__(
        self,
        downloader: Downloader,
        generator: DerivativeGenerator,
        uploader_for: Callable[[WorkItem], UploadClient],
        coordinator: CoordinatorClient,
        tracker: ResourceTracker,
        stats: Optional[WorkerStats] = None,
        report_failures: bool = False,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize pipeline.

        Args:
            downloader: Fetches originals
            generator: Produces thumbnails and scaled previews
            uploader_for: Builds the upload client for an item's shard
            coordinator: Receives terminal status reports
            tracker: Registry of temporary files
            stats: Shared counters
            report_failures: Report unsupported files as invalid-file
            logger: Optional logger instance
        """
        self.downloader = downloader
        self.generator = generator
        self.uploader_for = uploader_for
        self.coordinator = coordinator
        self.tracker = tracker
        self.stats = stats or WorkerStats()
        self.report_failures = report_failures
        self.logger = logger or logging.getLogger(__name__)

    def process(self, work_item: WorkItem) -> JobOutcome:
        """
        Run the pipeline for one item.

        Returns:
            JobOutcome.FINISHED

        Raises:
            WorkerError: From the first step that failed
        """
        self.logger.info(f"Processing {work_item.file_key} ({work_item.file_type})")
        owned: List[LocalFilePointer] = []
        try:
            self._run_steps(work_item, owned)
        finally:
            self.tracker.release_all(owned)

        self.stats.increment('finished')
        self.logger.info(f"Finished processing file: {work_item.file_key}")
        self.coordinator.report_status(work_item.id, JobOutcome.FINISHED)
        return JobOutcome.FINISHED

    def handle_failure(self, work_item: WorkItem, error: BaseException) -> JobOutcome:
        """
        Classify a failed job and optionally tell the coordinator.

        Only unsupported files can be reported: the coordinator has no
        status for a failed attempt, so other failures are left for it to
        hand out again.
        """
        self.stats.record_error(f"{work_item.file_key}: {error}")

        if isinstance(error, UnsupportedMediaKind):
            self.stats.increment('invalid')
            if self.report_failures:
                self.coordinator.report_status(work_item.id, JobOutcome.INVALID_FILE)
            return JobOutcome.INVALID_FILE

        self.stats.increment('failed')
        return JobOutcome.FAILED

    def _run_steps(self, work_item: WorkItem, owned: List[LocalFilePointer]) -> None:
        source = self.downloader.download(work_item)
        owned.append(source)

        thumbnail = self.generator.thumbnail(source)
        owned.append(thumbnail)
        self.logger.debug(
            f"Thumbnail for {work_item.file_key}: {thumbnail.width}x{thumbnail.height}"
        )

        uploader = self.uploader_for(work_item)
        metadata = work_item.normalized(
            width=thumbnail.width,
            height=thumbnail.height,
            preview_hash=thumbnail.preview_hash,
        )
        uploader.upload_metadata(metadata, thumbnail)
        self.tracker.release(thumbnail)
        self.logger.info(f"Metadata uploaded: {work_item.file_key}")

        resolution = ladder_height(metadata.item_width, metadata.item_height)
        for tier in tiers_for_height(resolution):
            self.logger.info(
                f"Preview: resolution {resolution} is at least {tier.label}p, "
                f"making {tier.label}p preview"
            )
            preview = self.generator.scale(source, tier)
            owned.append(preview)
            try:
                uploader.upload_preview(metadata, tier, preview)
            finally:
                self.tracker.release(preview)
            self.stats.increment('derivatives_uploaded')

        self.tracker.release(source)
