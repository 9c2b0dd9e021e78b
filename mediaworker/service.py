"""
MediaWorker - Wires every component of one worker instance together.
"""

import logging
from typing import Optional

import urllib3

from .api_channel import ApiChannel, build_pool
from .batch_scheduler import BatchScheduler
from .config import WorkerConfig
from .coordinator_client import CoordinatorClient
from .derivative_generator import DerivativeGenerator, MediaDerivativeGenerator
from .downloader import Downloader
from .errors import UploadFailure
from .pipeline import JobPipeline
from .resource_tracker import ResourceTracker
from .thumbnail_generator import ThumbnailGenerator
from .upload_client import UploadClient
from .video_transcoder import VideoTranscoder
from .work_item import WorkItem
from .worker_loop import FixedInterval, WorkerLoop
from .worker_stats import WorkerStats


class MediaWorker:
    """
    One worker instance.

    Owns the connection pool, the temporary file registry and the
    statistics; nothing is shared between instances.
    """

    def __init__(
        self,
        config: WorkerConfig,
        pool: Optional[urllib3.PoolManager] = None,
        generator: Optional[DerivativeGenerator] = None,
        tracker: Optional[ResourceTracker] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize worker.

        Args:
            config: Worker configuration
            pool: Connection pool (built from config if omitted)
            generator: Derivative generator (Pillow + ffmpeg if omitted)
            tracker: Temporary file registry
            logger: Optional logger instance
        """
        self.config = config
        self.logger = logger or logging.getLogger(__name__)
        self.pool = pool or build_pool(
            connect_timeout=config.http_connect_timeout,
            read_timeout=config.http_read_timeout,
            verify_ssl=config.verify_ssl,
        )
        self.stats = WorkerStats()
        self.tracker = tracker or ResourceTracker(logger=self.logger)

        self.coordinator = CoordinatorClient(
            ApiChannel(config.coordinator_url, config.api_key, config.server_id,
                       pool=self.pool, logger=self.logger),
            logger=self.logger,
        )
        self.downloader = Downloader(
            self.pool,
            self.tracker,
            temp_dir=config.temp_dir,
            scheme=config.shard_scheme,
            attempts=config.download_attempts,
            logger=self.logger,
        )
        self.generator = generator or MediaDerivativeGenerator(
            self.tracker,
            thumbnail_generator=ThumbnailGenerator(logger=self.logger),
            transcoder=VideoTranscoder(
                ffmpeg_path=config.ffmpeg_path,
                timeout=config.transcode_timeout,
                logger=self.logger,
            ),
            logger=self.logger,
        )
        self.pipeline = JobPipeline(
            downloader=self.downloader,
            generator=self.generator,
            uploader_for=self.uploader_for,
            coordinator=self.coordinator,
            tracker=self.tracker,
            stats=self.stats,
            report_failures=config.report_failures,
            logger=self.logger,
        )
        self.scheduler = BatchScheduler(
            self.pipeline.process,
            batch_size=config.batch_size,
            on_failure=self.pipeline.handle_failure,
            logger=self.logger,
        )
        self.loop = WorkerLoop(
            self.coordinator,
            self.scheduler,
            delay_policy=FixedInterval(config.poll_interval),
            initial_delay=config.initial_delay,
            stats=self.stats,
            logger=self.logger,
        )

    def uploader_for(self, work_item: WorkItem) -> UploadClient:
        """Upload client bound to the item's shard."""
        if work_item.server_shard is None:
            raise UploadFailure(f"work item {work_item.id} has no server shard")
        channel = ApiChannel(
            work_item.server_shard.base_url(self.config.shard_scheme),
            self.config.api_key,
            self.config.server_id,
            pool=self.pool,
            logger=self.logger,
        )
        return UploadClient(channel, logger=self.logger)

    def start(self) -> bool:
        """Start polling in the background. Repeated calls do nothing."""
        return self.loop.start()

    def run_once(self) -> bool:
        """Run a single fetch/process cycle in the calling thread."""
        return self.loop.run_cycle()

    def shutdown(self, timeout: Optional[float] = None) -> bool:
        """
        Stop polling and delete every temporary file still on disk.

        If a job is still running when the timeout expires its files are
        left alone.

        Returns:
            True if temporary files were drained
        """
        self.loop.stop(timeout)
        if self.loop.running:
            self.logger.warning(
                f"Worker loop still running after {timeout}s; "
                f"leaving {len(self.tracker.pending)} temporary file(s) in place"
            )
            return False
        self.tracker.drain_all()
        self.pool.clear()
        return True

    def get_status(self) -> dict:
        status = {'running': self.loop.running}
        status.update(self.stats.to_dict())
        status['pending_files'] = len(self.tracker.pending)
        return status
