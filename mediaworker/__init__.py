"""
Media derivative worker.

Polls a coordinator for files awaiting derivatives, then for each file:
    1. Downloads the original from its storage shard
    2. Generates a thumbnail and uploads it with the file's metadata
    3. Generates and uploads 480p/720p/1080p previews as the source allows
    4. Reports the file finished

Images are processed with Pillow, videos with ffmpeg.
"""

__version__ = "1.0.0"

from .config import WorkerConfig
from .errors import (
    WorkerError,
    FetchFailure,
    CoordinatorUnavailable,
    DownloadFailure,
    UnsupportedMediaKind,
    DerivativeFailure,
    UploadFailure,
    CleanupFailure,
)
from .work_item import MediaKind, JobOutcome, StorageShard, WorkItem
from .file_pointer import LocalFilePointer
from .quality import QualityTier, ladder_height, tiers_for_height
from .resource_tracker import ResourceTracker
from .api_channel import ApiChannel
from .coordinator_client import CoordinatorClient
from .upload_client import UploadClient
from .downloader import Downloader
from .thumbnail_generator import ThumbnailGenerator
from .video_transcoder import VideoTranscoder
from .derivative_generator import DerivativeGenerator, MediaDerivativeGenerator
from .worker_stats import WorkerStats
from .pipeline import JobPipeline
from .batch_scheduler import BatchScheduler, JobResult
from .worker_loop import FixedInterval, WorkerLoop
from .service import MediaWorker

__all__ = [
    "WorkerConfig",
    "WorkerError",
    "FetchFailure",
    "CoordinatorUnavailable",
    "DownloadFailure",
    "UnsupportedMediaKind",
    "DerivativeFailure",
    "UploadFailure",
    "CleanupFailure",
    "MediaKind",
    "JobOutcome",
    "StorageShard",
    "WorkItem",
    "LocalFilePointer",
    "QualityTier",
    "ladder_height",
    "tiers_for_height",
    "ResourceTracker",
    "ApiChannel",
    "CoordinatorClient",
    "UploadClient",
    "Downloader",
    "ThumbnailGenerator",
    "VideoTranscoder",
    "DerivativeGenerator",
    "MediaDerivativeGenerator",
    "WorkerStats",
    "JobPipeline",
    "BatchScheduler",
    "JobResult",
    "FixedInterval",
    "WorkerLoop",
    "MediaWorker",
]
