"""
Downloader - Fetches a shard-hosted original into a tracked temporary file.
"""

import logging
import os
from typing import Optional
from urllib.parse import quote

import urllib3
from retrying import retry

from .api_channel import is_success
from .errors import DownloadFailure
from .file_pointer import LocalFilePointer, unique_temp_path
from .resource_tracker import ResourceTracker
from .work_item import WorkItem


def _is_transient(exc: Exception) -> bool:
    """Connection-level errors are worth another attempt; HTTP statuses are not."""
    return isinstance(exc, urllib3.exceptions.HTTPError)


class Downloader:
    """
    Streams source objects to disk.

    The destination is tracked before the first byte is written, so a
    partial file is always cleaned up.
    """

    CHUNK_SIZE = 64 * 1024

    # Shards may redirect to the object; connection errors are left to
    # the retrying decorator around the whole transfer.
    REDIRECTS = urllib3.Retry(total=None, connect=0, read=0, status=0, other=0, redirect=5)

    def __init__(
        self,
        pool: urllib3.PoolManager,
        tracker: ResourceTracker,
        temp_dir: Optional[str] = None,
        scheme: str = 'https',
        attempts: int = 3,
        wait_multiplier_ms: int = 1000,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize downloader.

        Args:
            pool: Connection pool used for the transfer
            tracker: Registry the downloaded file is handed to
            temp_dir: Directory for downloaded files
            scheme: URL scheme used to reach shards
            attempts: Attempts on transient connection errors
            wait_multiplier_ms: Exponential backoff multiplier between attempts
            logger: Optional logger instance
        """
        self.pool = pool
        self.tracker = tracker
        self.temp_dir = temp_dir
        self.scheme = scheme
        self.attempts = attempts
        self.wait_multiplier_ms = wait_multiplier_ms
        self.logger = logger or logging.getLogger(__name__)

    def source_url(self, work_item: WorkItem) -> str:
        """URL of the original object on its shard."""
        if not work_item.shard_domain:
            raise DownloadFailure(f"work item {work_item.id} has no server shard")
        key = quote(work_item.file_key.lstrip('/'), safe='/')
        return f"{self.scheme}://{work_item.shard_domain}/{key}"

    def download(self, work_item: WorkItem) -> LocalFilePointer:
        """
        Download a work item's original.

        Returns:
            Tracked pointer to the local copy

        Raises:
            DownloadFailure: If the object could not be fetched; the partial
                file has already been deleted
        """
        url = self.source_url(work_item)
        extension = os.path.splitext(work_item.file_key)[1] or '.tmp'
        pointer = self.tracker.track(
            LocalFilePointer(unique_temp_path(extension, self.temp_dir), work_item)
        )

        fetch = retry(
            retry_on_exception=_is_transient,
            stop_max_attempt_number=self.attempts,
            wait_exponential_multiplier=self.wait_multiplier_ms,
        )(self._fetch_to)

        self.logger.debug(f"Downloading: {url}")
        try:
            fetch(url, pointer.path)
        except DownloadFailure:
            self.tracker.release(pointer)
            raise
        except (urllib3.exceptions.HTTPError, OSError) as e:
            self.tracker.release(pointer)
            raise DownloadFailure(f"Download failed for {url}: {e}") from e

        self.logger.debug(f"Download finished: {pointer.path}")
        return pointer

    def _fetch_to(self, url: str, path: str) -> None:
        response = self.pool.request('GET', url, preload_content=False, retries=self.REDIRECTS)
        try:
            if not is_success(response):
                raise DownloadFailure(f"unexpected response {response.status} for {url}")
            with open(path, 'wb') as f:
                for chunk in response.stream(self.CHUNK_SIZE):
                    f.write(chunk)
        finally:
            response.release_conn()
