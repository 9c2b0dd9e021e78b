"""
WorkerConfig - Worker configuration, read from the environment once at start.
"""

import os
import tempfile
from dataclasses import dataclass, field
from typing import List, Optional


def str2bool(value, raise_exc=False):
    """converts diverse string values into boolean True or False."""
    true_set = {'yes', 'true', 't', 'y', '1'}
    false_set = {'no', 'false', 'f', 'n', '0'}

    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        value = value.strip().lower()
        if value in true_set:
            return True
        if value in false_set:
            return False

    if raise_exc:
        raise ValueError('Expected "%s"' % '", "'.join(sorted(true_set | false_set)))
    return None


@dataclass
class WorkerConfig:
    """
    Configuration for the media worker.

    Attributes:
        coordinator_url: Base URL of the coordinator
        api_key: API key sent as x-api-key to coordinator and shards
        server_id: This worker's identifier, sent as x-server-id
        shard_scheme: URL scheme used to reach storage shards
        batch_size: Number of jobs processed concurrently per batch
        poll_interval: Seconds between the end of one cycle and the next
        initial_delay: Seconds before the first cycle
        http_connect_timeout: Connect timeout for every HTTP call
        http_read_timeout: Read timeout for every HTTP call
        transcode_timeout: Limit for a single ffmpeg invocation
        download_attempts: Attempts on transient download connection errors
        temp_dir: Directory for temporary files
        report_failures: Report unsupported files to the coordinator
        ffmpeg_path: ffmpeg executable
        verify_ssl: Verify TLS certificates
    """
    coordinator_url: Optional[str] = None
    api_key: Optional[str] = None
    server_id: Optional[str] = None
    shard_scheme: str = 'https'
    batch_size: int = 1
    poll_interval: float = 10.0
    initial_delay: float = 1.0
    http_connect_timeout: float = 10.0
    http_read_timeout: float = 300.0
    transcode_timeout: float = 3600.0
    download_attempts: int = 3
    temp_dir: str = field(default_factory=tempfile.gettempdir)
    report_failures: bool = False
    ffmpeg_path: str = 'ffmpeg'
    verify_ssl: bool = True

    @classmethod
    def from_env(cls) -> 'WorkerConfig':
        """Create configuration from environment variables."""
        defaults = cls()
        return cls(
            coordinator_url=os.getenv('COORDINATOR_URL'),
            api_key=os.getenv('COORDINATOR_API_KEY'),
            server_id=os.getenv('COORDINATOR_SERVER_ID'),
            shard_scheme=os.getenv('SHARD_SCHEME', defaults.shard_scheme),
            batch_size=int(os.getenv('WORKER_BATCH_SIZE', defaults.batch_size)),
            poll_interval=float(os.getenv('WORKER_POLL_INTERVAL', defaults.poll_interval)),
            initial_delay=float(os.getenv('WORKER_INITIAL_DELAY', defaults.initial_delay)),
            http_connect_timeout=float(
                os.getenv('WORKER_HTTP_CONNECT_TIMEOUT', defaults.http_connect_timeout)),
            http_read_timeout=float(
                os.getenv('WORKER_HTTP_READ_TIMEOUT', defaults.http_read_timeout)),
            transcode_timeout=float(
                os.getenv('WORKER_TRANSCODE_TIMEOUT', defaults.transcode_timeout)),
            download_attempts=int(os.getenv('WORKER_DOWNLOAD_ATTEMPTS', defaults.download_attempts)),
            temp_dir=os.getenv('WORKER_TEMP_DIR') or defaults.temp_dir,
            report_failures=bool(str2bool(os.getenv('WORKER_REPORT_FAILURES', 'false'))),
            ffmpeg_path=os.getenv('FFMPEG_PATH', defaults.ffmpeg_path),
            verify_ssl=str2bool(os.getenv('WORKER_VERIFY_SSL', 'true')) is not False,
        )

    def validate(self) -> List[str]:
        """
        Validate configuration.

        Returns:
            List of error messages (empty if valid)
        """
        errors = []
        if not self.coordinator_url:
            errors.append("COORDINATOR_URL is required")
        if not self.api_key:
            errors.append("COORDINATOR_API_KEY is required")
        if not self.server_id:
            errors.append("COORDINATOR_SERVER_ID is required")
        if self.batch_size < 1:
            errors.append("Batch size must be at least 1")
        if self.poll_interval < 0:
            errors.append("Poll interval cannot be negative")
        if self.download_attempts < 1:
            errors.append("Download attempts must be at least 1")
        if self.shard_scheme not in ('http', 'https'):
            errors.append(f"Unsupported shard scheme: {self.shard_scheme}")
        return errors
