"""
Exception taxonomy for the media worker.

Cycle-level failures (FetchFailure) are absorbed by the worker loop,
job-level failures by the batch scheduler. CleanupFailure is only ever
logged.
"""


class WorkerError(Exception):
    """Base class for all worker errors."""


class FetchFailure(WorkerError):
    """The coordinator could not be queried for work."""


class CoordinatorUnavailable(FetchFailure):
    """Coordinator unreachable, non-2xx, or returned a malformed payload."""

    def __init__(self, message: str, status: int = None):
        super().__init__(message)
        self.status = status


class DownloadFailure(WorkerError):
    """The source object could not be fetched from its shard."""


class UnsupportedMediaKind(WorkerError):
    """The work item's media kind has no derivative pipeline."""

    def __init__(self, file_type):
        super().__init__(f"unsupported file type {file_type}")
        self.file_type = file_type


class DerivativeFailure(WorkerError):
    """The external image or video tool failed or timed out."""


class UploadFailure(WorkerError):
    """A shard rejected a derivative or could not be reached."""

    def __init__(self, message: str, status: int = None):
        super().__init__(message)
        self.status = status


class CleanupFailure(WorkerError):
    """A temporary file could not be removed."""
