"""
LocalFilePointer - Handle to a temporary local file derived from a work item.
"""

import os
import secrets
import tempfile
import time
from dataclasses import dataclass, replace
from typing import Optional

from .work_item import WorkItem


@dataclass(frozen=True)
class LocalFilePointer:
    """
    A local file plus the work item it belongs to.

    Attributes:
        path: Location on the local filesystem
        work_item: Work item the file derives from
        width: Extracted width, when the generator measured one
        height: Extracted height, when the generator measured one
        preview_hash: BlurHash of the file, for thumbnails
    """
    path: str
    work_item: WorkItem
    width: Optional[int] = None
    height: Optional[int] = None
    preview_hash: Optional[str] = None

    def derive(self, path: str) -> 'LocalFilePointer':
        """Pointer to a new file produced from this one."""
        return LocalFilePointer(path=path, work_item=self.work_item)

    def with_metadata(
        self,
        width: Optional[int] = None,
        height: Optional[int] = None,
        preview_hash: Optional[str] = None
    ) -> 'LocalFilePointer':
        return replace(self, width=width, height=height, preview_hash=preview_hash)

    @property
    def filename(self) -> str:
        return os.path.basename(self.path)

    def read_bytes(self) -> bytes:
        with open(self.path, 'rb') as f:
            return f.read()


def unique_temp_path(extension: str = 'tmp', temp_dir: Optional[str] = None) -> str:
    """
    Build a process-unique temporary path.

    Concurrent jobs never share a name: a millisecond timestamp plus 16
    random bytes.
    """
    directory = temp_dir or tempfile.gettempdir()
    extension = extension.lstrip('.') or 'tmp'
    name = f"transcoding-file-{int(time.time() * 1000)}-{secrets.token_hex(16)}.{extension}"
    return os.path.join(directory, name)
