"""
ResourceTracker - Owns the lifecycle of temporary local files.
"""

import logging
import os
import threading
from typing import Callable, Dict, Iterable, List, Optional

from .errors import CleanupFailure
from .file_pointer import LocalFilePointer


class ResourceTracker:
    """
    Registry of temporary files that must be deleted.

    Every tracked pointer gets exactly one deletion attempt, whether it is
    released by its job or drained at shutdown. Deletion errors are logged
    and never raised.
    """

    def __init__(
        self,
        remove_file: Callable[[str], None] = os.remove,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize tracker.

        Args:
            remove_file: Function deleting a path (os.remove by default)
            logger: Optional logger instance
        """
        self.remove_file = remove_file
        self.logger = logger or logging.getLogger(__name__)
        self._pointers: Dict[str, LocalFilePointer] = {}
        self._lock = threading.Lock()

    def track(self, pointer: LocalFilePointer) -> LocalFilePointer:
        """Register a pointer for guaranteed eventual cleanup."""
        with self._lock:
            self._pointers[pointer.path] = pointer
        return pointer

    def is_tracked(self, pointer: LocalFilePointer) -> bool:
        with self._lock:
            return pointer.path in self._pointers

    @property
    def pending(self) -> List[LocalFilePointer]:
        """Pointers registered and not yet released."""
        with self._lock:
            return list(self._pointers.values())

    def release(self, pointer: LocalFilePointer) -> bool:
        """
        Delete a pointer's file now and deregister it.

        Returns:
            True if a deletion was attempted, False if the pointer was not
            (or no longer) tracked
        """
        with self._lock:
            if self._pointers.pop(pointer.path, None) is None:
                return False

        try:
            self._delete(pointer.path)
        except CleanupFailure as e:
            self.logger.warning(str(e))
        return True

    def release_all(self, pointers: Iterable[LocalFilePointer]) -> int:
        """Release each of the given pointers that is still tracked."""
        return sum(1 for pointer in list(pointers) if self.release(pointer))

    def drain_all(self) -> int:
        """
        Delete every still-registered file. Used at process shutdown.

        Returns:
            Number of pointers drained
        """
        with self._lock:
            pointers = list(self._pointers.values())
            self._pointers.clear()

        for pointer in pointers:
            try:
                self._delete(pointer.path)
            except CleanupFailure as e:
                self.logger.warning(str(e))

        if pointers:
            self.logger.info(f"Drained {len(pointers)} temporary file(s)")
        return len(pointers)

    def _delete(self, path: str) -> None:
        try:
            self.remove_file(path)
            self.logger.debug(f"Deleted temporary file: {path}")
        except FileNotFoundError:
            self.logger.debug(f"Temporary file already gone: {path}")
        except OSError as e:
            raise CleanupFailure(f"Could not delete {path}: {e}") from e
