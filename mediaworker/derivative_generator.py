"""
DerivativeGenerator - Produces thumbnails and scaled previews from a local file.
"""

import abc
import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from .errors import UnsupportedMediaKind
from .file_pointer import LocalFilePointer
from .quality import QualityTier
from .resource_tracker import ResourceTracker
from .thumbnail_generator import ThumbnailGenerator
from .video_transcoder import VideoTranscoder
from .work_item import MediaKind


class DerivativeGenerator(abc.ABC):
    """
    Capability the job pipeline depends on.

    Implementations return a new pointer for every file they produce and
    are responsible for registering it with the resource tracker.
    """

    @abc.abstractmethod
    def thumbnail(self, source: LocalFilePointer) -> LocalFilePointer:
        """Produce a thumbnail carrying extracted width, height and preview hash."""

    @abc.abstractmethod
    def scale(self, source: LocalFilePointer, tier: QualityTier) -> LocalFilePointer:
        """Produce a preview of the source at the given quality tier."""


class MediaDerivativeGenerator(DerivativeGenerator):
    """
    Images go through Pillow, videos through ffmpeg.
    """

    def __init__(
        self,
        tracker: ResourceTracker,
        thumbnail_generator: Optional[ThumbnailGenerator] = None,
        transcoder: Optional[VideoTranscoder] = None,
        logger: Optional[logging.Logger] = None
    ):
        self.tracker = tracker
        self.thumb_gen = thumbnail_generator or ThumbnailGenerator()
        self.transcoder = transcoder or VideoTranscoder()
        self.logger = logger or logging.getLogger(__name__)

    def thumbnail(self, source: LocalFilePointer) -> LocalFilePointer:
        kind = source.work_item.media_kind
        if kind not in (MediaKind.IMAGE, MediaKind.VIDEO):
            raise UnsupportedMediaKind(source.work_item.file_type)

        with self._produce(source, f"{source.path}__thumbnail__.jpg") as output:
            if kind == MediaKind.VIDEO:
                frame = self.tracker.track(source.derive(f"{source.path}__thumbnail__preproc.jpg"))
                try:
                    self.transcoder.extract_frame(source.path, frame.path)
                    width, height, preview_hash = self.thumb_gen.generate(frame.path, output.path)
                finally:
                    self.tracker.release(frame)
            else:
                width, height, preview_hash = self.thumb_gen.generate(source.path, output.path)

        self.logger.info(f"Made {kind.value.lower()} thumbnail for {source.work_item.file_key}")
        return output.with_metadata(width=width, height=height, preview_hash=preview_hash)

    def scale(self, source: LocalFilePointer, tier: QualityTier) -> LocalFilePointer:
        kind = source.work_item.media_kind
        if kind == MediaKind.IMAGE:
            with self._produce(source, f"{source.path}_{tier.label}p.jpeg") as output:
                self.thumb_gen.generate(
                    source.path, output.path, max_dimension=tier.lines, with_hash=False
                )
        elif kind == MediaKind.VIDEO:
            with self._produce(source, f"{source.path}_{tier.label}p.mp4") as output:
                self.transcoder.transcode(source.path, output.path, tier)
        else:
            raise UnsupportedMediaKind(source.work_item.file_type)

        self.logger.info(f"Made {tier.label}p {kind.value.lower()} preview for {source.work_item.file_key}")
        return output

    @contextmanager
    def _produce(self, source: LocalFilePointer, path: str) -> Iterator[LocalFilePointer]:
        """Track an output file and delete it again if producing it fails."""
        output = self.tracker.track(source.derive(path))
        try:
            yield output
        except BaseException:
            self.tracker.release(output)
            raise
