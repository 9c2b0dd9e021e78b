"""
VideoTranscoder - Frame extraction and two-pass transcoding through ffmpeg.
"""

import logging
import os
import uuid
from typing import Callable, Optional

import sh

from .errors import DerivativeFailure
from .quality import QualityTier


class VideoTranscoder:
    """
    Thin wrapper around the ffmpeg executable.

    Every invocation is bounded by ``timeout`` seconds.
    """

    def __init__(
        self,
        ffmpeg_path: str = 'ffmpeg',
        timeout: Optional[float] = 3600.0,
        remove_file: Callable[[str], None] = os.remove,
        command_factory: Callable = sh.Command,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize transcoder.

        Args:
            ffmpeg_path: ffmpeg executable name or path
            timeout: Seconds allowed for one ffmpeg run (None = unbounded)
            remove_file: Function deleting intermediate files
            command_factory: Resolves the executable (sh.Command)
            logger: Optional logger instance
        """
        self.ffmpeg_path = ffmpeg_path
        self.timeout = timeout
        self.remove_file = remove_file
        self.command_factory = command_factory
        self.logger = logger or logging.getLogger(__name__)

    def extract_frame(self, input_path: str, output_path: str) -> None:
        """Write the first video frame of input_path as an image."""
        self._run(
            'frame extraction',
            '-y', '-i', input_path,
            '-frames:v', '1',
            '-q:v', '2',
            output_path,
        )

    def transcode(self, input_path: str, output_path: str, tier: QualityTier) -> None:
        """
        Two-pass H.264 encode scaled to the tier's height at its bitrate.

        The pass log is named with a fresh uuid so concurrent encodes of the
        same source never share statistics. Intermediate files are removed
        whether or not the encode succeeds.
        """
        pass_log = f"{input_path}_{uuid.uuid4()}.log"
        pass1_output = f"{output_path}.pass1.tmp.mp4"
        scale = f"scale=-2:{tier.lines}"

        try:
            self._run(
                f"pass 1 for {tier.label}p",
                '-fflags', '+genpts',
                '-i', input_path,
                '-vf', scale,
                '-c:v', 'libx264',
                '-preset', 'medium',
                '-b:v', tier.bitrate,
                '-pass', '1',
                '-passlogfile', pass_log,
                '-an',
                '-f', 'mp4',
                '-y', pass1_output,
            )
            self._run(
                f"pass 2 for {tier.label}p",
                '-fflags', '+genpts',
                '-i', input_path,
                '-vf', scale,
                '-c:v', 'libx264',
                '-preset', 'medium',
                '-pix_fmt', 'yuv420p',
                '-b:v', tier.bitrate,
                '-pass', '2',
                '-passlogfile', pass_log,
                '-c:a', 'aac',
                '-b:a', '256k',
                '-movflags', '+faststart',
                '-y', output_path,
            )
            self.logger.info(f"Video converted to {tier.label}p: {output_path}")
        finally:
            # ffmpeg names the x264 stats file <prefix>-0.log
            for leftover in (pass1_output, pass_log, f"{pass_log}-0.log",
                             f"{pass_log}-0.log.mbtree", f"{pass_log}.mbtree"):
                self._discard(leftover)

    def _run(self, description: str, *args) -> None:
        try:
            ffmpeg = self.command_factory(self.ffmpeg_path)
            ffmpeg(*args, _timeout=self.timeout)
        except sh.CommandNotFound as e:
            raise DerivativeFailure(f"ffmpeg not found: {self.ffmpeg_path}") from e
        except sh.TimeoutException as e:
            raise DerivativeFailure(f"ffmpeg {description} timed out after {self.timeout}s") from e
        except sh.ErrorReturnCode as e:
            stderr = e.stderr.decode('utf-8', errors='replace')[-2000:] if e.stderr else ''
            self.logger.error(f"Error during ffmpeg {description}: {stderr}")
            raise DerivativeFailure(f"ffmpeg {description} failed with exit code {e.exit_code}") from e
        self.logger.debug(f"ffmpeg {description} completed")

    def _discard(self, path: str) -> None:
        try:
            self.remove_file(path)
        except FileNotFoundError:
            pass
        except OSError as e:
            self.logger.warning(f"Could not delete temp file {path}: {e}")
