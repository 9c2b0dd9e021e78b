"""Tests for MediaDerivativeGenerator class."""

from unittest.mock import MagicMock

import pytest

from mediaworker.derivative_generator import MediaDerivativeGenerator
from mediaworker.errors import DerivativeFailure, UnsupportedMediaKind
from mediaworker.file_pointer import LocalFilePointer
from mediaworker.quality import QualityTier


class TestMediaDerivativeGenerator:
    """Tests for MediaDerivativeGenerator class."""

    @pytest.fixture
    def thumb_gen(self):
        """Fixture providing a mocked thumbnail generator."""
        thumb_gen = MagicMock()
        thumb_gen.generate.return_value = (1920, 1080, 'LEHV6nWB2yk8')
        return thumb_gen

    @pytest.fixture
    def transcoder(self):
        """Fixture providing a mocked video transcoder."""
        return MagicMock()

    @pytest.fixture
    def generator(self, tracker, thumb_gen, transcoder, logger):
        """Fixture providing a generator with mocked backends."""
        return MediaDerivativeGenerator(
            tracker,
            thumbnail_generator=thumb_gen,
            transcoder=transcoder,
            logger=logger,
        )

    def source_for(self, work_item, fake_fs, tracker, path='/tmp/source.bin'):
        fake_fs.create(path)
        return tracker.track(LocalFilePointer(path=path, work_item=work_item))

    def test_image_thumbnail(self, generator, thumb_gen, tracker, image_item, fake_fs):
        """Test an image thumbnail is tracked and carries measured metadata."""
        source = self.source_for(image_item, fake_fs, tracker)

        thumbnail = generator.thumbnail(source)

        assert thumbnail.path == '/tmp/source.bin__thumbnail__.jpg'
        assert (thumbnail.width, thumbnail.height) == (1920, 1080)
        assert thumbnail.preview_hash == 'LEHV6nWB2yk8'
        assert thumbnail.work_item == image_item
        assert tracker.is_tracked(thumbnail)
        thumb_gen.generate.assert_called_once_with('/tmp/source.bin', thumbnail.path)

    def test_video_thumbnail_uses_extracted_frame(
        self, generator, thumb_gen, transcoder, tracker, video_item, fake_fs
    ):
        """Test a video thumbnail is made from a frame that is deleted afterwards."""
        source = self.source_for(video_item, fake_fs, tracker)
        frame_path = '/tmp/source.bin__thumbnail__preproc.jpg'
        transcoder.extract_frame.side_effect = lambda src, out: fake_fs.create(out)

        thumbnail = generator.thumbnail(source)

        transcoder.extract_frame.assert_called_once_with('/tmp/source.bin', frame_path)
        thumb_gen.generate.assert_called_once_with(frame_path, thumbnail.path)
        assert fake_fs.removal_count(frame_path) == 1
        assert frame_path not in {p.path for p in tracker.pending}
        assert tracker.is_tracked(thumbnail)

    def test_frame_released_when_extraction_fails(
        self, generator, transcoder, tracker, video_item, fake_fs
    ):
        """Test a failed frame extraction leaves no tracked outputs behind."""
        source = self.source_for(video_item, fake_fs, tracker)
        transcoder.extract_frame.side_effect = DerivativeFailure('ffmpeg failed')

        with pytest.raises(DerivativeFailure):
            generator.thumbnail(source)

        assert [p.path for p in tracker.pending] == [source.path]
        assert fake_fs.removal_count('/tmp/source.bin__thumbnail__preproc.jpg') == 1
        assert fake_fs.removal_count('/tmp/source.bin__thumbnail__.jpg') == 1

    @pytest.mark.parametrize('file_type', ['AUDIO', 'DOCUMENT', 'PLAINTEXT', 'BINARY', 'OTHER'])
    def test_thumbnail_unsupported_kind(
        self, generator, make_work_item, tracker, fake_fs, file_type
    ):
        """Test kinds other than image and video are rejected without side effects."""
        source = self.source_for(make_work_item(file_type=file_type), fake_fs, tracker)

        with pytest.raises(UnsupportedMediaKind):
            generator.thumbnail(source)

        assert tracker.pending == [source]

    def test_scale_image(self, generator, thumb_gen, tracker, image_item, fake_fs):
        """Test an image preview is a bounded JPEG without a hash."""
        source = self.source_for(image_item, fake_fs, tracker)

        preview = generator.scale(source, QualityTier.P720)

        assert preview.path == '/tmp/source.bin_720p.jpeg'
        assert tracker.is_tracked(preview)
        thumb_gen.generate.assert_called_once_with(
            '/tmp/source.bin', preview.path, max_dimension=720, with_hash=False
        )

    def test_scale_video(self, generator, transcoder, tracker, video_item, fake_fs):
        """Test a video preview is transcoded at the tier."""
        source = self.source_for(video_item, fake_fs, tracker)

        preview = generator.scale(source, QualityTier.P1080)

        assert preview.path == '/tmp/source.bin_1080p.mp4'
        transcoder.transcode.assert_called_once_with(
            '/tmp/source.bin', preview.path, QualityTier.P1080
        )

    def test_scale_failure_releases_output(
        self, generator, transcoder, tracker, video_item, fake_fs
    ):
        """Test a failed transcode deletes its partial output."""
        source = self.source_for(video_item, fake_fs, tracker)
        transcoder.transcode.side_effect = DerivativeFailure('pass 2 failed')

        with pytest.raises(DerivativeFailure):
            generator.scale(source, QualityTier.P480)

        assert tracker.pending == [source]
        assert fake_fs.removal_count('/tmp/source.bin_480p.mp4') == 1

    def test_scale_unsupported_kind(self, generator, make_work_item, tracker, fake_fs):
        """Test scaling an unsupported kind raises."""
        source = self.source_for(make_work_item(file_type='AUDIO'), fake_fs, tracker)

        with pytest.raises(UnsupportedMediaKind):
            generator.scale(source, QualityTier.P480)
