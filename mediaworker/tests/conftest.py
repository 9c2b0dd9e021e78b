"""
Pytest fixtures for mediaworker tests.
"""

import pytest


class FakeFilesystem:
    """In-memory stand-in for os.remove that records every deletion attempt."""

    def __init__(self):
        self.files = set()
        self.removed = []
        self.failing = set()
        self.listeners = []

    def create(self, path):
        self.files.add(path)
        return path

    def remove(self, path):
        self.removed.append(path)
        for listener in self.listeners:
            listener(path)
        if path in self.failing:
            raise PermissionError(f"cannot remove {path}")
        if path not in self.files:
            raise FileNotFoundError(path)
        self.files.discard(path)

    def removal_count(self, path):
        return self.removed.count(path)


@pytest.fixture
def logger():
    """Fixture providing a logger."""
    import logging
    return logging.getLogger('test')


@pytest.fixture
def fake_fs():
    """Fixture providing a fake filesystem."""
    return FakeFilesystem()


@pytest.fixture
def tracker(fake_fs, logger):
    """Fixture providing a ResourceTracker deleting from the fake filesystem."""
    from mediaworker.resource_tracker import ResourceTracker
    return ResourceTracker(remove_file=fake_fs.remove, logger=logger)


@pytest.fixture
def shard():
    """Fixture providing a storage shard."""
    from mediaworker.work_item import StorageShard
    return StorageShard(domain='shard-1.example.com', paired=True, is_up=True)


@pytest.fixture
def make_work_item(shard):
    """Fixture providing a factory for work items."""
    from mediaworker.work_item import WorkItem

    def factory(**overrides):
        values = dict(
            id='file-1',
            file_key='user-1/photo.jpg',
            file_type='IMAGE',
            item_width=640,
            item_height=480,
            is_private=None,
            server_shard=shard,
        )
        values.update(overrides)
        return WorkItem(**values)

    return factory


@pytest.fixture
def image_item(make_work_item):
    """Fixture providing an image work item."""
    return make_work_item()


@pytest.fixture
def video_item(make_work_item):
    """Fixture providing a video work item."""
    return make_work_item(
        id='file-2',
        file_key='user-1/clip.mp4',
        file_type='VIDEO',
        item_width=1920,
        item_height=1080,
    )


@pytest.fixture
def file_record():
    """Fixture providing a coordinator file record as JSON data."""
    return {
        'id': 'a1b2c3',
        'ownerId': 'user-1',
        'name': 'holiday.jpg',
        'fileKey': 'user-1/holiday.jpg',
        'fileType': 'IMAGE',
        'mimeType': 'image/jpeg',
        'itemWidth': 4032,
        'itemHeight': 3024,
        'isPrivate': None,
        'previewBlurHash': None,
        'serverShardId': 3,
        'serverShard': {
            'id': 3,
            'domain': 'shard-3.example.com',
            'paired': True,
            'isUp': True,
            'spaceTotal': 1000,
            'spaceFree': 500,
            'lastHeartbeat': '2026-01-01T00:00:00.000Z',
        },
    }


@pytest.fixture
def sample_image_file(tmp_path):
    """Fixture providing a JPEG image on disk."""
    from PIL import Image

    path = tmp_path / 'source.jpg'
    Image.new('RGB', (1200, 800), color='red').save(path, format='JPEG')
    return str(path)


@pytest.fixture
def sample_png_file(tmp_path):
    """Fixture providing a PNG image with transparency on disk."""
    from PIL import Image

    path = tmp_path / 'source.png'
    Image.new('RGBA', (100, 100), color=(255, 0, 0, 128)).save(path, format='PNG')
    return str(path)


def make_response(status=200, data=b''):
    """Build a mock urllib3 response."""
    from unittest.mock import MagicMock
    response = MagicMock()
    response.status = status
    response.data = data
    return response


@pytest.fixture
def response_factory():
    """Fixture providing make_response."""
    return make_response
