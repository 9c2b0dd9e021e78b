"""
UploadClient - Pushes derivatives and metadata to a file's storage shard.
"""

import json
import logging
from typing import Optional

import urllib3

from .api_channel import ApiChannel, is_success
from .errors import UploadFailure
from .file_pointer import LocalFilePointer
from .quality import QualityTier
from .work_item import MediaKind, WorkItem

METADATA_PATCH_PATH = '/s2s/metadata-patch'
PREVIEW_CREATE_PATH = '/s2s/preview-create'


class UploadClient:
    """
    Uploads to one storage shard over an authenticated channel.

    A client is bound to a single shard; the pipeline builds one per job.
    """

    def __init__(self, channel: ApiChannel, logger: Optional[logging.Logger] = None):
        self.channel = channel
        self.logger = logger or logging.getLogger(__name__)

    def upload_metadata(self, work_item: WorkItem, thumbnail: LocalFilePointer) -> None:
        """
        Send the item's metadata together with its thumbnail.

        Raises:
            UploadFailure: On transport error or non-2xx response
        """
        fields = {
            'fileItem': json.dumps(work_item.to_dict()),
            'file': (
                f"{work_item.file_key}_thumbnail.jpg",
                thumbnail.read_bytes(),
                'image/jpeg',
            ),
        }
        self._post(METADATA_PATCH_PATH, fields, f"metadata for {work_item.file_key}")

    def upload_preview(
        self,
        work_item: WorkItem,
        tier: QualityTier,
        preview: LocalFilePointer
    ) -> None:
        """
        Send one scaled preview at the given tier.

        Raises:
            UploadFailure: On transport error or non-2xx response
        """
        if work_item.media_kind == MediaKind.VIDEO:
            extension, content_type = 'mp4', 'video/mp4'
        else:
            extension, content_type = 'jpeg', 'image/jpeg'

        fields = {
            'fileItem': json.dumps(work_item.to_dict()),
            'quality': tier.label,
            'file': (
                f"{work_item.file_key}_{tier.label}p.{extension}",
                preview.read_bytes(),
                content_type,
            ),
        }
        self._post(PREVIEW_CREATE_PATH, fields, f"{tier.label}p preview for {work_item.file_key}")

    def _post(self, path: str, fields: dict, description: str) -> None:
        try:
            response = self.channel.post_multipart(path, fields)
        except urllib3.exceptions.HTTPError as e:
            raise UploadFailure(f"failed to upload {description}: {e}") from e

        if not is_success(response):
            raise UploadFailure(
                f"failed to upload {description}, status: {response.status}",
                status=response.status,
            )
        self.logger.debug(f"Uploaded {description}")
