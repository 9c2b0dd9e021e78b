"""
WorkItem - A single file-processing job fetched from the coordinator.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Optional


class MediaKind(str, Enum):
    """Declared media kind of a file item."""
    IMAGE = 'IMAGE'
    VIDEO = 'VIDEO'
    AUDIO = 'AUDIO'
    DOCUMENT = 'DOCUMENT'
    PLAINTEXT = 'PLAINTEXT'
    BINARY = 'BINARY'
    OTHER = 'OTHER'

    @classmethod
    def parse(cls, value: Optional[str]) -> 'MediaKind':
        try:
            return cls(str(value).upper())
        except ValueError:
            return cls.OTHER


class JobOutcome(str, Enum):
    """Terminal outcome of one pipeline run."""
    FINISHED = 'finished'
    FAILED = 'failed'
    INVALID_FILE = 'invalid-file'


@dataclass(frozen=True)
class StorageShard:
    """
    A remote storage node. Only the domain is used by the worker.

    Attributes:
        domain: Network domain of the shard (host[:port])
        paired: Whether the shard is paired with the coordinator
        is_up: Liveness flag
        space_total: Total capacity
        space_free: Free capacity
        last_heartbeat: ISO timestamp of the last heartbeat
    """
    domain: str
    paired: bool = False
    is_up: bool = False
    space_total: Optional[int] = None
    space_free: Optional[int] = None
    last_heartbeat: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    _KNOWN = ('domain', 'paired', 'isUp', 'spaceTotal', 'spaceFree', 'lastHeartbeat')

    def base_url(self, scheme: str = 'https') -> str:
        return f"{scheme}://{self.domain}"

    def to_dict(self) -> dict:
        data = dict(self.extra)
        data.update({
            'domain': self.domain,
            'paired': self.paired,
            'isUp': self.is_up,
            'spaceTotal': self.space_total,
            'spaceFree': self.space_free,
            'lastHeartbeat': self.last_heartbeat,
        })
        return data

    @classmethod
    def from_dict(cls, data: dict) -> 'StorageShard':
        if not isinstance(data, dict):
            raise ValueError(f"server shard must be an object, got {type(data).__name__}")
        if not data.get('domain'):
            raise ValueError("server shard has no domain")
        return cls(
            domain=data['domain'],
            paired=bool(data.get('paired')),
            is_up=bool(data.get('isUp')),
            space_total=data.get('spaceTotal'),
            space_free=data.get('spaceFree'),
            last_heartbeat=data.get('lastHeartbeat'),
            extra={k: v for k, v in data.items() if k not in cls._KNOWN},
        )


@dataclass(frozen=True)
class WorkItem:
    """
    One file owned by a user, located on a specific storage shard.

    Fields of the coordinator's file record that the worker does not
    interpret are kept in ``extra`` so the metadata upload sends the
    record back unchanged.

    Attributes:
        id: Stable file identifier
        file_key: Storage key of the original on its shard
        file_type: Declared media kind as sent by the coordinator
        item_width: Previously recorded width, if any
        item_height: Previously recorded height, if any
        is_private: Visibility flag (may be null upstream)
        server_shard: Owning shard
        preview_blur_hash: Previously recorded preview hash, if any
    """
    id: str
    file_key: str
    file_type: Optional[str] = None
    item_width: Optional[int] = None
    item_height: Optional[int] = None
    is_private: Optional[bool] = None
    server_shard: Optional[StorageShard] = None
    preview_blur_hash: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    _KNOWN = (
        'id', 'fileKey', 'fileType', 'itemWidth', 'itemHeight',
        'isPrivate', 'serverShard', 'previewBlurHash',
    )

    @property
    def media_kind(self) -> MediaKind:
        return MediaKind.parse(self.file_type)

    @property
    def shard_domain(self) -> Optional[str]:
        return self.server_shard.domain if self.server_shard else None

    def normalized(
        self,
        width: Optional[int] = None,
        height: Optional[int] = None,
        preview_hash: Optional[str] = None
    ) -> 'WorkItem':
        """
        Return a copy ready to be sent back to the shard.

        The visibility flag is coerced to a bool, and dimensions and the
        preview hash measured from the actual file replace the recorded ones
        when available.
        """
        return replace(
            self,
            is_private=bool(self.is_private),
            item_width=width or self.item_width,
            item_height=height or self.item_height,
            preview_blur_hash=preview_hash or self.preview_blur_hash,
        )

    def to_dict(self) -> dict:
        """Convert to the coordinator's camelCase JSON shape."""
        data = dict(self.extra)
        data.update({
            'id': self.id,
            'fileKey': self.file_key,
            'fileType': self.file_type,
            'itemWidth': self.item_width,
            'itemHeight': self.item_height,
            'isPrivate': self.is_private,
            'previewBlurHash': self.preview_blur_hash,
            'serverShard': self.server_shard.to_dict() if self.server_shard else None,
        })
        return data

    @classmethod
    def from_dict(cls, data: dict) -> 'WorkItem':
        """Create from a coordinator file record."""
        if not isinstance(data, dict):
            raise ValueError(f"work item must be an object, got {type(data).__name__}")
        if not data.get('id') or not data.get('fileKey'):
            raise ValueError("work item is missing id or fileKey")

        shard_data = data.get('serverShard')
        return cls(
            id=str(data['id']),
            file_key=data['fileKey'],
            file_type=data.get('fileType'),
            item_width=_optional_int(data.get('itemWidth')),
            item_height=_optional_int(data.get('itemHeight')),
            is_private=data.get('isPrivate'),
            server_shard=StorageShard.from_dict(shard_data) if shard_data else None,
            preview_blur_hash=data.get('previewBlurHash'),
            extra={k: v for k, v in data.items() if k not in cls._KNOWN},
        )


def _optional_int(value) -> Optional[int]:
    if value is None:
        return None
    return int(value)
