"""
Domain models for media ingestion.

These models represent the core business concepts. They have no dependencies
on external frameworks, storage SDKs, or HTTP. VideoRecord is owned by the
record store; the pipeline only reads it and writes one URL field back.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Orientation(Enum):
    """
    Classification of a video's frame geometry.

    The value doubles as the storage namespace for videos, so changing
    a value moves where new objects land.
    """
    LANDSCAPE = "landscape"
    PORTRAIT = "portrait"
    OTHER = "other"
    UNCLASSIFIED = "unclassified"  # thumbnails are never probed


class MediaKind(Enum):
    """What is being uploaded. Drives allow-list, form field and ceiling."""
    THUMBNAIL = "thumbnail"
    VIDEO = "video"

    @property
    def allowed_media_types(self) -> frozenset[str]:
        return _ALLOWED_MEDIA_TYPES[self]

    @property
    def form_field(self) -> str:
        return self.value


_ALLOWED_MEDIA_TYPES = {
    MediaKind.THUMBNAIL: frozenset({"image/jpeg", "image/png"}),
    MediaKind.VIDEO: frozenset({"video/mp4"}),
}


@dataclass(frozen=True)
class MediaAsset:
    """
    One stored payload.

    Frozen because once the object is written it doesn't change; a new
    upload produces a new asset under a new key.
    """
    owner_id: UUID
    content_type: str
    orientation: Orientation
    object_key: str
    size_bytes: int


@dataclass
class VideoRecord:
    """
    Metadata for a video, as held by the record store.

    Only thumbnail_url and video_url are touched by uploads.
    """
    owner_id: UUID
    id: UUID = field(default_factory=uuid4)
    title: str = ""
    description: str = ""
    thumbnail_url: Optional[str] = None
    video_url: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def is_owned_by(self, user_id: UUID) -> bool:
        return self.owner_id == user_id
