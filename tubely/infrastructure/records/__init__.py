"""Video record persistence."""

from .repository import InMemoryVideoRecordStore, VideoRecordStore

__all__ = ["InMemoryVideoRecordStore", "VideoRecordStore"]
