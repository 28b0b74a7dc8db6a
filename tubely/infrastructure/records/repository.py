"""
Video record store.

The record store is the source of truth for who owns a video and which URLs
it points at. The upload pipeline only needs get and update; create and
list exist for the API's own video endpoints.

InMemoryVideoRecordStore is the single implementation shipped here. It
copies records on the way in and out so callers can't mutate stored state
without going through update().
"""

import copy
import logging
import threading
from uuid import UUID

from ...core.media.errors import RecordNotFound, RecordUpdateError
from ...core.media.models import VideoRecord, utcnow
from ...core.media.pipeline import VideoRecordStore

logger = logging.getLogger(__name__)


class InMemoryVideoRecordStore:
    """
    Lock-guarded dict of records.

    Concurrent updates to the same video are last-write-wins.
    """

    def __init__(self) -> None:
        self._records: dict[UUID, VideoRecord] = {}
        self._lock = threading.Lock()
        logger.info("Initialized in-memory video record store")

    def create(
        self,
        owner_id: UUID,
        title: str = "",
        description: str = "",
    ) -> VideoRecord:
        record = VideoRecord(owner_id=owner_id, title=title, description=description)
        with self._lock:
            self._records[record.id] = copy.copy(record)

        logger.info(
            "Created video record",
            extra={"video_id": str(record.id), "owner_id": str(owner_id)},
        )
        return record

    def get(self, video_id: UUID) -> VideoRecord:
        with self._lock:
            record = self._records.get(video_id)
        if record is None:
            raise RecordNotFound(f"Video not found: {video_id}")
        return copy.copy(record)

    def update(self, record: VideoRecord) -> None:
        with self._lock:
            if record.id not in self._records:
                raise RecordUpdateError(f"Cannot update missing video: {record.id}")
            record.updated_at = utcnow()
            self._records[record.id] = copy.copy(record)

    def list_for_owner(self, owner_id: UUID) -> list[VideoRecord]:
        with self._lock:
            records = [copy.copy(r) for r in self._records.values() if r.owner_id == owner_id]
        return sorted(records, key=lambda r: r.created_at, reverse=True)
