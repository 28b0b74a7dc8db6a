"""Tests for the in-memory video record store."""

from uuid import uuid4

import pytest

from tubely.core.media.errors import RecordNotFound, RecordUpdateError
from tubely.core.media.models import VideoRecord


class TestInMemoryVideoRecordStore:
    """Tests for record ownership and URL persistence."""

    def test_created_record_is_owned_by_creator(self, record_store, owner_id):
        record = record_store.create(owner_id=owner_id, title="Lake swim")

        assert record_store.get(record.id).is_owned_by(owner_id)
        assert not record_store.get(record.id).is_owned_by(uuid4())

    def test_get_returns_a_copy(self, record_store, video):
        fetched = record_store.get(video.id)
        fetched.video_url = "https://example.com/x.mp4"

        assert record_store.get(video.id).video_url is None

    def test_update_persists_and_touches_timestamp(self, record_store, video):
        record = record_store.get(video.id)
        record.thumbnail_url = "http://localhost:8091/assets/k.png"

        record_store.update(record)

        stored = record_store.get(video.id)
        assert stored.thumbnail_url == "http://localhost:8091/assets/k.png"
        assert stored.updated_at >= video.updated_at

    def test_missing_record(self, record_store):
        with pytest.raises(RecordNotFound):
            record_store.get(uuid4())

    def test_update_of_unknown_record_fails(self, record_store, owner_id):
        with pytest.raises(RecordUpdateError):
            record_store.update(VideoRecord(owner_id=owner_id))
