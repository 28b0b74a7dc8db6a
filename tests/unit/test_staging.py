"""
Tests for upload staging.

The property that matters most: whatever happens, the temp file is gone
once the staging context exits.
"""

import asyncio
import io

import pytest

from tubely.core.media.errors import PayloadTooLarge
from tubely.core.media.staging import StagingArea, read_limited

from fakes import DroppedConnectionStream, SlowStream, max_tick_gap, staged_leftovers


@pytest.fixture
def staging(staging_dir) -> StagingArea:
    # tiny chunks so limits trip mid-copy rather than on the first read
    return StagingArea(directory=str(staging_dir), chunk_size=4)


class TestStagingArea:
    """Tests for the temp file lifecycle."""

    def test_payload_at_limit_is_staged(self, staging):
        data = b"x" * 16

        async def scenario():
            async with staging.stage(io.BytesIO(data), size_limit=16) as staged:
                assert staged.size_bytes == 16
                with staged.open() as f:
                    assert f.read() == data

        asyncio.run(scenario())

    def test_one_byte_over_limit_fails_and_leaves_nothing(self, staging, staging_dir):
        async def scenario():
            async with staging.stage(io.BytesIO(b"x" * 17), size_limit=16):
                pytest.fail("context body should not run")

        with pytest.raises(PayloadTooLarge):
            asyncio.run(scenario())

        assert staged_leftovers(staging_dir) == []

    def test_limit_is_enforced_during_copy(self, staging):
        """The copy stops at the limit instead of draining the stream first."""
        stream = io.BytesIO(b"x" * 1000)

        async def scenario():
            async with staging.stage(stream, size_limit=8):
                pass

        with pytest.raises(PayloadTooLarge):
            asyncio.run(scenario())

        assert stream.tell() < 1000

    def test_staged_content_can_be_read_twice(self, staging):
        data = b"0123456789"

        async def scenario():
            async with staging.stage(io.BytesIO(data), size_limit=100) as staged:
                with staged.open() as first:
                    assert first.read() == data
                with staged.open() as second:
                    assert second.read() == data

        asyncio.run(scenario())

    def test_file_removed_after_success(self, staging, staging_dir):
        async def scenario():
            async with staging.stage(io.BytesIO(b"abc"), size_limit=100) as staged:
                assert staged_leftovers(staging_dir) != []
                return staged.path

        path = asyncio.run(scenario())

        assert staged_leftovers(staging_dir) == []
        assert path.startswith(str(staging_dir))

    def test_file_removed_when_later_stage_fails(self, staging, staging_dir):
        async def scenario():
            async with staging.stage(io.BytesIO(b"abc"), size_limit=100):
                raise RuntimeError("storage exploded")

        with pytest.raises(RuntimeError):
            asyncio.run(scenario())

        assert staged_leftovers(staging_dir) == []

    def test_file_removed_when_client_disconnects(self, staging, staging_dir):
        stream = DroppedConnectionStream(b"x" * 100, fail_after=8)

        async def scenario():
            async with staging.stage(stream, size_limit=1000):
                pytest.fail("context body should not run")

        with pytest.raises(ConnectionResetError):
            asyncio.run(scenario())

        assert staged_leftovers(staging_dir) == []

    def test_suffix_is_kept(self, staging):
        async def scenario():
            async with staging.stage(io.BytesIO(b"abc"), size_limit=100, suffix=".mp4") as staged:
                assert staged.path.endswith(".mp4")

        asyncio.run(scenario())

    def test_copy_does_not_block_the_event_loop(self, staging):
        """Other tasks keep running while a slow upload is copied to disk."""
        stream = SlowStream(b"x" * 40, delay_seconds=0.05)

        async def scenario():
            async def copy():
                async with staging.stage(stream, size_limit=100) as staged:
                    return staged.size_bytes

            return await max_tick_gap(copy())

        size, gap = asyncio.run(scenario())

        assert size == 40
        # ten reads at 50ms each; a blocked loop would show a ~0.5s gap
        assert gap < 0.2


class TestReadLimited:
    """Tests for in-memory reads with a ceiling."""

    def test_reads_whole_stream(self):
        assert read_limited(io.BytesIO(b"hello"), 5) == b"hello"

    def test_rejects_oversize_stream(self):
        with pytest.raises(PayloadTooLarge) as exc_info:
            read_limited(io.BytesIO(b"hello!"), 5, chunk_size=2)

        assert exc_info.value.limit_bytes == 5
