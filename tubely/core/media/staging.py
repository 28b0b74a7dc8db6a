"""
Temporary staging for inbound streams.

Videos are too big to hold in memory, and the probe needs a file path
anyway, so the upload is copied to a temp file first. The same file is then
read a second time for the storage write.

The copy enforces the size ceiling while it runs: we stop reading the
moment the limit is crossed instead of buffering the whole body first.
The copy itself runs in a worker thread so the event loop keeps serving
other requests while a large upload lands on disk.
"""

import asyncio
import logging
import os
import tempfile
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, BinaryIO, Optional

from .errors import PayloadTooLarge

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024


@dataclass(frozen=True)
class StagedFile:
    """A staged upload on local disk. Valid only inside its staging context."""
    path: str
    size_bytes: int

    def open(self) -> BinaryIO:
        """Open the staged content for reading from offset 0."""
        return open(self.path, "rb")


def read_limited(stream: BinaryIO, size_limit: int, chunk_size: int = CHUNK_SIZE) -> bytes:
    """
    Read a whole stream into memory, failing once it passes size_limit.

    Used for thumbnails, which are small enough to keep in memory.
    """
    buffer = bytearray()
    while True:
        chunk = stream.read(chunk_size)
        if not chunk:
            break
        buffer.extend(chunk)
        if len(buffer) > size_limit:
            raise PayloadTooLarge(size_limit)
    return bytes(buffer)


class StagingArea:
    """
    Creates request-scoped temp files.

    Args:
        directory: Where temp files go. None uses the system temp dir.
        prefix: Temp file name prefix, handy when cleaning up by hand.
    """

    def __init__(
        self,
        directory: Optional[str] = None,
        prefix: str = "tubely-upload-",
        chunk_size: int = CHUNK_SIZE,
    ) -> None:
        self._directory = directory
        self._prefix = prefix
        self._chunk_size = chunk_size

    @asynccontextmanager
    async def stage(
        self,
        stream: BinaryIO,
        size_limit: int,
        suffix: str = "",
    ) -> AsyncIterator[StagedFile]:
        """
        Copy stream to a temp file and yield a handle to it.

        The temp file is removed when the context exits, whatever the
        reason: a successful upload, an oversize payload, a read error
        from a dropped connection, or an exception from whatever the
        caller runs inside the async with block.
        """
        if self._directory:
            os.makedirs(self._directory, exist_ok=True)

        fd, path = tempfile.mkstemp(
            prefix=self._prefix,
            suffix=suffix,
            dir=self._directory,
        )

        try:
            size = await asyncio.to_thread(self._copy, stream, fd, size_limit)

            logger.debug(
                "Staged upload",
                extra={"path": path, "size_bytes": size},
            )

            yield StagedFile(path=path, size_bytes=size)

        finally:
            try:
                os.unlink(path)
            except FileNotFoundError:
                pass

    def _copy(self, stream: BinaryIO, fd: int, size_limit: int) -> int:
        written = 0
        with os.fdopen(fd, "wb") as out:
            while True:
                chunk = stream.read(self._chunk_size)
                if not chunk:
                    break
                written += len(chunk)
                if written > size_limit:
                    logger.warning(
                        "Upload exceeded staging limit",
                        extra={"limit_bytes": size_limit},
                    )
                    raise PayloadTooLarge(size_limit)
                out.write(chunk)
        return written
