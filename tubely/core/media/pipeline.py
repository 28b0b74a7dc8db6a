"""
The upload-and-classify pipeline.

One call handles one upload end to end:

    RECEIVED -> AUTHORIZED -> VALIDATED -> STAGED -> CLASSIFIED -> STORED -> RECORDED -> DONE

STAGED and CLASSIFIED only apply to videos; thumbnails are small enough to
read into memory and aren't probed. Any step can fail, and the error that
escapes carries the phase it failed in.

Collaborators are protocols defined here so the pipeline stays free of
FastAPI, boto3 and ffprobe. Infrastructure modules implement them.
"""

import asyncio
import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import BinaryIO, Optional, Protocol, Union
from uuid import UUID

from .errors import (
    DependencyError,
    InvalidVideoID,
    RecordUpdateError,
    Unauthorized,
    UnsupportedMediaType,
    UploadError,
)
from .keys import KeyGenerator
from .models import MediaAsset, MediaKind, Orientation, VideoRecord
from .staging import StagingArea, read_limited

logger = logging.getLogger(__name__)

Payload = Union[bytes, BinaryIO]

THUMBNAIL_MEMORY_LIMIT = 10 << 20
VIDEO_SIZE_LIMIT = 1 << 30


# ---------------------------------------------------------------------------
# Collaborator Protocols
# ---------------------------------------------------------------------------

class IdentityExchange(Protocol):
    """Turns a bearer credential into the caller's user id."""

    def exchange(self, bearer_token: Optional[str]) -> UUID:
        """Return the caller's user id or raise Unauthorized."""
        ...


class VideoRecordStore(Protocol):
    """The record store the pipeline reads ownership from and writes URLs to."""

    def get(self, video_id: UUID) -> VideoRecord:
        """Load a record. Raises RecordNotFound if it doesn't exist."""
        ...

    def update(self, record: VideoRecord) -> None:
        """Persist a record. Raises RecordUpdateError on failure."""
        ...


class ProbeClassifier(Protocol):
    """Classifies the orientation of a video file on disk."""

    async def classify(self, path: str) -> Orientation:
        """Classify the video at path. Never modifies the file."""
        ...


class StorageBackend(Protocol):
    """Stores a named object and returns a URL that resolves to it."""

    async def write(
        self,
        key: str,
        content_type: str,
        data: Payload,
        *,
        video_id: UUID,
    ) -> str:
        """Store data under key. Raises StorageWriteError on failure."""
        ...


# ---------------------------------------------------------------------------
# Pipeline Types
# ---------------------------------------------------------------------------

class PipelinePhase(Enum):
    RECEIVED = "received"
    AUTHORIZED = "authorized"
    VALIDATED = "validated"
    STAGED = "staged"
    CLASSIFIED = "classified"
    STORED = "stored"
    RECORDED = "recorded"
    DONE = "done"
    FAILED = "failed"


@dataclass
class UploadLimits:
    """Size ceilings, in bytes."""
    max_thumbnail_bytes: int = THUMBNAIL_MEMORY_LIMIT
    max_video_bytes: int = VIDEO_SIZE_LIMIT


@dataclass
class UploadRequest:
    """
    One inbound upload, as handed over by the HTTP layer.

    video_id and content_type are raw strings; parsing them is part of
    the pipeline so the rejections are consistent whatever the transport.
    """
    video_id: str
    bearer_token: Optional[str]
    content_type: Optional[str]
    stream: BinaryIO


@dataclass(frozen=True)
class UploadResult:
    record: VideoRecord
    asset: MediaAsset
    url: str


@dataclass
class _UploadState:
    """Tracks where a single upload has got to, for failure reporting."""
    kind: MediaKind
    phase: PipelinePhase = PipelinePhase.RECEIVED
    video_id: Optional[UUID] = None
    caller_id: Optional[UUID] = None

    def entering(self, phase: PipelinePhase) -> None:
        self.phase = phase

    def log_extra(self) -> dict:
        return {
            "kind": self.kind.value,
            "video_id": str(self.video_id) if self.video_id else None,
            "caller_id": str(self.caller_id) if self.caller_id else None,
            "phase": self.phase.value,
        }


def parse_video_id(raw: str) -> UUID:
    try:
        return UUID(str(raw))
    except ValueError:
        raise InvalidVideoID(f"Invalid video id: {raw!r}")


def parse_media_type(header: Optional[str]) -> str:
    """
    Reduce a Content-Type header to its lower-cased "type/subtype".

    Parameters such as charset are dropped.
    """
    if not header:
        raise UnsupportedMediaType("Missing content type")

    media_type = header.split(";", 1)[0].strip().lower()
    main, sep, sub = media_type.partition("/")
    if not sep or not main or not sub or "/" in sub or " " in media_type:
        raise UnsupportedMediaType(f"Unparseable content type: {header!r}")

    return media_type


def validate_media_type(kind: MediaKind, header: Optional[str]) -> str:
    media_type = parse_media_type(header)
    if media_type not in kind.allowed_media_types:
        raise UnsupportedMediaType(
            f"Unsupported {kind.value} type: {media_type}. "
            f"Use {', '.join(sorted(kind.allowed_media_types))}."
        )
    return media_type


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------

class UploadPipeline:
    """
    Orchestrates a thumbnail or video upload.

    Stateless between calls; build one per request or share one, it
    doesn't matter. Nothing is retried: a failure aborts the upload and
    the caller retries the whole thing. Object writes overwrite, so a
    retry after a failed record update is safe.
    """

    def __init__(
        self,
        identity: IdentityExchange,
        records: VideoRecordStore,
        storage: StorageBackend,
        probe: ProbeClassifier,
        keys: Optional[KeyGenerator] = None,
        staging: Optional[StagingArea] = None,
        limits: Optional[UploadLimits] = None,
    ) -> None:
        self._identity = identity
        self._records = records
        self._storage = storage
        self._probe = probe
        self._keys = keys or KeyGenerator()
        self._staging = staging or StagingArea()
        self._limits = limits or UploadLimits()

    async def upload_thumbnail(self, request: UploadRequest) -> UploadResult:
        return await self._run(MediaKind.THUMBNAIL, request)

    async def upload_video(self, request: UploadRequest) -> UploadResult:
        return await self._run(MediaKind.VIDEO, request)

    async def _run(self, kind: MediaKind, request: UploadRequest) -> UploadResult:
        state = _UploadState(kind=kind)

        try:
            result = await self._execute(state, request)
        except UploadError as e:
            if e.phase is None:
                e.phase = state.phase.value

            log = logger.error if isinstance(e, DependencyError) else logger.warning
            log(
                "Upload failed",
                extra={**state.log_extra(), "error_type": type(e).__name__, "error": e.message},
            )
            state.entering(PipelinePhase.FAILED)
            raise
        except Exception:
            logger.exception("Upload failed unexpectedly", extra=state.log_extra())
            state.entering(PipelinePhase.FAILED)
            raise

        state.entering(PipelinePhase.DONE)
        logger.info(
            "Upload complete",
            extra={
                **state.log_extra(),
                "object_key": result.asset.object_key,
                "orientation": result.asset.orientation.value,
                "size_bytes": result.asset.size_bytes,
            },
        )
        return result

    async def _execute(self, state: _UploadState, request: UploadRequest) -> UploadResult:
        state.video_id = parse_video_id(request.video_id)

        state.entering(PipelinePhase.AUTHORIZED)
        record = self._authorize(state, request.bearer_token)

        state.entering(PipelinePhase.VALIDATED)
        media_type = validate_media_type(state.kind, request.content_type)
        extension = media_type.split("/")[1]

        if state.kind is MediaKind.THUMBNAIL:
            asset, url = await self._store_thumbnail(state, request.stream, media_type, extension)
        else:
            asset, url = await self._store_video(state, request.stream, media_type, extension)

        state.entering(PipelinePhase.RECORDED)
        if state.kind is MediaKind.THUMBNAIL:
            updated = replace(record, thumbnail_url=url)
        else:
            updated = replace(record, video_url=url)
        try:
            self._records.update(updated)
        except UploadError:
            raise
        except Exception as e:
            raise RecordUpdateError(f"Record update failed: {e}") from e

        return UploadResult(record=updated, asset=asset, url=url)

    def _authorize(self, state: _UploadState, bearer_token: Optional[str]) -> VideoRecord:
        state.caller_id = self._identity.exchange(bearer_token)

        try:
            record = self._records.get(state.video_id)
        except UploadError:
            raise
        except Exception as e:
            raise DependencyError(f"Record lookup failed: {e}") from e

        if not record.is_owned_by(state.caller_id):
            raise Unauthorized("Caller does not own this video")

        logger.info("Upload authorized", extra=state.log_extra())
        return record

    async def _store_thumbnail(
        self,
        state: _UploadState,
        stream: BinaryIO,
        media_type: str,
        extension: str,
    ) -> tuple[MediaAsset, str]:
        # thumbnails stay in memory; the ceiling is checked as we read
        data = await asyncio.to_thread(read_limited, stream, self._limits.max_thumbnail_bytes)

        state.entering(PipelinePhase.STORED)
        key = f"{self._keys.generate()}.{extension}"
        url = await self._storage.write(key, media_type, data, video_id=state.video_id)

        asset = MediaAsset(
            owner_id=state.caller_id,
            content_type=media_type,
            orientation=Orientation.UNCLASSIFIED,
            object_key=key,
            size_bytes=len(data),
        )
        return asset, url

    async def _store_video(
        self,
        state: _UploadState,
        stream: BinaryIO,
        media_type: str,
        extension: str,
    ) -> tuple[MediaAsset, str]:
        state.entering(PipelinePhase.STAGED)
        async with self._staging.stage(
            stream,
            self._limits.max_video_bytes,
            suffix=f".{extension}",
        ) as staged:
            state.entering(PipelinePhase.CLASSIFIED)
            orientation = await self._probe.classify(staged.path)

            state.entering(PipelinePhase.STORED)
            key = f"{self._keys.generate(orientation.value)}.{extension}"
            with staged.open() as body:
                url = await self._storage.write(key, media_type, body, video_id=state.video_id)

            asset = MediaAsset(
                owner_id=state.caller_id,
                content_type=media_type,
                orientation=orientation,
                object_key=key,
                size_bytes=staged.size_bytes,
            )

        return asset, url
