"""
Storage backends for uploaded media.

Every backend implements the same write contract: store a named object with
its content type and hand back a URL the client can resolve. The pipeline
never knows which one is active; STORAGE_BACKEND picks it at startup.

Backends:
- LocalStaticStorage: files under the served assets root (local dev)
- InlineDataURIStorage: the payload itself, as a data: URI (no store at all)
- EphemeralRegistryStorage: an in-process map served by the API (demo; lost on restart)
- S3StorageBackend: an S3 bucket via boto3 (production)
"""

import asyncio
import base64
import logging
import os
import shutil
import threading
from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from ...core.media.errors import PayloadTooLarge, StorageWriteError
from ...core.media.pipeline import Payload, StorageBackend

logger = logging.getLogger(__name__)


def _read_payload(data: Payload) -> bytes:
    if isinstance(data, (bytes, bytearray)):
        return bytes(data)
    return data.read()


def _write_file(path: str, data: Payload) -> None:
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, "wb") as out:
        if isinstance(data, (bytes, bytearray)):
            out.write(data)
        else:
            shutil.copyfileobj(data, out)


@dataclass
class S3Config:
    """
    Configuration for S3 storage.

    endpoint_url is only set for S3-compatible stores (MinIO, R2) in
    development; public URLs always use the AWS virtual-hosted form.
    """
    bucket_name: str
    region: str
    access_key_id: Optional[str] = None
    secret_access_key: Optional[str] = None
    endpoint_url: Optional[str] = None


class LocalStaticStorage:
    """
    Writes objects under the directory served at /assets.

    Namespaced keys ("landscape/abc.mp4") become subdirectories.
    """

    def __init__(self, assets_root: str, base_url: str) -> None:
        self._root = os.path.abspath(assets_root)
        self._base_url = base_url.rstrip("/")
        os.makedirs(self._root, exist_ok=True)
        logger.info("Initialized local static storage", extra={"assets_root": self._root})

    def path_for(self, key: str) -> str:
        path = os.path.abspath(os.path.join(self._root, key))
        if os.path.commonpath([self._root, path]) != self._root:
            raise StorageWriteError(f"Key escapes assets root: {key}")
        return path

    async def write(
        self,
        key: str,
        content_type: str,
        data: Payload,
        *,
        video_id: UUID,
    ) -> str:
        path = self.path_for(key)

        try:
            await asyncio.to_thread(_write_file, path, data)
        except OSError as e:
            logger.error(
                "Failed to write asset",
                extra={"video_id": str(video_id), "key": key, "error": str(e)},
            )
            raise StorageWriteError(f"Asset write failed: {e}") from e

        logger.debug(
            "Wrote asset",
            extra={"video_id": str(video_id), "key": key, "content_type": content_type},
        )

        return f"{self._base_url}/assets/{key}"


class InlineDataURIStorage:
    """
    Stores nothing; the URL carries the whole payload base64-encoded.

    Data URIs end up inside the video record, so the payload is capped.
    """

    def __init__(self, max_bytes: int) -> None:
        self._max_bytes = max_bytes

    async def write(
        self,
        key: str,
        content_type: str,
        data: Payload,
        *,
        video_id: UUID,
    ) -> str:
        try:
            payload = _read_payload(data)
        except OSError as e:
            raise StorageWriteError(f"Could not read payload: {e}") from e

        if len(payload) > self._max_bytes:
            raise PayloadTooLarge(self._max_bytes)

        encoded = base64.b64encode(payload).decode("ascii")
        return f"data:{content_type};base64,{encoded}"


@dataclass(frozen=True)
class RegistryEntry:
    content_type: str
    data: bytes


class ThumbnailRegistry:
    """
    Lock-guarded in-memory map of video id to thumbnail.

    Owned by the application instance and injected wherever it's needed,
    so each app (and each test) gets its own.
    """

    def __init__(self) -> None:
        self._entries: dict[UUID, RegistryEntry] = {}
        self._lock = threading.Lock()

    def put(self, video_id: UUID, content_type: str, data: bytes) -> None:
        with self._lock:
            self._entries[video_id] = RegistryEntry(content_type=content_type, data=data)

    def get(self, video_id: UUID) -> Optional[RegistryEntry]:
        with self._lock:
            return self._entries.get(video_id)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class EphemeralRegistryStorage:
    """Holds payloads in a ThumbnailRegistry and serves them through the API."""

    def __init__(self, registry: ThumbnailRegistry, base_url: str) -> None:
        self._registry = registry
        self._base_url = base_url.rstrip("/")

    async def write(
        self,
        key: str,
        content_type: str,
        data: Payload,
        *,
        video_id: UUID,
    ) -> str:
        try:
            payload = _read_payload(data)
        except OSError as e:
            raise StorageWriteError(f"Could not read payload: {e}") from e

        self._registry.put(video_id, content_type, payload)

        logger.debug(
            "Stored payload in registry",
            extra={"video_id": str(video_id), "size_bytes": len(payload)},
        )

        return f"{self._base_url}/api/thumbnails/{video_id}"


class S3StorageBackend:
    """
    Amazon S3 storage client.

    Uses boto3's put_object with the staged file as the body, so large
    videos stream from disk instead of being loaded into memory.

    boto3 is synchronous, so put_object runs in a worker thread.
    """

    def __init__(self, config: S3Config, s3_client=None) -> None:
        """
        Initialize the S3 client.

        boto3 is imported here (not at module level) so the local and
        in-memory backends work without it. Pass s3_client to reuse an
        existing client.
        """
        self._config = config

        if s3_client is None:
            try:
                import boto3
            except ImportError:
                raise ImportError(
                    "boto3 is required for S3 storage. Install with: pip install boto3"
                )

            s3_client = boto3.client(
                "s3",
                region_name=config.region,
                endpoint_url=config.endpoint_url,
                aws_access_key_id=config.access_key_id,
                aws_secret_access_key=config.secret_access_key,
            )

        self._s3_client = s3_client

        logger.info(
            "Initialized S3 storage client",
            extra={"bucket": config.bucket_name, "region": config.region},
        )

    def url_for(self, key: str) -> str:
        return f"https://{self._config.bucket_name}.s3.{self._config.region}.amazonaws.com/{key}"

    async def write(
        self,
        key: str,
        content_type: str,
        data: Payload,
        *,
        video_id: UUID,
    ) -> str:
        try:
            await asyncio.to_thread(
                self._s3_client.put_object,
                Bucket=self._config.bucket_name,
                Key=key,
                Body=data,
                ContentType=content_type,
                Metadata={"video-id": str(video_id)},
            )
        except Exception as e:
            logger.error(
                "Failed to upload object",
                extra={"video_id": str(video_id), "key": key, "error": str(e)},
            )
            raise StorageWriteError(f"Upload failed: {e}") from e

        logger.info(
            "Uploaded object",
            extra={"video_id": str(video_id), "bucket": self._config.bucket_name, "key": key},
        )

        return self.url_for(key)


# ---------------------------------------------------------------------------
# Factory Function
# ---------------------------------------------------------------------------

BACKENDS = ("local", "inline", "registry", "s3")


def create_storage_backend(
    backend: str,
    *,
    base_url: str = "http://localhost:8091",
    assets_root: str = "./assets",
    inline_max_bytes: int = 10 * 1024 * 1024,
    registry: Optional[ThumbnailRegistry] = None,
    s3_config: Optional[S3Config] = None,
) -> StorageBackend:
    """
    Create the configured storage backend.

    Args:
        backend: One of "local", "inline", "registry", "s3"
        registry: Shared registry (required for "registry")
        s3_config: Bucket configuration (required for "s3")
    """
    if backend == "local":
        return LocalStaticStorage(assets_root=assets_root, base_url=base_url)

    if backend == "inline":
        return InlineDataURIStorage(max_bytes=inline_max_bytes)

    if backend == "registry":
        if registry is None:
            raise ValueError("registry is required for the registry backend")
        return EphemeralRegistryStorage(registry=registry, base_url=base_url)

    if backend == "s3":
        if s3_config is None:
            raise ValueError("s3_config is required for the s3 backend")
        return S3StorageBackend(s3_config)

    raise ValueError(f"Unknown storage backend: {backend!r}. Expected one of {BACKENDS}")
