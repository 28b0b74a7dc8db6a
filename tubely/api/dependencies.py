"""
FastAPI dependency injection.

Dependencies provide instances of services, clients, and configuration
to route handlers. Using dependency injection means:
- Routes don't instantiate their own dependencies (easier to test)
- Dependencies can be overridden in tests
- Configuration is centralized

Long-lived shared objects (settings, the record store, the thumbnail
registry) live on app.state and are created by create_app, so every app
instance has its own. Everything else is built per request.
"""

import logging
from typing import Annotated, Optional
from uuid import UUID

from fastapi import Depends, Header, HTTPException, Request, status

from ..config.settings import Settings
from ..core.media.errors import Unauthorized
from ..core.media.keys import KeyGenerator
from ..core.media.pipeline import (
    IdentityExchange,
    ProbeClassifier,
    StorageBackend,
    UploadLimits,
    UploadPipeline,
)
from ..core.media.staging import StagingArea
from ..infrastructure.auth.jwt import JWTIdentityExchange, get_bearer_token
from ..infrastructure.probe.classifier import create_probe_classifier
from ..infrastructure.records.repository import InMemoryVideoRecordStore
from ..infrastructure.storage.client import (
    S3Config,
    ThumbnailRegistry,
    create_storage_backend,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Application State
# ---------------------------------------------------------------------------

def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_record_store(request: Request) -> InMemoryVideoRecordStore:
    return request.app.state.record_store


def get_thumbnail_registry(request: Request) -> ThumbnailRegistry:
    return request.app.state.thumbnail_registry


SettingsDep = Annotated[Settings, Depends(get_app_settings)]
RecordStoreDep = Annotated[InMemoryVideoRecordStore, Depends(get_record_store)]
ThumbnailRegistryDep = Annotated[ThumbnailRegistry, Depends(get_thumbnail_registry)]


# ---------------------------------------------------------------------------
# Authentication
# ---------------------------------------------------------------------------

def get_identity_exchange(settings: SettingsDep) -> IdentityExchange:
    return JWTIdentityExchange(secret_key=settings.jwt_secret, issuer=settings.jwt_issuer)


IdentityExchangeDep = Annotated[IdentityExchange, Depends(get_identity_exchange)]


async def get_current_user_id(
    identity: IdentityExchangeDep,
    authorization: Annotated[Optional[str], Header()] = None,
) -> UUID:
    """
    Resolve the caller from the Authorization header.

    Raises 401 if the header is missing or the token doesn't validate.
    """
    try:
        return identity.exchange(get_bearer_token(authorization))
    except Unauthorized as e:
        logger.warning("Rejected request credentials", extra={"reason": e.message})
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Couldn't validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )


CurrentUserDep = Annotated[UUID, Depends(get_current_user_id)]


# ---------------------------------------------------------------------------
# Service Dependencies
# ---------------------------------------------------------------------------

def get_storage_backend(
    settings: SettingsDep,
    registry: ThumbnailRegistryDep,
) -> StorageBackend:
    """
    Provide the configured storage backend.

    The registry backend shares the app's ThumbnailRegistry so that
    thumbnails written by one request can be served by the next.
    """
    s3_config = None
    if settings.storage_backend == "s3":
        s3_config = S3Config(
            bucket_name=settings.s3_bucket,
            region=settings.s3_region,
            access_key_id=settings.aws_access_key_id,
            secret_access_key=settings.aws_secret_access_key,
            endpoint_url=settings.s3_endpoint_url,
        )

    return create_storage_backend(
        settings.storage_backend,
        base_url=settings.host_url,
        assets_root=settings.assets_root,
        inline_max_bytes=settings.inline_max_bytes,
        registry=registry,
        s3_config=s3_config,
    )


def get_probe_classifier(settings: SettingsDep) -> ProbeClassifier:
    return create_probe_classifier(
        ffprobe_path=settings.ffprobe_path,
        timeout_seconds=settings.probe_timeout_seconds,
        mock_mode=settings.probe_mock_mode,
    )


StorageBackendDep = Annotated[StorageBackend, Depends(get_storage_backend)]
ProbeClassifierDep = Annotated[ProbeClassifier, Depends(get_probe_classifier)]


def get_upload_pipeline(
    settings: SettingsDep,
    identity: IdentityExchangeDep,
    records: RecordStoreDep,
    storage: StorageBackendDep,
    probe: ProbeClassifierDep,
) -> UploadPipeline:
    return UploadPipeline(
        identity=identity,
        records=records,
        storage=storage,
        probe=probe,
        keys=KeyGenerator(),
        staging=StagingArea(directory=settings.staging_dir),
        limits=UploadLimits(
            max_thumbnail_bytes=settings.max_thumbnail_bytes,
            max_video_bytes=settings.max_video_bytes,
        ),
    )


UploadPipelineDep = Annotated[UploadPipeline, Depends(get_upload_pipeline)]
