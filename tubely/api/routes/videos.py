"""
Video record and upload endpoints.

Uploads:
- POST /api/thumbnail_upload/{video_id}  (multipart field "thumbnail")
- POST /api/video_upload/{video_id}      (multipart field "video", MP4 only)

Both return the updated video record. The work is done by UploadPipeline;
this module only moves data in and out of HTTP and maps pipeline errors
to status codes.

Records:
- POST /api/videos            create a draft video owned by the caller
- GET  /api/videos            list the caller's videos
- GET  /api/videos/{video_id} fetch one video
"""

import logging
from datetime import datetime
from typing import Annotated, Optional
from uuid import UUID

from fastapi import APIRouter, File, Header, HTTPException, UploadFile, status
from pydantic import BaseModel, Field

from ...core.media.errors import (
    AuthError,
    InputError,
    PayloadTooLarge,
    RecordNotFound,
    Unauthorized,
    UploadError,
)
from ...core.media.models import MediaKind, VideoRecord
from ...core.media.pipeline import UploadRequest
from ...infrastructure.auth.jwt import get_bearer_token
from ..dependencies import CurrentUserDep, RecordStoreDep, UploadPipelineDep

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Request/Response Models
# ---------------------------------------------------------------------------

class CreateVideoRequest(BaseModel):
    """Request to create a draft video."""
    title: str = Field(default="", max_length=200, description="Video title")
    description: str = Field(default="", max_length=5000, description="Video description")


class VideoResponse(BaseModel):
    """A video record as returned to clients."""
    id: UUID
    user_id: UUID
    title: str
    description: str
    thumbnail_url: Optional[str] = None
    video_url: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_record(cls, record: VideoRecord) -> "VideoResponse":
        return cls(
            id=record.id,
            user_id=record.owner_id,
            title=record.title,
            description=record.description,
            thumbnail_url=record.thumbnail_url,
            video_url=record.video_url,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )


# ---------------------------------------------------------------------------
# Helper Functions
# ---------------------------------------------------------------------------

def http_error_for(exc: UploadError) -> HTTPException:
    """
    Translate a pipeline error into an HTTP error.

    Dependency failures get a generic message; their details are in the
    server log, not the response.
    """
    if isinstance(exc, PayloadTooLarge):
        return HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=exc.message,
        )

    if isinstance(exc, InputError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.message)

    if isinstance(exc, AuthError):
        return HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=exc.message,
            headers={"WWW-Authenticate": "Bearer"},
        )

    if isinstance(exc, RecordNotFound):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Video not found")

    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Couldn't complete upload",
    )


def _build_request(
    video_id: str,
    upload: Optional[UploadFile],
    field_name: str,
    authorization: Optional[str],
) -> UploadRequest:
    try:
        token = get_bearer_token(authorization)
    except Unauthorized as e:
        raise http_error_for(e)

    if upload is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Missing form field: {field_name}",
        )

    return UploadRequest(
        video_id=video_id,
        bearer_token=token,
        content_type=upload.content_type,
        stream=upload.file,
    )


# ---------------------------------------------------------------------------
# Upload Endpoints
# ---------------------------------------------------------------------------

@router.post(
    "/thumbnail_upload/{video_id}",
    response_model=VideoResponse,
    status_code=status.HTTP_200_OK,
    summary="Upload a thumbnail",
    description="Upload a JPEG or PNG thumbnail for a video you own",
)
async def upload_thumbnail(
    video_id: str,
    pipeline: UploadPipelineDep,
    thumbnail: Annotated[Optional[UploadFile], File(description="JPEG or PNG image")] = None,
    authorization: Annotated[Optional[str], Header()] = None,
) -> VideoResponse:
    request = _build_request(video_id, thumbnail, MediaKind.THUMBNAIL.form_field, authorization)

    try:
        result = await pipeline.upload_thumbnail(request)
    except UploadError as e:
        raise http_error_for(e)
    finally:
        if thumbnail is not None:
            await thumbnail.close()

    return VideoResponse.from_record(result.record)


@router.post(
    "/video_upload/{video_id}",
    response_model=VideoResponse,
    status_code=status.HTTP_200_OK,
    summary="Upload a video",
    description="Upload an MP4 video (up to 1 GiB) for a video you own",
)
async def upload_video(
    video_id: str,
    pipeline: UploadPipelineDep,
    video: Annotated[Optional[UploadFile], File(description="MP4 video")] = None,
    authorization: Annotated[Optional[str], Header()] = None,
) -> VideoResponse:
    request = _build_request(video_id, video, MediaKind.VIDEO.form_field, authorization)

    try:
        result = await pipeline.upload_video(request)
    except UploadError as e:
        raise http_error_for(e)
    finally:
        if video is not None:
            await video.close()

    return VideoResponse.from_record(result.record)


# ---------------------------------------------------------------------------
# Record Endpoints
# ---------------------------------------------------------------------------

@router.post(
    "/videos",
    response_model=VideoResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a video",
    description="Create an empty video record owned by the caller, ready for uploads",
)
async def create_video(
    body: CreateVideoRequest,
    user_id: CurrentUserDep,
    records: RecordStoreDep,
) -> VideoResponse:
    record = records.create(owner_id=user_id, title=body.title, description=body.description)
    return VideoResponse.from_record(record)


@router.get(
    "/videos",
    response_model=list[VideoResponse],
    summary="List your videos",
)
async def list_videos(
    user_id: CurrentUserDep,
    records: RecordStoreDep,
) -> list[VideoResponse]:
    return [VideoResponse.from_record(r) for r in records.list_for_owner(user_id)]


@router.get(
    "/videos/{video_id}",
    response_model=VideoResponse,
    summary="Get a video",
)
async def get_video(
    video_id: UUID,
    user_id: CurrentUserDep,
    records: RecordStoreDep,
) -> VideoResponse:
    try:
        record = records.get(video_id)
    except RecordNotFound:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Video not found")

    # other users' videos look the same as missing ones
    if not record.is_owned_by(user_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Video not found")

    return VideoResponse.from_record(record)
