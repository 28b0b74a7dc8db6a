"""
Thumbnail serving for the in-process registry backend.

When STORAGE_BACKEND=registry, thumbnail URLs point here. Other backends
never produce URLs under this path, so it simply 404s for them.
"""

import logging
from uuid import UUID

from fastapi import APIRouter, HTTPException, Response, status

from ..dependencies import ThumbnailRegistryDep

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "/thumbnails/{video_id}",
    summary="Get a thumbnail",
    description="Serve a thumbnail held in the in-process registry",
    responses={200: {"content": {"image/jpeg": {}, "image/png": {}}}},
)
async def get_thumbnail(video_id: UUID, registry: ThumbnailRegistryDep) -> Response:
    entry = registry.get(video_id)
    if entry is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Thumbnail not found")

    return Response(content=entry.data, media_type=entry.content_type)
