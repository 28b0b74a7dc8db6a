"""
FastAPI application entry point.

This module creates and configures the FastAPI application.
Using an application factory pattern (create_app function) because:
- Easier to test with different configurations
- Each app instance owns its record store and thumbnail registry

For local development:
    uvicorn tubely.main:app --reload --port 8091

For production:
    gunicorn tubely.main:app -w 4 -k uvicorn.workers.UvicornWorker
"""

import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from .api.middleware import UploadSizeLimitMiddleware
from .api.routes import health, thumbnails, videos
from .config.settings import Settings, get_settings
from .infrastructure.records.repository import InMemoryVideoRecordStore
from .infrastructure.storage.client import ThumbnailRegistry

# Configure logging
logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=logging.INFO,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Log startup configuration and report missing settings."""
    settings: Settings = app.state.settings

    logger.info(
        "Tubely API starting",
        extra={
            "version": settings.api_version,
            "storage_backend": settings.storage_backend,
            "probe_mock_mode": settings.probe_mock_mode,
        }
    )

    missing_fields = settings.validate_required_fields()
    if missing_fields:
        logger.error(
            "Missing required configuration",
            extra={"missing_fields": missing_fields}
        )

    yield

    logger.info("Tubely API shutting down")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Application factory.

    Args:
        settings: Explicit settings (tests). Defaults to the cached env settings.
    """
    settings = settings or get_settings()
    logging.getLogger().setLevel(settings.log_level.upper())

    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        description="""
        Video and thumbnail upload service.

        ## Authentication

        Every endpoint except thumbnail reads and health checks requires
        `Authorization: Bearer <token>`.

        ## Workflow

        1. **Create a video**: `POST /api/videos`
        2. **Upload a thumbnail**: `POST /api/thumbnail_upload/{video_id}` (JPEG or PNG)
        3. **Upload the video**: `POST /api/video_upload/{video_id}` (MP4, up to 1 GiB)
        4. **Fetch it**: `GET /api/videos/{video_id}` returns the stored URLs
        """,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.record_store = InMemoryVideoRecordStore()
    app.state.thumbnail_registry = ThumbnailRegistry()

    # Cap raw upload bodies before multipart parsing spools them to disk
    app.add_middleware(
        UploadSizeLimitMiddleware,
        limits={
            "/api/video_upload/": settings.max_video_bytes + settings.multipart_overhead_bytes,
            "/api/thumbnail_upload/": settings.max_thumbnail_bytes + settings.multipart_overhead_bytes,
        },
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(
        health.router,
        prefix="/health",
        tags=["Health"],
    )

    app.include_router(
        videos.router,
        prefix="/api",
        tags=["Videos"],
    )

    app.include_router(
        thumbnails.router,
        prefix="/api",
        tags=["Thumbnails"],
    )

    if settings.storage_backend == "local":
        os.makedirs(settings.assets_root, exist_ok=True)
        app.mount("/assets", StaticFiles(directory=settings.assets_root), name="assets")

    @app.exception_handler(Exception)
    async def global_exception_handler(request, exc):
        """
        Catch-all exception handler.

        Keeps stack traces out of responses; the full error goes to the log.
        """
        logger.error(
            "Unhandled exception",
            extra={
                "path": request.url.path,
                "method": request.method,
                "error": str(exc),
            },
            exc_info=exc,
        )

        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error"}
        )

    logger.info(
        "FastAPI application created",
        extra={"title": settings.api_title, "storage_backend": settings.storage_backend},
    )

    return app


# Create the application instance
# This is what uvicorn/gunicorn will import
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "tubely.main:app",
        host="0.0.0.0",
        port=8091,
        reload=True,
        log_level=settings.log_level.lower(),
    )
