"""
Health check endpoints.

We provide two endpoints:
- /health: Basic liveness check (is the process running?)
- /health/ready: Readiness check (can we serve uploads?)

Readiness checks configuration, that the selected storage backend can be
built, and that ffprobe is on the path (unless probe mock mode is on).
"""

import logging
import shutil
from typing import Any

from fastapi import APIRouter, Response, status
from pydantic import BaseModel

from ... import __version__
from ..dependencies import SettingsDep, ThumbnailRegistryDep, get_storage_backend

logger = logging.getLogger(__name__)

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    version: str
    details: dict[str, Any] = {}


class ReadinessCheck(BaseModel):
    """Individual readiness check result."""
    name: str
    status: str  # "ok" or "error"
    error: str | None = None


class ReadinessResponse(BaseModel):
    """Readiness check response with details."""
    status: str  # "ready" or "not_ready"
    version: str
    checks: list[ReadinessCheck]


@router.get(
    "",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Basic health check",
    description="Returns 200 if the service is running. Does not check dependencies.",
)
async def health_check(settings: SettingsDep) -> HealthResponse:
    return HealthResponse(
        status="ok",
        version=__version__,
        details={
            "storage_backend": settings.storage_backend,
            "probe_mock_mode": settings.probe_mock_mode,
        },
    )


@router.get(
    "/ready",
    response_model=ReadinessResponse,
    status_code=status.HTTP_200_OK,
    summary="Readiness check",
    description="Returns 200 if the service can handle uploads, 503 otherwise.",
    responses={
        503: {
            "description": "Service not ready",
            "model": ReadinessResponse,
        }
    },
)
async def readiness_check(
    response: Response,
    settings: SettingsDep,
    registry: ThumbnailRegistryDep,
) -> ReadinessResponse:
    checks: list[ReadinessCheck] = []

    missing_fields = settings.validate_required_fields()
    if missing_fields:
        checks.append(ReadinessCheck(
            name="configuration",
            status="error",
            error=f"Missing required fields: {', '.join(missing_fields)}"
        ))
    else:
        checks.append(ReadinessCheck(name="configuration", status="ok"))

    try:
        get_storage_backend(settings, registry)
        checks.append(ReadinessCheck(name="storage", status="ok"))
    except Exception as e:
        logger.error("Storage health check failed", extra={"error": str(e)})
        checks.append(ReadinessCheck(name="storage", status="error", error=str(e)))

    if settings.probe_mock_mode:
        checks.append(ReadinessCheck(name="ffprobe", status="ok", error="mock mode"))
    elif shutil.which(settings.ffprobe_path) is None:
        checks.append(ReadinessCheck(
            name="ffprobe",
            status="error",
            error=f"{settings.ffprobe_path} not found on PATH"
        ))
    else:
        checks.append(ReadinessCheck(name="ffprobe", status="ok"))

    all_ok = all(c.status == "ok" for c in checks)
    if not all_ok:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        logger.warning(
            "Readiness check failed",
            extra={
                "checks": [
                    {"name": c.name, "status": c.status, "error": c.error}
                    for c in checks
                ]
            }
        )

    return ReadinessResponse(
        status="ready" if all_ok else "not_ready",
        version=__version__,
        checks=checks,
    )
