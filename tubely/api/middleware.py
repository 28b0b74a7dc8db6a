"""
Request body size guard for the upload endpoints.

Multipart bodies are parsed (and spooled to disk) before a route handler
runs, so the per-kind ceilings have to be applied to the raw request as
well. A declared Content-Length over the cap is refused before anything is
read; bodies without one (or lying about it) are counted as they stream in
and cut off once they pass the cap.
"""

import logging
from typing import Optional

from fastapi import HTTPException, status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class UploadSizeLimitMiddleware:
    """
    ASGI middleware capping request bodies by path prefix.

    Args:
        app: The wrapped ASGI app.
        limits: Path prefix to maximum body size in bytes. The first
            matching prefix wins; other paths pass through untouched.
    """

    def __init__(self, app, limits: dict[str, int]) -> None:
        self.app = app
        self.limits = limits

    def limit_for(self, path: str) -> Optional[int]:
        for prefix, limit in self.limits.items():
            if path.startswith(prefix):
                return limit
        return None

    async def __call__(self, scope, receive, send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        limit = self.limit_for(scope["path"])
        if limit is None:
            await self.app(scope, receive, send)
            return

        declared = _content_length(scope)
        if declared is not None and declared > limit:
            logger.warning(
                "Rejected oversize upload",
                extra={"path": scope["path"], "content_length": declared, "limit_bytes": limit},
            )
            response = JSONResponse(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                content={"detail": f"Request body exceeds {limit} bytes"},
            )
            await response(scope, receive, send)
            return

        received = 0

        async def limited_receive():
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > limit:
                    logger.warning(
                        "Upload body exceeded limit while streaming",
                        extra={"path": scope["path"], "limit_bytes": limit},
                    )
                    raise HTTPException(
                        status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                        detail=f"Request body exceeds {limit} bytes",
                    )
            return message

        await self.app(scope, limited_receive, send)


def _content_length(scope) -> Optional[int]:
    for name, value in scope.get("headers", []):
        if name == b"content-length":
            try:
                return int(value)
            except ValueError:
                return None
    return None
