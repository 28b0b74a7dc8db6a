"""
Error taxonomy for the upload pipeline.

Three families, each mapped to one class of HTTP response by the API layer:
- InputError: the request itself is bad (4xx)
- AuthError: the caller can't act on this video (401)
- DependencyError: something we depend on failed (500)

Every error carries the pipeline phase it was raised in. The pipeline
fills it in if the raising component didn't.
"""

from typing import Optional


class UploadError(Exception):
    """Base class for every failure the upload pipeline reports."""

    def __init__(self, message: str, phase: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.phase = phase


class InputError(UploadError):
    pass


class InvalidVideoID(InputError):
    pass


class UnsupportedMediaType(InputError):
    pass


class PayloadTooLarge(InputError):
    """Raised as soon as an inbound payload exceeds its ceiling."""

    def __init__(self, limit_bytes: int, phase: Optional[str] = None) -> None:
        super().__init__(f"Payload exceeds {limit_bytes} bytes", phase=phase)
        self.limit_bytes = limit_bytes


class AuthError(UploadError):
    pass


class Unauthorized(AuthError):
    pass


class DependencyError(UploadError):
    pass


class ProbeFailure(DependencyError):
    """The frame probe exited non-zero, timed out, or printed garbage."""
    pass


class NoStreamFound(ProbeFailure):
    """The probe ran fine but reported zero media streams."""
    pass


class StorageWriteError(DependencyError):
    pass


class RecordNotFound(DependencyError):
    pass


class RecordUpdateError(DependencyError):
    pass


class RandomSourceUnavailable(DependencyError):
    pass
