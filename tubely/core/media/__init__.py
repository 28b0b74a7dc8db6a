"""
Media ingestion logic.

Contains the upload pipeline, its domain models and errors, and the
key, staging and orientation rules it's built from.
"""

from .errors import (
    AuthError,
    DependencyError,
    InputError,
    InvalidVideoID,
    NoStreamFound,
    PayloadTooLarge,
    ProbeFailure,
    RandomSourceUnavailable,
    RecordNotFound,
    RecordUpdateError,
    StorageWriteError,
    Unauthorized,
    UnsupportedMediaType,
    UploadError,
)
from .keys import KeyGenerator
from .models import MediaAsset, MediaKind, Orientation, VideoRecord
from .orientation import classify_dimensions
from .pipeline import (
    PipelinePhase,
    UploadLimits,
    UploadPipeline,
    UploadRequest,
    UploadResult,
)
from .staging import StagedFile, StagingArea

__all__ = [
    "AuthError",
    "DependencyError",
    "InputError",
    "InvalidVideoID",
    "NoStreamFound",
    "PayloadTooLarge",
    "ProbeFailure",
    "RandomSourceUnavailable",
    "RecordNotFound",
    "RecordUpdateError",
    "StorageWriteError",
    "Unauthorized",
    "UnsupportedMediaType",
    "UploadError",
    "KeyGenerator",
    "MediaAsset",
    "MediaKind",
    "Orientation",
    "VideoRecord",
    "classify_dimensions",
    "PipelinePhase",
    "UploadLimits",
    "UploadPipeline",
    "UploadRequest",
    "UploadResult",
    "StagedFile",
    "StagingArea",
]
