"""
Object storage integration for uploaded media.

One write contract, four interchangeable backends selected by configuration.
"""

from .client import (
    EphemeralRegistryStorage,
    InlineDataURIStorage,
    LocalStaticStorage,
    S3Config,
    S3StorageBackend,
    StorageBackend,
    ThumbnailRegistry,
    create_storage_backend,
)

__all__ = [
    "EphemeralRegistryStorage",
    "InlineDataURIStorage",
    "LocalStaticStorage",
    "S3Config",
    "S3StorageBackend",
    "StorageBackend",
    "ThumbnailRegistry",
    "create_storage_backend",
]
