"""
Infrastructure layer - external service integrations.

Each subdirectory wraps an external dependency:
- storage: Where uploaded objects go (local disk, data URI, registry, S3)
- probe: ffprobe frame inspection
- auth: Bearer token validation
- records: Video record store
"""
