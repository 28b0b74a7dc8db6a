"""
Application configuration using Pydantic settings.

Configuration is loaded from environment variables with sensible defaults.
Using Pydantic's BaseSettings means we get:
- Type validation at startup (fail fast if config is wrong)
- Documentation of what's required vs optional
- Easy testing with different configurations

STORAGE_BACKEND picks where uploads go. "local" needs nothing but a
writable directory, so a fresh checkout runs without any cloud account.
"""

from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables.
    For lists (like cors_origins), use comma-separated values in env.
    """

    # API Configuration
    api_title: str = "Tubely API"
    api_version: str = "v1"
    host_url: str = Field(
        default="http://localhost:8091",
        description="Public base URL of this service. Used to build asset and thumbnail URLs."
    )

    # Identity
    jwt_secret: str = Field(
        default="",
        description="Shared HS256 secret used to validate bearer tokens."
    )
    jwt_issuer: str = Field(
        default="tubely",
        description="Expected 'iss' claim on bearer tokens."
    )

    # Storage
    storage_backend: Literal["local", "inline", "registry", "s3"] = Field(
        default="local",
        description="Where uploads are written: local assets dir, inline data URI, in-process registry, or S3."
    )
    assets_root: str = Field(
        default="./assets",
        description="Directory served at /assets. Used by the local backend."
    )
    inline_max_bytes: int = Field(
        default=10 * 1024 * 1024,
        description="Largest payload the inline backend will encode into a data URI."
    )
    s3_bucket: str = Field(
        default="",
        description="S3 bucket name for the s3 backend"
    )
    s3_region: str = Field(
        default="us-east-1",
        description="AWS region of the bucket"
    )
    s3_endpoint_url: Optional[str] = Field(
        default=None,
        description="Override endpoint for S3-compatible stores (MinIO, LocalStack)."
    )
    aws_access_key_id: Optional[str] = Field(
        default=None,
        description="AWS access key. Falls back to the default boto3 credential chain if unset."
    )
    aws_secret_access_key: Optional[str] = Field(
        default=None,
        description="AWS secret key"
    )

    # Upload limits
    max_thumbnail_bytes: int = Field(
        default=10 << 20,
        description="Thumbnails are read into memory; anything larger is rejected."
    )
    max_video_bytes: int = Field(
        default=1 << 30,
        description="Ceiling on a video upload, enforced while staging."
    )
    multipart_overhead_bytes: int = Field(
        default=64 * 1024,
        description="Allowance for multipart framing on top of the upload ceilings when capping request bodies."
    )
    staging_dir: Optional[str] = Field(
        default=None,
        description="Directory for staged uploads. Defaults to the system temp dir."
    )

    # Frame probe
    ffprobe_path: str = Field(
        default="ffprobe",
        description="Path to the ffprobe binary"
    )
    probe_timeout_seconds: float = Field(
        default=30.0,
        description="Hard limit on a single ffprobe run."
    )
    probe_mock_mode: bool = Field(
        default=False,
        description="Classify every video as 1920x1080 without running ffprobe. For local dev."
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    # CORS
    cors_origins: str = Field(
        default="http://localhost:8091",
        description="Comma-separated list of allowed CORS origins. Use * for development only."
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse comma-separated CORS origins into a list."""
        if self.cors_origins == "*":
            return ["*"]
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    def validate_required_fields(self) -> list[str]:
        """
        Validate that required fields are set for the selected backend.

        Returns list of missing required fields.
        """
        missing = []

        if not self.jwt_secret:
            missing.append("JWT_SECRET")

        if self.storage_backend == "s3":
            if not self.s3_bucket:
                missing.append("S3_BUCKET")
            if not self.s3_region:
                missing.append("S3_REGION")

        return missing


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Using lru_cache means we only load settings once per process.
    For tests, build a Settings directly and pass it to create_app.
    """
    return Settings()
