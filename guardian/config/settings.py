"""
Environment-driven configuration for the Guardian API.

Every field maps to an upper-case environment variable (or a line in
`.env`). Each external collaborator has its own `*_MOCK_MODE` switch so the
service can run on a laptop with no credentials at all.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Process-wide settings. `cors_origins` is a comma-separated string."""

    # OpenAPI metadata
    api_title: str = "Guardian Misinformation Analysis API"
    api_version: str = "v1"

    # Model
    anthropic_api_key: str = Field(
        default="",
        description="Anthropic API key; unused when ANTHROPIC_MOCK_MODE is on."
    )
    anthropic_model: str = Field(
        default="claude-sonnet-4-20250514",
        description="Claude model used for text, image and video analysis."
    )
    anthropic_max_tokens: int = Field(
        default=1024,
        description="Max tokens for Claude responses. A verdict object is short."
    )
    anthropic_temperature: float = Field(
        default=0.0,
        description="Temperature for Claude. Verdicts should be reproducible."
    )
    anthropic_timeout_seconds: float = Field(
        default=120.0,
        description="Request timeout for a single model call. No retries are made."
    )
    anthropic_mock_mode: bool = Field(
        default=False,
        description="Return a canned verdict instead of calling Claude."
    )

    # Document store
    snowflake_account: str = Field(
        default="",
        description="Account locator, e.g. xy12345.eu-west-1"
    )
    snowflake_user: str = Field(
        default="",
        description="User the API connects as"
    )
    snowflake_password: str = Field(
        default="",
        description="Password for SNOWFLAKE_USER. Ignored when a private key is configured."
    )
    snowflake_private_key_path: Optional[str] = Field(
        default=None,
        description="PEM file holding the key-pair credential"
    )
    snowflake_private_key_base64: Optional[str] = Field(
        default=None,
        description="Same key as SNOWFLAKE_PRIVATE_KEY_PATH, base64-encoded PEM. Wins over the path."
    )
    snowflake_database: str = Field(
        default="GUARDIAN",
        description="Database holding the ANALYSES and USERS tables"
    )
    snowflake_schema: str = Field(
        default="ANALYSIS",
        description="Schema holding the ANALYSES and USERS tables"
    )
    snowflake_warehouse: str = Field(
        default="COMPUTE_WH",
        description="Warehouse that runs inserts and lookups"
    )
    snowflake_role: Optional[str] = Field(
        default=None,
        description="Role to assume; the user default when unset"
    )
    snowflake_mock_mode: bool = Field(
        default=False,
        description="Keep analyses and users in process memory."
    )

    # Object storage (S3 API)
    storage_access_key_id: str = Field(
        default="",
        description="HMAC access key ID for the storage bucket"
    )
    storage_secret_access_key: str = Field(
        default="",
        description="HMAC secret for the storage bucket"
    )
    storage_bucket_name: str = Field(
        default="theog",
        description="Bucket for uploaded images and videos"
    )
    storage_endpoint_url: str = Field(
        default="https://storage.googleapis.com",
        description="S3-compatible endpoint. Defaults to the Google Cloud Storage interoperability API."
    )
    storage_region: str = Field(
        default="auto",
        description="Region passed to the S3 client"
    )
    storage_uri_scheme: str = Field(
        default="gs",
        description="Scheme used for storagePath in analysis records (gs, s3, ...)"
    )
    storage_mock_mode: bool = Field(
        default=False,
        description="Use in-memory mock instead of real object storage."
    )

    # Video Pipeline
    ffmpeg_path: str = Field(
        default="ffmpeg",
        description="FFmpeg binary used to extract frames"
    )
    ffprobe_path: str = Field(
        default="ffprobe",
        description="FFprobe binary used to read the video duration"
    )
    frame_count: int = Field(
        default=8,
        ge=1,
        description="Frames sampled per video"
    )
    frame_width: int = Field(
        default=640,
        ge=2,
        description="Width in pixels of each sampled frame. Aspect ratio is preserved."
    )
    ffmpeg_timeout_seconds: float = Field(
        default=120.0,
        description="Timeout for each FFmpeg/FFprobe invocation"
    )
    scratch_dir: Optional[str] = Field(
        default=None,
        description="Root for request workspaces. Defaults to the system temp directory."
    )
    max_upload_size_mb: int = Field(
        default=200,
        description="Maximum upload size in MB. Larger uploads are rejected with 413."
    )
    video_mock_mode: bool = Field(
        default=False,
        description="Write placeholder frames instead of running FFmpeg."
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Root logger level name"
    )

    # CORS
    cors_origins: str = Field(
        default="*",
        description="Allowed browser origins, comma-separated, or * for any"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def cors_origins_list(self) -> list[str]:
        if self.cors_origins == "*":
            return ["*"]
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def max_upload_size_bytes(self) -> int:
        return self.max_upload_size_mb * 1024 * 1024

    def validate_required_fields(self) -> list[str]:
        """
        Names of environment variables that must be set but are not.

        A collaborator in mock mode needs no credentials, so the answer
        depends on the mock switches and cannot be a field validator.
        """
        missing = []

        if not self.anthropic_mock_mode and not self.anthropic_api_key:
            missing.append("ANTHROPIC_API_KEY")

        if not self.snowflake_mock_mode:
            if not self.snowflake_account:
                missing.append("SNOWFLAKE_ACCOUNT")
            if not self.snowflake_user:
                missing.append("SNOWFLAKE_USER")
            # password or key pair
            if not (
                self.snowflake_password
                or self.snowflake_private_key_path
                or self.snowflake_private_key_base64
            ):
                missing.append("SNOWFLAKE_PASSWORD or SNOWFLAKE_PRIVATE_KEY_PATH")

        if not self.storage_mock_mode:
            if not self.storage_access_key_id:
                missing.append("STORAGE_ACCESS_KEY_ID")
            if not self.storage_secret_access_key:
                missing.append("STORAGE_SECRET_ACCESS_KEY")

        return missing


@lru_cache()
def get_settings() -> Settings:
    """Settings for this process. Tests reset it with get_settings.cache_clear()."""
    return Settings()
