"""Configuration management using Pydantic Settings."""

import os

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _split_csv(value: str) -> list[str]:
    """Split a comma-separated setting into trimmed, non-empty items."""
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        # Only load .env file in development (not Lambda/production)
        env_file=".env" if os.getenv("AWS_EXECUTION_ENV") is None else None,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Notion Configuration
    notion_api_key: str | None = None
    notion_database_id: str | None = None
    notion_version: str = "2022-06-28"
    notion_base_url: str = "https://api.notion.com"
    http_timeout_seconds: float = 15.0

    # Notification Configuration
    notifiable_statuses: str = "Completed,Rejected,In Progress,Approved"
    cron_secret: str | None = None
    scheduled_trigger_headers: str = "x-netlify-scheduled,x-cron-trigger"
    manual_trigger_param: str = "cron"

    # SMTP Configuration
    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 587
    smtp_secure: bool = False  # True = implicit TLS (465), False = STARTTLS
    smtp_user: str | None = None
    smtp_pass: str | None = None
    smtp_timeout_seconds: float = 15.0
    smtp_max_concurrency: int = 5
    from_email: str = "noreply@yourdomain.com"

    @field_validator(
        "notion_api_key",
        "notion_database_id",
        "smtp_user",
        "smtp_pass",
        "cron_secret",
        "aws_access_key_id",
        "aws_secret_access_key",
        "aws_session_token",
        "s3_endpoint_url",
        mode="before",
    )
    @classmethod
    def convert_empty_string_to_none(cls, v):
        """Convert empty strings to None so unset secrets read as missing."""
        if v is None:
            return None
        if isinstance(v, str) and v.strip() == "":
            return None
        return v

    # AWS Configuration
    aws_region: str = "us-east-2"
    aws_access_key_id: str | None = None
    aws_secret_access_key: str | None = None
    aws_session_token: str | None = None  # Required for temporary credentials

    # Upload staging
    s3_endpoint_url: str | None = None
    upload_bucket: str = "service-request-uploads"
    upload_ttl_hours: int = 24
    max_upload_bytes: int = 5 * 1024 * 1024  # 5MB decoded
    allowed_upload_types: str = (
        "image/jpeg,image/png,image/gif,image/webp,image/svg+xml"
    )
    public_base_url: str = "http://localhost:8000"

    # Application Configuration
    log_level: str = "INFO"
    api_title: str = "Service Request Relay"
    api_version: str = "1.0.0"
    cors_allow_origins: str = "*"

    # API Limits (base64 inflates a 5MB file to ~6.7MB)
    max_request_size_bytes: int = 8 * 1024 * 1024

    @property
    def notifiable_status_set(self) -> frozenset[str]:
        """Statuses that trigger a notification email."""
        return frozenset(_split_csv(self.notifiable_statuses))

    @property
    def trigger_header_names(self) -> list[str]:
        """Lower-cased header names accepted as a scheduler signal."""
        return [name.lower() for name in _split_csv(self.scheduled_trigger_headers)]

    @property
    def allowed_upload_type_set(self) -> frozenset[str]:
        """MIME types accepted by the upload endpoint."""
        return frozenset(_split_csv(self.allowed_upload_types))

    @property
    def cors_origins(self) -> list[str]:
        """Origins allowed by the CORS middleware."""
        return _split_csv(self.cors_allow_origins)

    @property
    def notion_configured(self) -> bool:
        """Whether both the Notion key and database id are set."""
        return bool(self.notion_api_key and self.notion_database_id)


# Global settings instance
settings = Settings()
