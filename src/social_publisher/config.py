"""Application configuration via environment variables."""

from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    environment: str = Field(default="development", description="Deployment environment")

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: Literal["json", "console"] = Field(
        default="console",
        description="Log output format",
    )

    # API Server
    api_host: str = Field(default="0.0.0.0", description="API server host")
    api_port: int = Field(default=5000, description="API server port")
    api_reload: bool = Field(default=False, description="Enable auto-reload for development")

    # Media
    media_root: str = Field(
        default="public/generated",
        description="Directory holding generated media files referenced by video URLs",
    )
    public_base_url: str | None = Field(
        default=None,
        description="Public base URL where media_root is served (required for Instagram)",
    )
    default_caller_origin: str = Field(
        default="localhost:5000",
        description="Origin used for OAuth callbacks when the request carries no Host header",
    )

    # Publishing
    publisher_mode: Literal["live", "stub"] = Field(
        default="live",
        description="live uses the platform APIs, stub simulates successful uploads",
    )
    http_timeout_seconds: float = Field(
        default=30.0,
        description="Timeout for OAuth and metadata requests",
    )
    upload_timeout_seconds: float = Field(
        default=600.0,
        description="Upper bound for a single platform publish, upload included",
    )
    http_max_retries: int = Field(
        default=3,
        description="Attempts for outbound requests failing at the transport level",
    )

    # YouTube OAuth
    youtube_client_id: str | None = Field(default=None, description="YouTube OAuth client ID")
    youtube_client_secret: str | None = Field(
        default=None, description="YouTube OAuth client secret"
    )
    youtube_access_token: str | None = Field(default=None, description="YouTube access token")
    youtube_refresh_token: str | None = Field(default=None, description="YouTube refresh token")

    # TikTok OAuth
    tiktok_client_key: str | None = Field(default=None, description="TikTok Client Key")
    tiktok_client_secret: str | None = Field(default=None, description="TikTok Client Secret")
    tiktok_access_token: str | None = Field(default=None, description="TikTok access token")

    # Instagram OAuth (via Facebook Login / Meta Graph API)
    instagram_app_id: str | None = Field(
        default=None,
        validation_alias=AliasChoices("instagram_app_id", "facebook_app_id"),
        description="Instagram/Facebook App ID",
    )
    instagram_app_secret: str | None = Field(
        default=None,
        validation_alias=AliasChoices("instagram_app_secret", "facebook_app_secret"),
        description="Instagram/Facebook App Secret",
    )
    instagram_access_token: str | None = Field(default=None, description="Instagram access token")
    instagram_account_id: str | None = Field(
        default=None,
        description="Instagram Business account ID used for publishing",
    )

    # OAuth state
    oauth_state_ttl_seconds: int = Field(
        default=600,
        description="Lifetime of the signed OAuth state parameter",
    )
    oauth_require_state: bool = Field(
        default=True,
        description="Reject OAuth callbacks that do not carry a valid state value",
    )

    # Encryption (for token storage)
    encryption_master_key: str | None = Field(
        default=None,
        description="Fernet encryption key for secure token storage",
    )
    token_store_path: str | None = Field(
        default=None,
        description="File used to persist OAuth tokens across restarts (disabled when unset)",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()


# Convenience alias
settings = get_settings()
