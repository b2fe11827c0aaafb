"""
Application settings loaded from environment variables.

Uses pydantic-settings for validation and type safety.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from functools import lru_cache
from typing import Optional


class Settings(BaseSettings):
    """
    Application settings.

    All values loaded from .env file or environment variables.
    Validation happens automatically on startup.
    """

    model_config = SettingsConfigDict(
        env_file=(".env", "../.env"),  # Check current dir, then parent
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"  # Ignore extra env vars
    )

    # ===================
    # SUPABASE
    # ===================
    supabase_url: str = Field(
        ...,
        description="Supabase project URL"
    )
    supabase_key: str = Field(
        ...,
        description="Supabase anon/public key"
    )
    supabase_service_key: Optional[str] = Field(
        None,
        description="Supabase service role key (used by the sync worker when set)"
    )

    # ===================
    # API SECURITY
    # ===================
    api_key: Optional[str] = Field(
        None,
        description="Shared key required on internal trigger endpoints"
    )

    # ===================
    # SHOPIFY
    # ===================
    shopify_api_version: str = Field(
        default="2024-01",
        description="Shopify Admin REST API version"
    )
    shopify_webhook_secret: Optional[str] = Field(
        None,
        description="Shared secret used to sign Shopify webhooks"
    )

    # ===================
    # CARD LOOKUP
    # ===================
    ygoprodeck_base_url: str = Field(
        default="https://db.ygoprodeck.com/api/v7",
        description="YGOProDeck API base URL"
    )
    http_timeout_seconds: float = Field(
        default=15.0,
        gt=0,
        le=120,
        description="Timeout for upstream HTTP calls"
    )

    # ===================
    # SYNC PIPELINE
    # ===================
    sync_page_size: int = Field(
        default=250,
        ge=1,
        le=250,
        description="Products fetched per batch invocation (Shopify max is 250)"
    )
    match_workers: int = Field(
        default=5,
        ge=1,
        le=32,
        description="Concurrent card lookups per batch"
    )
    match_accept_score: int = Field(
        default=50,
        ge=1,
        le=100,
        description="Minimum candidate score accepted as a match"
    )
    sweep_batch_size: int = Field(
        default=100,
        ge=1,
        le=1000,
        description="Unmatched items examined per sweep invocation"
    )
    auto_match_after_sync: bool = Field(
        default=True,
        description="Queue an unmatched-item sweep when a sync job completes"
    )
    task_queue_backend: str = Field(
        default="http",
        pattern="^(http|thread)$",
        description="How batch continuations are dispatched"
    )
    app_base_url: str = Field(
        default="http://localhost:8000",
        description="Public base URL of this service (for self-triggered continuations)"
    )

    # ===================
    # APP SETTINGS
    # ===================
    environment: str = Field(
        default="development",
        pattern="^(development|staging|production)$",
        description="Application environment"
    )
    debug: bool = Field(
        default=True,
        description="Enable debug mode"
    )
    log_level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        description="Logging level"
    )
    api_host: str = Field(
        default="0.0.0.0",
        description="API host"
    )
    api_port: int = Field(
        default=8000,
        ge=1000,
        le=65535,
        description="API port"
    )

    # ===================
    # COMPUTED PROPERTIES
    # ===================
    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment == "production"

    @property
    def webhooks_configured(self) -> bool:
        """Check if Shopify webhook verification is possible."""
        return bool(self.shopify_webhook_secret)


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload.

    Returns:
        Settings: Application settings

    Raises:
        ValidationError: If required env vars are missing or invalid
    """
    return Settings()


# For convenient imports: from config.settings import settings
settings = get_settings()
