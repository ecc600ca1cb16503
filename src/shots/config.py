"""Application configuration using Pydantic Settings."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # System Configuration
    api_v1_prefix: str = "/api/v1"
    debug: bool = False
    cors_origins: str = "http://localhost:3000,http://localhost:4173"

    # Supabase Configuration
    supabase_url: str = "https://test.supabase.co"
    supabase_anon_key: str = "test-anon-key"
    supabase_service_role_key: str = "test-service-role-key"

    # Retry Configuration
    network_retry_attempts: int = 3
    network_retry_delay_seconds: float = 1.0
    anonymous_sign_in_retry_delay_seconds: float = 1.0
    anonymous_sign_in_max_attempts: int | None = None  # None retries until success

    # Storage Configuration
    storage_bucket: str = "assets"
    preferences_path: str | None = None  # None keeps preferences in memory

    # PostHog Configuration
    posthog_api_key: str | None = None
    posthog_host: str = "https://app.posthog.com"


settings = Settings()
