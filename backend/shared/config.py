"""
Centralized configuration for the PixelPerfect backend.

All settings are loaded from environment variables with sensible defaults.
Module-specific settings are namespaced (e.g., STRIPE_*, SUPABASE_*, BREVO_*).

Settings are built once at process start (see api.app.create_app) and passed
to the service container. Services receive the values they need through
their constructors and never read settings themselves.
"""

from functools import lru_cache
from typing import Literal, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "PixelPerfect API"
    app_version: str = "0.1.0"
    environment: Literal["development", "test", "production"] = "development"
    debug: bool = False
    log_level: str = "INFO"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    reload: bool = False

    # CORS settings
    cors_origins: list[str] = ["http://localhost:3000"]
    cors_allow_credentials: bool = True
    cors_allow_methods: list[str] = ["*"]
    cors_allow_headers: list[str] = ["*"]

    # Persistence: "supabase" for production, "memory" for local runs and tests
    storage_backend: Literal["supabase", "memory"] = "supabase"

    # Rate limiting (per user, on the credit-charging endpoint)
    rate_limit_requests: int = 5
    rate_limit_window: int = 60  # seconds

    # Billable operations
    operation_timeout_seconds: float = 120.0
    plan_catalog_path: Optional[str] = None

    # Supabase
    supabase_url: str = ""
    supabase_anon_key: str = ""
    supabase_service_role_key: str = ""
    supabase_jwt_secret: str = ""
    supabase_db_url: str = ""  # Direct Postgres URI, used only by run_migrations.py

    # Stripe
    stripe_secret_key: str = ""

    # Email providers
    brevo_api_key: str = ""
    brevo_enabled: bool = True
    resend_api_key: str = ""
    resend_enabled: bool = True
    email_from_address: str = "noreply@pixelperfect.app"
    email_from_name: str = "PixelPerfect"
    email_dry_run: bool = False
    email_timeout_seconds: float = 10.0

    # AI inference
    replicate_api_token: str = ""
    replicate_model_version: str = "nightmareai/real-esrgan"
    replicate_base_url: str = "https://api.replicate.com/v1"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()
