"""Application configuration and settings management."""

from typing import Any, Optional

import json
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="JDC_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "JDC Dashboard API"
    api_prefix: str = "/api"
    log_level: str = Field(default="INFO", description="Root log level applied when the app starts.")

    # Supabase configuration
    supabase_url: Optional[str] = Field(
        default=None,
        description="Supabase project URL (e.g., https://xxx.supabase.co).",
    )
    supabase_key: Optional[str] = Field(
        default=None,
        description="Supabase service role key for backend operations.",
    )
    users_table: str = "users"
    shipments_table: str = "Envoi"
    snapshots_table: str = "dailyStatsSnapshots"
    geocode_cache_table: str = "geocodeCache"

    available_sectors: tuple[str, ...] = Field(
        default=("CHR", "HACCP", "Kezia", "Tabac"),
        description="Sector names; each sector is stored in its own ticket table.",
    )
    available_roles: tuple[str, ...] = Field(default=("Admin", "Technician", "Viewer"))
    default_role: str = "Technician"

    # OpenCage geocoding
    opencage_api_key: Optional[str] = Field(default=None, description="OpenCage Data API key.")
    opencage_base_url: str = "https://api.opencagedata.com/geocode/v1/json"
    geocode_language: str = "fr"
    geocode_timeout_seconds: float = Field(default=15.0, gt=0.0)
    geocode_max_retries: int = Field(default=1, ge=0)
    geocode_backoff_seconds: float = Field(default=0.5, ge=0.0)
    geocode_cache_expiry_days: Optional[int] = Field(
        default=90,
        ge=1,
        description="Days before a cached coordinate is considered stale. None disables expiry.",
    )
    geocode_negative_cache_hours: int = Field(
        default=24,
        ge=0,
        description="Hours a confirmed 'not found' lookup stays cached. 0 disables negative caching.",
    )

    recent_tickets_limit: int = Field(default=20, ge=1)
    recent_shipments_limit: int = Field(default=5, ge=1)

    frontend_allowed_origins: tuple[str, ...] = Field(
        default=(
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        ),
        description="Permitted web origins for browser clients (CORS).",
    )

    @field_validator("frontend_allowed_origins", "available_sectors", "available_roles", mode="before")
    @classmethod
    def _parse_str_tuple_from_env(cls, value: Any) -> tuple[str, ...]:
        """Parse string tuple from environment variable (comma-separated or JSON array)."""
        if isinstance(value, tuple):
            return value
        if isinstance(value, list):
            return tuple(str(item) for item in value)
        if isinstance(value, str):
            # Try JSON first
            try:
                parsed = json.loads(value)
                if isinstance(parsed, list):
                    return tuple(str(item) for item in parsed)
            except (json.JSONDecodeError, TypeError):
                pass
            if "," in value:
                return tuple(item.strip() for item in value.split(",") if item.strip())
            if value.strip():
                return (value.strip(),)
        return tuple()


settings = Settings()
