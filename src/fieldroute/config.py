"""Application configuration and settings management."""

from pathlib import Path
from typing import Any, Literal, Optional

import json
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="FSR_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "Field Service Routing API"
    api_prefix: str = "/api"
    log_level: str = "INFO"
    customer_file: Path = Field(
        default=Path("data/customers.csv"),
        description="Customer/location dataset used when no database is configured.",
    )
    google_maps_api_key: Optional[str] = Field(
        default=None,
        description="Directions API key. When unset, routes are estimated synthetically.",
    )
    google_maps_base_url: str = Field(default="https://maps.googleapis.com/maps/api")
    travel_mode: Literal["driving", "walking", "bicycling"] = Field(default="driving")
    provider_timeout_seconds: float = Field(default=30.0, gt=0.0)
    fallback_stop_minutes: float = Field(
        default=15.0,
        ge=0.0,
        description="Travel time assumed per stop when no mapping provider is configured.",
    )
    fallback_stop_distance_km: float = Field(
        default=5.0,
        ge=0.0,
        description="Distance assumed per stop when no mapping provider is configured.",
    )
    route_customers_default_limit: int = Field(default=50, ge=1)
    frontend_allowed_origins: tuple[str, ...] = Field(
        default=(
            "http://localhost:3000",
            "http://127.0.0.1:3000",
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        ),
        description="Permitted web origins for browser clients (CORS).",
    )

    # Supabase configuration
    supabase_url: Optional[str] = Field(
        default=None,
        description="Supabase project URL (e.g., https://xxx.supabase.co).",
    )
    supabase_key: Optional[str] = Field(
        default=None,
        description="Supabase service role key for backend operations.",
    )

    @field_validator("customer_file", mode="before")
    @classmethod
    def _expand_path(cls, value: Any) -> Path:
        path_value = value if isinstance(value, Path) else Path(str(value))
        return path_value.expanduser().resolve()

    @field_validator("frontend_allowed_origins", mode="before")
    @classmethod
    def _parse_str_tuple_from_env(cls, value: Any) -> tuple[str, ...]:
        """Parse string tuple from environment variable (comma-separated or JSON array)."""
        if isinstance(value, tuple):
            return value
        if isinstance(value, list):
            return tuple(str(item) for item in value)
        if isinstance(value, str):
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
