"""Application configuration and settings management."""

from typing import Any, Literal, Optional

import json
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="DZ_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "Delivery Zone Resolution API"
    api_prefix: str = "/api"
    log_level: str = Field(default="INFO", description="Log level applied to the delivery_zones logger.")

    default_tolerance_km: float = Field(
        default=0.2,
        ge=0.0,
        description="Margin added to both edges of every zone when a caller does not pass one.",
    )
    default_zone_fee: float = Field(
        default=5.0,
        ge=0.0,
        description="Fee of the fallback zone used when a restaurant has no zones configured.",
    )
    default_zone_max_distance_km: float = Field(default=5.0, gt=0.0)
    default_zone_estimated_time: str = Field(default="30-45 min")

    distance_provider: Literal["google", "osrm", "haversine"] = Field(
        default="haversine",
        description="Upstream used to measure restaurant to customer distances.",
    )
    google_maps_api_key: Optional[str] = Field(default=None, description="Google Maps Platform key.")
    google_distance_matrix_url: str = Field(
        default="https://maps.googleapis.com/maps/api/distancematrix/json",
    )
    osrm_base_url: Optional[str] = Field(
        default=None,
        description="Base URL for the OSRM routing service (e.g., http://localhost:5000).",
    )
    osrm_profile: Literal["driving", "driving-hgv"] = Field(default="driving")
    http_timeout_seconds: float = Field(default=10.0, gt=0.0)

    distance_cache_enabled: bool = Field(default=True)
    distance_cache_ttl_seconds: float = Field(default=3600.0, ge=0.0)

    max_sessions: int = Field(
        default=1000,
        ge=1,
        description="Upper bound of concurrently tracked checkout sessions.",
    )
    frontend_allowed_origins: tuple[str, ...] = Field(
        default=(
            "http://localhost:3000",
            "http://127.0.0.1:3000",
        ),
        description="Permitted web origins for browser clients (CORS).",
    )

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
