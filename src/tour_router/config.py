"""Application configuration and settings management."""

from typing import Annotated, Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="TOUR_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "Tour Route Optimization API"
    api_prefix: str = "/api"

    average_speed_kmh: float = Field(default=70.0, gt=0.0, description="Assumed average road speed for touring.")
    travel_buffer_factor: float = Field(
        default=1.2,
        ge=1.0,
        description="Multiplier applied to raw driving time for rest stops, traffic and load-in.",
    )
    default_min_days_between_shows: int = Field(default=1, ge=1)

    max_detour_ratio: float = Field(default=2.5, gt=1.0, description="Hard ceiling on candidate detour ratio.")
    detour_budget_factor: float = Field(
        default=1.4,
        gt=1.0,
        description="Maximum acceptable total path through a candidate, as a multiple of the direct distance.",
    )
    max_gap_insertions: int = Field(default=3, ge=1)
    max_gap_insertions_large: int = Field(default=5, ge=1)
    large_gap_days: int = Field(default=14, ge=1)

    position_weight: float = Field(default=0.4, ge=0.0)
    distance_weight: float = Field(default=0.3, ge=0.0)
    preference_weight: float = Field(default=0.3, ge=0.0)

    region_bonus: float = 20.0
    venue_type_bonus: float = 15.0
    capacity_bonus: float = 15.0
    genre_bonus: float = 20.0

    corridor_margin_degrees: float = Field(
        default=2.0,
        ge=0.0,
        description="Padding around a gap segment's bounding box when pre-filtering candidates.",
    )

    cache_ttl_seconds: float = Field(default=3600.0, gt=0.0)
    cache_max_entries: int = Field(default=512, ge=1)

    out_of_route_sequence_base: int = Field(default=1000, ge=1)

    frontend_allowed_origins: Annotated[tuple[str, ...], NoDecode] = Field(
        default=(
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        ),
        description="Permitted web origins for browser clients (CORS).",
    )

    @field_validator("frontend_allowed_origins", mode="before")
    @classmethod
    def _split_origins(cls, value: Any) -> tuple[str, ...]:
        """Environment values are comma-separated, e.g. `TOUR_FRONTEND_ALLOWED_ORIGINS=https://a.example,https://b.example`."""
        if isinstance(value, str):
            return tuple(item.strip() for item in value.split(",") if item.strip())
        return tuple(str(item) for item in value or ())


settings = Settings()
