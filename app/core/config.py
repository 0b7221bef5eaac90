from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application-wide configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="allow",
    )

    app_env: Literal["development", "production", "test"] = Field(default="development", validation_alias="APP_ENV")
    app_port: int = Field(default=8000, validation_alias="APP_PORT")
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

    timeline_policy: Literal["FORWARD", "BACKWARD"] = Field(default="FORWARD", validation_alias="TIMELINE_POLICY")
    travel_oracle: Literal["HAVERSINE", "GOOGLE"] = Field(default="HAVERSINE", validation_alias="TRAVEL_ORACLE")
    fallback_speed_kmh: float = Field(default=40.0, gt=0, validation_alias="FALLBACK_SPEED_KMH")

    default_origin_lat: float = Field(default=30.6280, ge=-90, le=90, validation_alias="DEFAULT_ORIGIN_LAT")
    default_origin_lng: float = Field(default=-96.3344, ge=-180, le=180, validation_alias="DEFAULT_ORIGIN_LNG")
    default_city: str | None = Field(default=None, validation_alias="DEFAULT_CITY")

    google_maps_api_key: str | None = Field(default=None, validation_alias="GOOGLE_MAPS_API_KEY")
    google_request_timeout_seconds: float = Field(default=10.0, gt=0, validation_alias="GOOGLE_REQUEST_TIMEOUT_SECONDS")
    geocode_bias_degrees: float = Field(default=0.05, gt=0, validation_alias="GEOCODE_BIAS_DEGREES")
    places_search_radius_m: float = Field(default=50_000, gt=0, le=50_000, validation_alias="PLACES_SEARCH_RADIUS_M")


@lru_cache(1)
def get_settings() -> Settings:
    """Return cached settings instance to avoid reparsing env variables."""

    return Settings()
