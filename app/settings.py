from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from geo.coords import BoundingBox


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    db_path: Path = Field(
        default=Path("data/traffic-incidents.db"), validation_alias="DB_PATH"
    )
    feeds_dir: Path = Field(default=Path("feeds"), validation_alias="FEEDS_DIR")
    user_agent: str = Field(
        default="traffic-incident-sync/0.1", validation_alias="USER_AGENT"
    )
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

    batch_size: int = Field(default=150, validation_alias="BATCH_SIZE")
    uuid_namespace: str = Field(
        default="a3a6b0c2-3e28-4a95-87d8-2a22f3e5b4f2",
        validation_alias="UUID_NAMESPACE",
    )
    fetch_timeout_seconds: float = Field(
        default=15.0, validation_alias="FETCH_TIMEOUT_SECONDS"
    )
    sync_interval_seconds: int = Field(
        default=0, validation_alias="SYNC_INTERVAL_SECONDS"
    )

    valid_min_lat: float = Field(default=24.0, validation_alias="VALID_MIN_LAT")
    valid_max_lat: float = Field(default=50.0, validation_alias="VALID_MAX_LAT")
    valid_min_lon: float = Field(default=-125.0, validation_alias="VALID_MIN_LON")
    valid_max_lon: float = Field(default=-66.0, validation_alias="VALID_MAX_LON")

    tile_min_lat: float = Field(default=24.396308, validation_alias="TILE_MIN_LAT")
    tile_max_lat: float = Field(default=49.384358, validation_alias="TILE_MAX_LAT")
    tile_min_lon: float = Field(default=-125.0, validation_alias="TILE_MIN_LON")
    tile_max_lon: float = Field(default=-66.93457, validation_alias="TILE_MAX_LON")
    tile_step_degrees: float = Field(default=0.85, validation_alias="TILE_STEP_DEGREES")
    tile_concurrency: int = Field(default=8, validation_alias="TILE_CONCURRENCY")

    ohgo_url: str = Field(
        default="https://publicapi.ohgo.com/api/v1/incidents",
        validation_alias="OHGO_URL",
    )
    ohgo_api_key: str | None = Field(default=None, validation_alias="OHGO_API_KEY")
    ohgo_construction_url: str = Field(
        default="https://data.ohgo.com/resources/construction/all.json",
        validation_alias="OHGO_CONSTRUCTION_URL",
    )
    ohgo_construction_enabled: bool = Field(
        default=False, validation_alias="OHGO_CONSTRUCTION_ENABLED"
    )

    drivetexas_url: str = Field(
        default="https://api.drivetexas.org/api/conditions.geojson",
        validation_alias="DRIVETEXAS_URL",
    )
    drivetexas_api_key: str | None = Field(
        default=None, validation_alias="DRIVETEXAS_API_KEY"
    )
    drivetexas_itravel_url: str = Field(
        default="https://apps.dot.state.tx.us/itravel/api/incidents/all",
        validation_alias="DRIVETEXAS_ITRAVEL_URL",
    )
    drivetexas_itravel_enabled: bool = Field(
        default=False, validation_alias="DRIVETEXAS_ITRAVEL_ENABLED"
    )

    tomtom_url: str = Field(
        default="https://api.tomtom.com/traffic/services/5/incidentDetails",
        validation_alias="TOMTOM_URL",
    )
    tomtom_api_key: str | None = Field(default=None, validation_alias="TOMTOM_API_KEY")

    def validation_bbox(self) -> BoundingBox:
        return BoundingBox(
            min_lat=self.valid_min_lat,
            max_lat=self.valid_max_lat,
            min_lon=self.valid_min_lon,
            max_lon=self.valid_max_lon,
        )

    def tiling_bbox(self) -> BoundingBox:
        return BoundingBox(
            min_lat=self.tile_min_lat,
            max_lat=self.tile_max_lat,
            min_lon=self.tile_min_lon,
            max_lon=self.tile_max_lon,
        )
