from __future__ import annotations

from pathlib import Path

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", extra="ignore", populate_by_name=True
    )

    db_path: Path = Field(default=Path("data/ehv-tracker.db"), validation_alias="DB_PATH")

    user_agent: str = Field(default="ehv-tracker/0.1", validation_alias="USER_AGENT")

    edcc_base_url: str = Field(
        default="https://www.equinediseasecc.org", validation_alias="EDCC_BASE_URL"
    )
    edcc_listing_url: str | None = Field(
        default=None, validation_alias="EDCC_LISTING_URL"
    )
    edcc_alert_link_marker: str = Field(
        default="/alerts?alertID=", validation_alias="EDCC_ALERT_LINK_MARKER"
    )

    sync_batch_size: int = Field(default=10, ge=1, validation_alias="SYNC_BATCH_SIZE")
    sync_concurrency: int = Field(default=4, ge=1, validation_alias="SYNC_CONCURRENCY")
    sync_interval_seconds: int = Field(
        default=3600, ge=60, validation_alias="SYNC_INTERVAL_SECONDS"
    )
    sync_on_startup: bool = Field(default=True, validation_alias="SYNC_ON_STARTUP")
    fetch_timeout_seconds: float = Field(
        default=15.0, gt=0, validation_alias="FETCH_TIMEOUT_SECONDS"
    )

    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_json: bool = Field(default=False, validation_alias="LOG_JSON")

    cors_origins: str = Field(default="*", validation_alias="CORS_ORIGINS")

    @model_validator(mode="after")
    def _default_listing_url(self) -> Settings:
        if not self.edcc_listing_url:
            self.edcc_listing_url = f"{self.edcc_base_url.rstrip('/')}/equine-herpesvirus"
        return self
