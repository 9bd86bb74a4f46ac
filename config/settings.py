from pathlib import Path
from typing import Optional
from functools import lru_cache

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ServiceSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="STRATEGY_SERVICE_")

    base_url: str = Field(default="http://localhost:8080", alias="STRATEGY_SERVICE_BASE_URL")
    api_token: Optional[str] = Field(default=None, alias="STRATEGY_SERVICE_API_TOKEN")
    timeout: float = Field(default=30.0, alias="STRATEGY_SERVICE_TIMEOUT")
    max_retries: int = Field(default=3, alias="STRATEGY_SERVICE_MAX_RETRIES")


class DashboardSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="")

    host: str = Field(default="127.0.0.1", alias="DASHBOARD_HOST")
    port: int = Field(default=8787, alias="DASHBOARD_PORT")
    data_dir: Path = Field(default=Path("data"), alias="DATA_DIR")

    @computed_field
    @property
    def backtests_path(self) -> Path:
        return self.data_dir / "backtests.json"

    @computed_field
    @property
    def strategies_path(self) -> Path:
        return self.data_dir / "strategies.json"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_dir: Path = Field(default=Path("logs"), alias="LOG_DIR")
    log_rotation: str = Field(default="10 MB", alias="LOG_ROTATION")
    log_retention: str = Field(default="7 days", alias="LOG_RETENTION")

    service: ServiceSettings = Field(default_factory=ServiceSettings)
    dashboard: DashboardSettings = Field(default_factory=DashboardSettings)


@lru_cache
def get_settings() -> Settings:
    return Settings()
