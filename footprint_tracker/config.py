"""
Configuration settings for the footprint tracker.

Uses Pydantic Settings to load environment variables (or a local `.env`) for
the storage engine, the emission factor source, logging and the weekly
target shown on the dashboard.
"""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_FACTORS_PATH = Path(__file__).resolve().parent / "data" / "emission_factors.json"


class Settings(BaseSettings):
    # Storage engine
    db_engine: Literal["sqlite", "postgres"] = Field("sqlite", alias="DB_ENGINE")
    sqlite_path: str = Field("carbon_footprint.db", alias="SQLITE_PATH")

    # Postgres (only read when DB_ENGINE=postgres)
    db_host: str = Field("localhost", alias="DB_HOST")
    db_port: int = Field(5432, alias="DB_PORT")
    db_user: str = Field("postgres", alias="DB_USER")
    db_password: str = Field("postgres", alias="DB_PASSWORD")
    db_name: str = Field("carbon_footprint", alias="DB_NAME")
    db_pool_min_size: int = Field(1, alias="DB_POOL_MIN_SIZE")
    db_pool_max_size: int = Field(4, alias="DB_POOL_MAX_SIZE")

    # Emission factors
    factors_path: Optional[str] = Field(None, alias="FACTORS_PATH")

    # Application
    app_env: str = Field("development", alias="APP_ENV")
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_json: bool = Field(False, alias="LOG_JSON")

    # Dashboard
    weekly_target_kg: float = Field(100.0, gt=0, alias="WEEKLY_TARGET_KG")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    @property
    def resolved_factors_path(self) -> Path:
        """Factor source to load: the override when set, else the bundled file."""
        return Path(self.factors_path) if self.factors_path else DEFAULT_FACTORS_PATH


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Retrieve a cached instance of Settings to avoid repeated env parsing.
    """
    return Settings()


__all__ = ["DEFAULT_FACTORS_PATH", "Settings", "get_settings"]
