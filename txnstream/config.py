"""
Configuration settings for the transaction stream demo.

Uses Pydantic Settings to load environment variables for logging and the
pacing/shape of each load profile. Defaults reproduce the live demo: one
single transaction, 100 concurrent transactions, then a 3 second high-load
burst at 1000 TPS.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Application
    app_env: str = Field("development", alias="APP_ENV")
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_json: bool = Field(False, alias="LOG_JSON")

    # Presentation
    display_window: int = Field(50, gt=0, alias="DEMO_DISPLAY_WINDOW")

    # Single profile
    single_pending_ms: int = Field(50, ge=0, alias="DEMO_SINGLE_PENDING_MS")
    single_processing_ms: int = Field(100, ge=0, alias="DEMO_SINGLE_PROCESSING_MS")
    single_settle_ms: int = Field(1000, ge=0, alias="DEMO_SINGLE_SETTLE_MS")

    # Concurrent profile
    concurrent_count: int = Field(100, ge=0, alias="DEMO_CONCURRENT_COUNT")
    concurrent_batch_size: int = Field(10, gt=0, alias="DEMO_CONCURRENT_BATCH_SIZE")
    concurrent_pause_ms: int = Field(100, ge=0, alias="DEMO_CONCURRENT_PAUSE_MS")

    # High-load profile
    target_tps: int = Field(1000, gt=0, alias="DEMO_TARGET_TPS")
    highload_duration_ms: int = Field(3000, gt=0, alias="DEMO_HIGHLOAD_DURATION_MS")
    highload_interval_ms: int = Field(100, gt=0, alias="DEMO_HIGHLOAD_INTERVAL_MS")
    failure_probability: float = Field(0.02, ge=0.0, le=1.0, alias="DEMO_FAILURE_PROBABILITY")

    # File-derived profile
    csv_chunk_rows: int = Field(10, gt=0, alias="DEMO_CSV_CHUNK_ROWS")
    csv_pause_ms: int = Field(100, ge=0, alias="DEMO_CSV_PAUSE_MS")

    # Deterministic runs (None = fresh entropy)
    seed: Optional[int] = Field(None, alias="DEMO_SEED")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Retrieve a cached instance of Settings to avoid repeated env parsing.
    """
    return Settings()


__all__ = ["Settings", "get_settings"]
