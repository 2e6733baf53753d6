from __future__ import annotations

from functools import lru_cache
from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application-wide configuration."""

    host: str = Field(default="0.0.0.0")
    port: int = Field(default=3187, ge=1, le=65535)
    database_path: str = Field(default=".data/monitor.db")
    check_interval_seconds: float = Field(default=30.0, gt=0.0)
    ip_lookup_url: str = Field(default="https://api.ipify.org")
    ip_lookup_timeout_s: float = Field(default=10.0, gt=0.0)
    speedtest_timeout_s: float = Field(default=10.0, gt=0.0)
    page_size: int = Field(default=20, ge=1)
    log_level: str = Field(default="INFO")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


@lru_cache()
def get_settings() -> Settings:
    return Settings()
