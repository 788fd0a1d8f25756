from __future__ import annotations

from functools import cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    base_url: str = "https://api.octopus.energy"
    product_code: str = "AGILE-24-10-01"
    tariff_code: str = "E-1R-AGILE-24-10-01-G"
    request_timeout_seconds: float = 10.0
    retry_max_attempts: int = 3
    retry_backoff_seconds: float = 2.0

    model_config = SettingsConfigDict(env_prefix="AGILE_", env_file=".env", env_file_encoding="utf-8", extra="ignore")


@cache
def config() -> AppSettings:
    return AppSettings()
