from __future__ import annotations

from functools import cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from domain.sources import DEFAULT_SOURCE_ALIASES, QuoteSource

PROJECT_ROOT = Path(__file__).resolve().parents[1]
ARTIFACTS_DIR = PROJECT_ROOT / "artifacts"
DB_FILE = ARTIFACTS_DIR / "quotes.db"


class AppSettings(BaseSettings):
    provider_url: str = "https://dolarapi.com/v1/dolares"
    fetch_timeout_seconds: float = Field(default=10.0, gt=0)
    ingestion_interval_seconds: float = Field(default=60.0, gt=0)
    ingestion_enabled: bool = True
    db_file: Path = DB_FILE
    db_echo: bool = False
    source_aliases: dict[str, QuoteSource] = Field(default_factory=lambda: dict(DEFAULT_SOURCE_ALIASES))
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 3000

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    @field_validator("source_aliases")
    @classmethod
    def _validate_source_aliases(cls, value: dict[str, QuoteSource]) -> dict[str, QuoteSource]:
        if not value:
            raise ValueError("source_aliases must contain at least one entry")
        return value

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        return value.upper()


@cache
def config() -> AppSettings:
    return AppSettings()
