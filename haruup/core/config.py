"""Service settings, one ``BaseSettings`` class per concern.

``APP_ENV`` (development, testing, staging or production) selects an optional
``.env.<env>`` file at the project root. Values from that file are loaded into
the process environment first, then each nested settings class reads its own
prefix (``APP_``, ``LOG_``, ``LLM_``, ``DB_``, ``REDIS_``, ``RATE_LIMIT_``,
``RANKING_``).
"""

from __future__ import annotations

import os
from pathlib import Path
from zoneinfo import ZoneInfo

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

APP_ENV = os.getenv("APP_ENV", "development")
PROJECT_ROOT = Path(__file__).resolve().parents[2]
KNOWN_ENVS = ("development", "testing", "staging", "production")


def _env_file_for(env: str) -> Path | None:
    name = env if env in KNOWN_ENVS else "development"
    path = PROJECT_ROOT / f".env.{name}"
    return path if path.is_file() else None


# Nested settings do not inherit env_file, so the file goes into os.environ.
_env_file = _env_file_for(APP_ENV)
if _env_file is not None:
    load_dotenv(_env_file, override=True)


class LLMSettings(BaseSettings):
    """Provider used to phrase ranking labels.

    Without an API key the ranking batch only reuses stored labels.
    """

    provider: str = Field("openai", description="openai is the only provider")
    model: str = Field("gpt-4o-mini", description="Chat model for label generation")
    api_key: str | None = Field(None, description="Provider API key")
    base_url: str | None = Field(None, description="OpenAI-compatible endpoint override")
    timeout_seconds: float = Field(30.0, description="Per-request timeout")

    model_config = SettingsConfigDict(
        env_prefix="LLM_",
        case_sensitive=False,
    )


class LogSettings(BaseSettings):
    """Logging output configuration."""

    level: str = Field("INFO", description="Root log level")
    format: str = Field("json", description="json or plain")
    output: str = Field("stdout", description="stdout or file")
    file_path: str | None = Field(None, description="Log file path when output=file")
    max_bytes: int = Field(10 * 1024 * 1024, description="Rotate file after this size (0 disables rotation)")
    backup_count: int = Field(5, description="Rotated files to keep")
    request_id_header: str = Field("X-Request-ID", description="Correlation header name")

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class DatabaseSettings(BaseSettings):
    """Relational store configuration."""

    url: str = Field(
        "sqlite+aiosqlite:///./haruup.db",
        description="SQLAlchemy async URL (postgresql+asyncpg://... in production)",
    )
    echo: bool = Field(False, description="Log SQL statements")
    create_tables: bool = Field(
        True,
        description="Create missing tables on startup",
    )

    model_config = SettingsConfigDict(
        env_prefix="DB_",
        case_sensitive=False,
    )


class RedisSettings(BaseSettings):
    """Key-value store configuration."""

    url: str = Field("redis://localhost:6379/0", description="Redis connection URL")
    socket_timeout_seconds: float = Field(2.0, description="Socket timeout for Redis calls")

    model_config = SettingsConfigDict(
        env_prefix="REDIS_",
        case_sensitive=False,
    )


class RateLimitSettings(BaseSettings):
    """Per-member daily rate limits."""

    enabled: bool = Field(True, description="Enable per-member daily limits")
    backend: str = Field("redis", description="redis or memory")
    include_headers: bool = Field(
        True,
        description="Include X-RateLimit-* and Retry-After headers when throttling",
    )
    popular_daily_limit: int = Field(
        100,
        description="Daily popular-mission chart lookups per member",
        ge=1,
    )
    ranking_batch_daily_limit: int = Field(
        5,
        description="Daily manual ranking batch triggers per member",
        ge=1,
    )
    mission_complete_daily_limit: int = Field(
        50,
        description="Daily mission completions per member",
        ge=1,
    )

    model_config = SettingsConfigDict(
        env_prefix="RATE_LIMIT_",
        case_sensitive=False,
    )


class RankingSettings(BaseSettings):
    """Ranking batch scheduling and query window."""

    batch_enabled: bool = Field(True, description="Run the ranking batch on a schedule")
    batch_cron: str = Field("0 2 * * *", description="Crontab expression (minute hour day month weekday)")
    window_days: int = Field(30, description="Trailing window for the popular chart", ge=1)
    default_limit: int = Field(10, description="Default chart size", ge=1)

    model_config = SettingsConfigDict(
        env_prefix="RANKING_",
        case_sensitive=False,
    )


class AppSettings(BaseSettings):
    """Service-wide switches and gateway credentials."""

    debug: bool = Field(False, description="Keep third-party loggers at their own levels")
    api_key_required: bool = Field(True, description="Reject calls without a known X-API-Key")
    api_keys: str | None = Field(None, description="Comma-separated gateway keys")
    timezone: str = Field(
        "Asia/Seoul",
        description="Timezone that defines calendar days for streaks and limits",
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


class Settings(BaseSettings):
    """All settings groups. Invalid values fail at import time."""

    app_env: str = APP_ENV
    app: AppSettings = Field(default_factory=AppSettings)
    log: LogSettings = Field(default_factory=LogSettings)
    llm: LLMSettings = Field(default_factory=LLMSettings)
    db: DatabaseSettings = Field(default_factory=DatabaseSettings)
    redis: RedisSettings = Field(default_factory=RedisSettings)
    rate_limit: RateLimitSettings = Field(default_factory=RateLimitSettings)
    ranking: RankingSettings = Field(default_factory=RankingSettings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


settings = Settings()
