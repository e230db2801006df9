"""
Environment configuration — single source of truth for all settings.

Uses pydantic-settings for type-safe config with .env file support.
Variable names follow the deployment manifests (DB_HOST, REDIS_HOST,
KAFKA_BROKER, ELASTICSEARCH_HOST, PORT).

Usage:
    from backend.app.core.config import settings
    print(settings.database_url)
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application-wide settings loaded from environment variables or .env file.

    Precedence: env var > .env file > default value
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # ── Application ──
    APP_NAME: str = "Wellness Center API"
    APP_VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"  # development | staging | production
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    LOG_JSON: Optional[bool] = None  # default: JSON in production only

    # ── Server ──
    HOST: str = "0.0.0.0"
    PORT: int = 8080
    SHUTDOWN_GRACE_SECONDS: int = 15  # in-flight requests drain window

    # ── Database ──
    DB_HOST: str = "localhost"
    DB_USER: str = "postgres"
    DB_PASSWORD: str = "postgres"
    DB_NAME: str = "wellness"
    DB_PORT: int = 5432
    DATABASE_URL: Optional[str] = None  # overrides the DB_* parts when set
    DATABASE_POOL_SIZE: int = 10
    DATABASE_MAX_OVERFLOW: int = 5
    DATABASE_ECHO: bool = False
    DATABASE_TIMEOUT: float = 5.0

    # ── Redis ──
    REDIS_HOST: str = "localhost:6379"  # host:port
    REDIS_PASSWORD: Optional[str] = None
    CACHE_TIMEOUT: float = 2.0

    # ── Kafka ──
    KAFKA_BROKER: str = "localhost:9092"
    KAFKA_STARTUP_DELAY: float = 0.0  # wait for the broker before first connect
    KAFKA_RETRY_DELAY: float = 5.0
    KAFKA_REQUIRED: bool = False  # True: unreachable broker aborts startup
    QUEUE_TIMEOUT: float = 5.0

    # ── Elasticsearch ──
    ELASTICSEARCH_HOST: str = "http://localhost:9200"
    SEARCH_TIMEOUT: float = 5.0

    # ── Health ──
    HEALTH_CHECK_TIMEOUT: float = 5.0
    CONNECT_TIMEOUT: float = 5.0  # startup ping deadline per dependency

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql+asyncpg://{self.DB_USER}:{self.DB_PASSWORD}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
        )

    @property
    def redis_url(self) -> str:
        auth = f":{self.REDIS_PASSWORD}@" if self.REDIS_PASSWORD else ""
        return f"redis://{auth}{self.REDIS_HOST}/0"

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT == "development"


@lru_cache()
def get_settings() -> Settings:
    """Cached settings singleton."""
    return Settings()


settings = get_settings()
