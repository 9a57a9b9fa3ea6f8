"""Application settings and configuration constants.

This module contains application settings, constants, and configuration
values for the Modern Chyrp backend application.
"""

from logging import INFO, Logger
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Literal

from pydantic_settings import BaseSettings, SettingsConfigDict
from pythonjsonlogger.json import JsonFormatter

ENV_FILE = Path(__file__).parent.parent.parent / ".env"

# --- Constants ---
MAX_SEARCH_QUERY_LENGTH = 200
MAX_COMMENT_LENGTH = 5000

# Document collections
POSTS_COLLECTION = "posts"
COMMENTS_COLLECTION = "comments"
USERS_COLLECTION = "users"

# Cache TTLs used by the application services (seconds)
TTL_ENTITY = 900  # 15 minutes
TTL_LIST = 600  # 10 minutes
TTL_SEARCH = 300  # 5 minutes


class Settings(BaseSettings):
    """Application settings with validation and default values."""

    model_config = SettingsConfigDict(
        env_file=ENV_FILE,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    APP_NAME: str = "Modern Chyrp Backend"
    DEBUG: bool = False

    # Environment
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"
    LOG_TO_FILE: bool = False
    LOG_FILE: str = "logs/chyrp.log"

    # Document store backend
    STORE_BACKEND: Literal["memory", "redis"] = "memory"

    # Redis Configuration (used when STORE_BACKEND == "redis")
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    REDIS_DB: int = 0
    REDIS_PASSWORD: str | None = None


settings = Settings()


class RedisConfig(BaseSettings):
    """Redis connection pool configuration."""

    model_config = SettingsConfigDict(env_prefix="REDIS_", case_sensitive=False, extra="ignore")

    host: str = settings.REDIS_HOST
    port: int = settings.REDIS_PORT
    db: int = settings.REDIS_DB
    password: str | None = settings.REDIS_PASSWORD
    socket_timeout: float = 5.0
    socket_connect_timeout: float = 5.0
    socket_keepalive: bool = True
    health_check_interval: int = 30
    max_connections: int = 50
    decode_responses: bool = True
    encoding: str = "utf-8"


class CacheConfig(BaseSettings):
    """Cache configuration."""

    model_config = SettingsConfigDict(env_prefix="CACHE_", case_sensitive=False, extra="ignore")

    default_ttl: int = 300  # 5 minutes
    max_ttl: int = 86400  # 24 hours
    collection: str = "cache"
    coalesce_misses: bool = False


class TransactionConfig(BaseSettings):
    """Optimistic transaction retry configuration."""

    model_config = SettingsConfigDict(
        env_prefix="TRANSACTION_",
        case_sensitive=False,
        extra="ignore",
    )

    max_attempts: int = 5
    base_delay: float = 0.01  # seconds
    max_delay: float = 0.5  # seconds


class StoreConfig(BaseSettings):
    """Document store configuration."""

    model_config = SettingsConfigDict(env_prefix="STORE_", case_sensitive=False, extra="ignore")

    key_prefix: str = "chyrp"


class LimiterConfig(BaseSettings):
    """Rate limiter (slowapi) configuration."""

    model_config = SettingsConfigDict(env_prefix="LIMITER_", case_sensitive=False, extra="ignore")

    default_limits: list[str] = ["200/minute"]
    headers_enabled: bool = False
    storage_uri: str = "memory://"
    enabled: bool = True


pool_kwargs: dict[str, Any] = RedisConfig().model_dump()


def file_logger(logger: Logger) -> Logger:
    """
    Attach the rotating JSON file handler to a logger when file logging is on.

    Args:
        logger: Logger to decorate.

    Returns:
        The same logger, for chaining at module import.
    """
    if not settings.LOG_TO_FILE:
        return logger

    log_file = Path(settings.LOG_FILE)
    if any(
        isinstance(h, RotatingFileHandler) and Path(h.baseFilename) == log_file.resolve()
        for h in logger.handlers
    ):
        return logger

    log_file.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(log_file, maxBytes=5 * 1024 * 1024, backupCount=5)
    handler.setLevel(INFO)
    handler.setFormatter(JsonFormatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
    logger.addHandler(handler)
    return logger
