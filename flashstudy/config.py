import logging
import sys
from functools import lru_cache
from typing import Any, Callable

import structlog
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Safe defaults for local dev + CI tests
    algorithm: str = "HS256"
    secret_key: str = "dev-secret-change-me"
    access_token_expire_minutes: int = 30
    database_url: str = "sqlite:///./data/app.db"

    environment: str = "development"
    log_level: str = "INFO"

    # calendar day boundaries for daily activity and streaks
    study_timezone: str = "UTC"

    # optimistic-write attempts for a single progress update
    progress_write_retries: int = 3

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


def configure_logging(environment: str = "development", level: str = "INFO") -> None:
    """Configure structured logging with structlog."""
    use_json = environment == "production"

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level.upper(), logging.INFO),
    )

    processors: list[Callable[..., Any]] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if use_json:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
