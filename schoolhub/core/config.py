"""
SchoolHub settings, read from environment variables with pydantic-settings.

Set ENV_FILE to load a dotenv file on top of the process environment when
running locally.
"""

import os
from enum import Enum

from pydantic import ValidationInfo, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_LOCAL_HOSTS = ("localhost", "127.0.0.1")


class AppEnvironment(str, Enum):
    LOCAL = "local"
    TEST = "test"
    PROD = "prod"


class Settings(BaseSettings):
    """Every knob of the API process; field names map to upper-case env vars."""

    model_config = SettingsConfigDict(env_file=os.getenv("ENV_FILE") or None, extra="ignore")

    app_env: AppEnvironment = AppEnvironment.LOCAL
    app_name: str = "schoolhub-api"
    app_log_level: str = "INFO"

    # Logging, request ids and /metrics
    observability_enabled: bool = True
    observability_structured_logs: bool = True
    observability_request_id_header: str = "X-Request-ID"
    metrics_token: str | None = None

    # Storage
    database_url: str = "sqlite:///./schoolhub.db"
    database_echo: bool = False
    db_pool_size: int = 20
    db_max_overflow: int = 10
    db_pool_timeout: int = 30
    db_pool_recycle: int = 3600
    db_statement_timeout_seconds: int = 5
    db_create_schema: bool = True

    # Upper bound for one email/phone pattern match
    validation_pattern_timeout_seconds: float = 2.0

    # Per-client request budgets under /api/v1, per window
    rate_limit_enabled: bool = True
    rate_limit_read_requests: int = 300
    rate_limit_write_requests: int = 60
    rate_limit_window_seconds: int = 60

    # Comma-separated
    cors_origins: str = "http://localhost:3000,http://localhost:5173"

    @property
    def cors_origins_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    @field_validator("app_env", mode="before")
    @classmethod
    def parse_app_env(cls, value: object) -> object:
        if isinstance(value, str):
            allowed = [env.value for env in AppEnvironment]
            if value.lower() not in allowed:
                raise ValueError(f"app_env must be one of {allowed}, got '{value}'")
            return value.lower()
        return value

    @field_validator("database_url")
    @classmethod
    def require_database_url(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("DATABASE_URL must be set")
        return value

    @field_validator("validation_pattern_timeout_seconds")
    @classmethod
    def require_positive_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("VALIDATION_PATTERN_TIMEOUT_SECONDS must be positive")
        return value

    @field_validator(
        "rate_limit_read_requests", "rate_limit_write_requests", "rate_limit_window_seconds"
    )
    @classmethod
    def require_positive_rate_limit(cls, value: int, info: ValidationInfo) -> int:
        if value <= 0:
            raise ValueError(f"{info.field_name.upper()} must be positive")
        return value

    @model_validator(mode="after")
    def check_production(self) -> "Settings":
        """Refuse local-only storage and CORS settings when APP_ENV=prod."""
        if self.app_env is not AppEnvironment.PROD:
            return self
        if self.is_sqlite:
            raise ValueError("DATABASE_URL must not use SQLite in production")
        local = [o for o in self.cors_origins_list if any(h in o for h in _LOCAL_HOSTS)]
        if local:
            raise ValueError(f"CORS origins must not contain localhost in production: {local}")
        return self


settings = Settings()
