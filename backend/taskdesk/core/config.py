"""Application settings and environment configuration loading."""

from __future__ import annotations

from pathlib import Path
from typing import Self

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

BACKEND_ROOT = Path(__file__).resolve().parents[2]
DEFAULT_ENV_FILE = BACKEND_ROOT / ".env"
JWT_SECRET_MIN_LENGTH = 32
JWT_SECRET_PLACEHOLDERS = frozenset(
    {
        "change-me",
        "changeme",
        "replace-me",
        "secret",
    },
)


class Settings(BaseSettings):
    """Typed runtime configuration sourced from environment variables."""

    model_config = SettingsConfigDict(
        # Load `backend/.env` regardless of current working directory.
        env_file=[DEFAULT_ENV_FILE, ".env"],
        env_file_encoding="utf-8",
        extra="ignore",
    )

    environment: str = "dev"
    database_url: str = f"sqlite+aiosqlite:///{BACKEND_ROOT / 'taskdesk.db'}"

    # Identity claims are issued by the surrounding auth service; we only verify them.
    jwt_secret: str = ""
    jwt_algorithm: str = "HS256"
    jwt_issuer: str = ""
    jwt_leeway: float = 10.0

    cors_origins: str = ""

    # Database lifecycle
    db_auto_migrate: bool = False

    # Task defaults
    default_task_priority: str = "medium"

    # Logging
    log_level: str = "INFO"
    log_format: str = "text"
    log_use_utc: bool = False

    @model_validator(mode="after")
    def _defaults(self) -> Self:
        secret = self.jwt_secret.strip()
        if (
            not secret
            or len(secret) < JWT_SECRET_MIN_LENGTH
            or secret.lower() in JWT_SECRET_PLACEHOLDERS
        ):
            raise ValueError(
                "JWT_SECRET must be at least 32 characters and non-placeholder.",
            )
        if self.default_task_priority not in {"low", "medium", "high"}:
            raise ValueError("DEFAULT_TASK_PRIORITY must be one of low, medium, high.")
        # In dev, default to applying Alembic migrations at startup.
        if "db_auto_migrate" not in self.model_fields_set and self.environment == "dev":
            self.db_auto_migrate = True
        return self

    def cors_origin_list(self) -> tuple[str, ...]:
        """Return normalized CORS origins from config."""
        values: list[str] = []
        for raw in self.cors_origins.split(","):
            normalized = raw.strip()
            if normalized and normalized not in values:
                values.append(normalized)
        return tuple(values)


settings = Settings()
