"""Process-wide settings loaded from environment variables."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

DEFAULT_SECRET_KEY = "dev-secret-key-change-me-in-production-0000"

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _flag(value: str | None) -> bool:
    return value is not None and value.strip().lower() in _TRUE_VALUES


@dataclass
class Settings:
    """Runtime configuration.

    Built once per process (usually via ``from_env``) and handed to
    ``create_app``; components receive the pieces they need through their
    constructors.
    """

    database_url: str = "memory://"
    secret_key: str = DEFAULT_SECRET_KEY
    environment: str = "development"
    log_level: str = "INFO"
    metadata_path: Path | None = None
    disable_auth: bool = False
    cookie_name: str = "token"
    # SameSite policy for the session cookie in production
    production_samesite: str = "strict"
    cors_origins: list[str] = field(default_factory=list)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        """Create settings from environment variables.

        Variables:
            DATABASE_URL: memory://, sqlite:///path or postgresql://...
            ACCESSHUB_SECRET_KEY: token signing secret (required in production)
            ACCESSHUB_ENV: development | test | production
            ACCESSHUB_LOG_LEVEL: logging level name
            ACCESSHUB_METADATA_PATH: directory overriding the bundled entity definitions
            ACCESSHUB_DISABLE_AUTH: skip permission checks on resource endpoints
            ACCESSHUB_COOKIE_NAME: session cookie name
            ACCESSHUB_COOKIE_SAMESITE: SameSite policy used in production
            ACCESSHUB_CORS_ORIGINS: comma-separated list of allowed origins
        """
        env = os.environ if environ is None else environ

        environment = env.get("ACCESSHUB_ENV", "development").strip().lower()
        secret_key = env.get("ACCESSHUB_SECRET_KEY")
        if not secret_key:
            if environment == "production":
                raise ValueError("ACCESSHUB_SECRET_KEY must be set in production")
            secret_key = DEFAULT_SECRET_KEY

        metadata_path = env.get("ACCESSHUB_METADATA_PATH")
        origins = env.get("ACCESSHUB_CORS_ORIGINS", "")

        return cls(
            database_url=env.get("DATABASE_URL", "memory://"),
            secret_key=secret_key,
            environment=environment,
            log_level=env.get("ACCESSHUB_LOG_LEVEL", "INFO").upper(),
            metadata_path=Path(metadata_path) if metadata_path else None,
            disable_auth=_flag(env.get("ACCESSHUB_DISABLE_AUTH")),
            cookie_name=env.get("ACCESSHUB_COOKIE_NAME", "token"),
            production_samesite=env.get("ACCESSHUB_COOKIE_SAMESITE", "strict").lower(),
            cors_origins=[o.strip() for o in origins.split(",") if o.strip()],
        )

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def cookie_samesite(self) -> str:
        return self.production_samesite if self.is_production else "lax"
