"""Database configuration and store factory."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from accesshub.metadata import MetadataLoader
    from accesshub.persistence.adapter import DocumentStore


@dataclass
class DatabaseConfig:
    """Database connection configuration.

    Supports memory://, sqlite:/// and postgresql:// URL schemes.
    """

    url: str

    @classmethod
    def from_env(cls) -> DatabaseConfig:
        """Create config from the DATABASE_URL env var (default: in-memory)."""
        return cls(url=os.environ.get("DATABASE_URL", "memory://"))

    @property
    def is_memory(self) -> bool:
        return self.url.startswith("memory")

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith("sqlite")

    @property
    def is_postgresql(self) -> bool:
        return self.url.startswith("postgresql")

    @property
    def sqlite_path(self) -> str | None:
        """Filesystem path of a file-backed SQLite database, if any."""
        if not self.is_sqlite:
            return None
        path = self.url.replace("sqlite:///", "", 1)
        if not path or path == ":memory:" or path == "sqlite://":
            return None
        return path

    @property
    def sqlalchemy_url(self) -> str:
        """URL suitable for SQLAlchemy engine creation.

        Ensures postgresql:// URLs use the psycopg (v3) driver since
        the project depends on psycopg[binary], not psycopg2.
        """
        if self.url.startswith("postgresql://"):
            return self.url.replace("postgresql://", "postgresql+psycopg://", 1)
        return self.url


def create_store(config: DatabaseConfig, metadata: MetadataLoader) -> DocumentStore:
    """Create a connected document store based on the database URL scheme.

    Raises:
        ValueError: For unsupported URL schemes.
    """
    if config.is_memory:
        from accesshub.persistence.memory import MemoryDocumentStore

        return MemoryDocumentStore(metadata)

    if config.is_sqlite or config.is_postgresql:
        from accesshub.persistence.sql import SQLDocumentStore

        if config.sqlite_path:
            Path(config.sqlite_path).parent.mkdir(parents=True, exist_ok=True)

        store = SQLDocumentStore.from_url(metadata, config.sqlalchemy_url)
        store.connect()
        return store

    raise ValueError(f"Unsupported database URL scheme: {config.url}")
