"""Persistence layer - document stores and query evaluation."""

from accesshub.persistence.adapter import DocumentStore
from accesshub.persistence.config import DatabaseConfig, create_store
from accesshub.persistence.memory import MemoryDocumentStore

__all__ = ["DocumentStore", "DatabaseConfig", "create_store", "MemoryDocumentStore"]
