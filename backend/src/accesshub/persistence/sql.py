"""SQLAlchemy-backed document store.

Each entity gets one table with an ``id`` primary key and a JSON
``document`` column holding the record. Scalar and composite conditions,
counts and paging on plain fields run in the database; relation filters
and whatever else SQL cannot express exactly are finished by the shared
evaluator over decoded documents, so results match the in-memory store.

Works with SQLite (``sqlite:///path``) and PostgreSQL
(``postgresql://...`` through psycopg v3).
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Iterator

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool

from accesshub.errors import StorageError
from accesshub.metadata import (
    CompositeField,
    MetadataLoader,
    ScalarField,
    ScalarType,
)
from accesshub.persistence.base import BaseDocumentStore
from accesshub.persistence.sql_where import SQLWhereCompiler

logger = logging.getLogger(__name__)


@dataclass
class _Session:
    connection: Connection
    rows: dict[str, list[dict[str, Any]]] = field(default_factory=dict)


def _encode(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: _encode(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_encode(v) for v in value]
    return value


def _parse_datetime(value: Any) -> Any:
    if not isinstance(value, str):
        return value
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return value
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def create_sql_engine(url: str) -> Engine:
    """Create an engine suitable for use from FastAPI's worker threads."""
    if url.startswith("sqlite"):
        if url in ("sqlite://", "sqlite:///:memory:"):
            return sa.create_engine(
                "sqlite://",
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        return sa.create_engine(url, connect_args={"check_same_thread": False})
    return sa.create_engine(url, pool_pre_ping=True)


class SQLDocumentStore(BaseDocumentStore):
    """Document store on top of SQLAlchemy Core."""

    def __init__(self, metadata: MetadataLoader, engine: Engine):
        super().__init__(metadata)
        self._engine = engine
        self._schema = sa.MetaData()
        self._tables: dict[str, sa.Table] = {}
        for name in metadata.list_entities():
            entity = metadata.require_entity(name)
            self._tables[name] = sa.Table(
                entity.table_name,
                self._schema,
                sa.Column("id", sa.String(24), primary_key=True),
                sa.Column("document", sa.JSON().with_variant(JSONB(), "postgresql"), nullable=False),
            )
        self._where = SQLWhereCompiler(metadata, engine.dialect.name)
        self._session_var: ContextVar[_Session | None] = ContextVar(
            f"accesshub_sql_session_{id(self)}", default=None
        )

    @property
    def engine(self) -> Engine:
        return self._engine

    @classmethod
    def from_url(cls, metadata: MetadataLoader, url: str) -> SQLDocumentStore:
        return cls(metadata, create_sql_engine(url))

    def connect(self) -> None:
        """Create entity tables that don't exist yet."""
        try:
            self._schema.create_all(self._engine)
        except SQLAlchemyError as e:
            raise StorageError("Could not initialize the database", cause=e)

    def close(self) -> None:
        self._engine.dispose()

    # ── Sessions ─────────────────────────────────────────────────────────

    @contextmanager
    def _session(self) -> Iterator[_Session]:
        current = self._session_var.get()
        if current is not None:
            yield current
            return

        try:
            with self._engine.begin() as connection:
                session = _Session(connection)
                token = self._session_var.set(session)
                try:
                    yield session
                finally:
                    self._session_var.reset(token)
        except SQLAlchemyError as e:
            raise StorageError(cause=e)

    @contextmanager
    def transaction(self) -> Iterator[None]:
        with self._session():
            yield

    def find_many(self, entity, where=None, select=None, order_by=None, skip=0, take=None):
        table = self._tables[entity]
        compiled = self._where.compile(entity, table, where)
        ordering = self._where.order_by(entity, table, order_by) if compiled.exact else None

        with self._session() as session:
            evaluator = self._evaluator()
            if ordering is not None:
                rows = self._select(session, entity, compiled.clause, ordering, skip, take)
            else:
                rows = self._select(session, entity, compiled.clause)
                if not compiled.exact:
                    rows = evaluator.filter(entity, rows, where)
                rows = evaluator.sort(entity, rows, order_by)
                end = skip + take if take is not None else None
                rows = rows[skip:end]
            return [evaluator.project(entity, r, select) for r in rows]

    def find_unique(self, entity, id, select=None):
        with self._session():
            return super().find_unique(entity, id, select)

    def count(self, entity, where=None):
        table = self._tables[entity]
        compiled = self._where.compile(entity, table, where)
        with self._session() as session:
            if not compiled.exact:
                rows = self._select(session, entity, compiled.clause)
                return len(self._evaluator().filter(entity, rows, where))
            query = sa.select(sa.func.count()).select_from(table)
            if compiled.clause is not None:
                query = query.where(compiled.clause)
            return session.connection.execute(query).scalar_one()

    def _select(self, session, entity, clause, ordering=None, skip=0, take=None):
        table = self._tables[entity]
        query = sa.select(table.c.document)
        if clause is not None:
            query = query.where(clause)
        if ordering:
            query = query.order_by(*ordering)
        if take is not None:
            query = query.limit(take)
        if skip:
            query = query.offset(skip)
        return [self._decode(entity, row.document) for row in session.connection.execute(query)]

    # ── Primitives ───────────────────────────────────────────────────────

    def _rows(self, entity: str) -> list[dict[str, Any]]:
        with self._session() as session:
            if entity not in session.rows:
                session.rows[entity] = self._select(session, entity, None)
            return session.rows[entity]

    def _get(self, entity: str, id: str) -> dict[str, Any] | None:
        with self._session() as session:
            table = self._tables[entity]
            row = session.connection.execute(
                sa.select(table.c.document).where(table.c.id == id)
            ).first()
            return self._decode(entity, row.document) if row is not None else None

    def _insert(self, entity: str, document: dict[str, Any]) -> None:
        with self._session() as session:
            table = self._tables[entity]
            session.connection.execute(
                table.insert().values(id=document["id"], document=_encode(document))
            )
            session.rows.pop(entity, None)

    def _replace(self, entity: str, id: str, document: dict[str, Any]) -> None:
        with self._session() as session:
            table = self._tables[entity]
            session.connection.execute(
                table.update().where(table.c.id == id).values(document=_encode(document))
            )
            session.rows.pop(entity, None)

    def _remove(self, entity: str, id: str) -> None:
        with self._session() as session:
            table = self._tables[entity]
            session.connection.execute(table.delete().where(table.c.id == id))
            session.rows.pop(entity, None)

    # ── Decoding ─────────────────────────────────────────────────────────

    def _decode(self, entity: str, document: dict[str, Any]) -> dict[str, Any]:
        """Restore DateTime values stored as ISO-8601 strings."""
        model = self.metadata.get_entity(entity)
        if model is None:
            return dict(document)
        return self._decode_fields(model.fields, document)

    def _decode_fields(self, fields: dict, document: dict[str, Any]) -> dict[str, Any]:
        result = dict(document)
        for name, value in document.items():
            descriptor = fields.get(name)
            if value is None or descriptor is None:
                continue
            if isinstance(descriptor, ScalarField) and descriptor.type is ScalarType.DATETIME:
                if descriptor.is_list and isinstance(value, list):
                    result[name] = [_parse_datetime(v) for v in value]
                else:
                    result[name] = _parse_datetime(value)
            elif isinstance(descriptor, CompositeField):
                composite = self.metadata.get_type(descriptor.type_name)
                if composite is None:
                    continue
                if isinstance(value, list):
                    result[name] = [
                        self._decode_fields(composite.fields, v) if isinstance(v, dict) else v
                        for v in value
                    ]
                elif isinstance(value, dict):
                    result[name] = self._decode_fields(composite.fields, value)
        return result
