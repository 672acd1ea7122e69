"""In-process document store, used for development and tests."""

import copy
import logging
import threading
from contextlib import contextmanager
from typing import Any, Iterator

from accesshub.metadata import MetadataLoader
from accesshub.persistence.base import BaseDocumentStore

logger = logging.getLogger(__name__)


class MemoryDocumentStore(BaseDocumentStore):
    """Keeps every entity table as a dict of id -> document.

    Transactions snapshot all tables on entry and restore the snapshot if
    the block raises. Nested transactions join the outermost one.
    """

    def __init__(self, metadata: MetadataLoader):
        super().__init__(metadata)
        self._tables: dict[str, dict[str, dict[str, Any]]] = {
            name: {} for name in metadata.list_entities()
        }
        self._lock = threading.RLock()
        self._depth = 0

    @contextmanager
    def transaction(self) -> Iterator[None]:
        with self._lock:
            snapshot = copy.deepcopy(self._tables) if self._depth == 0 else None
            self._depth += 1
            try:
                yield
            except BaseException:
                if snapshot is not None:
                    self._tables = snapshot
                    logger.debug("Rolled back in-memory transaction")
                raise
            finally:
                self._depth -= 1

    def _table(self, entity: str) -> dict[str, dict[str, Any]]:
        return self._tables.setdefault(entity, {})

    def _rows(self, entity: str) -> list[dict[str, Any]]:
        with self._lock:
            return list(self._table(entity).values())

    def _get(self, entity: str, id: str) -> dict[str, Any] | None:
        with self._lock:
            return self._table(entity).get(id)

    def _insert(self, entity: str, document: dict[str, Any]) -> None:
        self._table(entity)[document["id"]] = copy.deepcopy(document)

    def _replace(self, entity: str, id: str, document: dict[str, Any]) -> None:
        self._table(entity)[id] = copy.deepcopy(document)

    def _remove(self, entity: str, id: str) -> None:
        self._table(entity).pop(id, None)

    def clear(self) -> None:
        with self._lock:
            for table in self._tables.values():
                table.clear()
