"""In-memory document store used for development, tests and single-process deployments."""

from asyncio import Lock
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from itertools import count
from logging import DEBUG, getLogger
from typing import Any

from chyrp.clients.protocols import (
    Document,
    DocumentRow,
    matches_array_contains,
    matches_equal,
    matches_less_or_equal,
)
from chyrp.configs import file_logger
from chyrp.db.transaction import BufferedTransaction
from chyrp.errors import TransactionConflictError
from chyrp.utils.cache_serializer import deserialize, serialize

logger = file_logger(getLogger(__name__))


class MemoryTransaction(BufferedTransaction):
    """Transaction attempt validated against per-document versions."""

    def __init__(self, store: "MemoryDocumentStore") -> None:
        super().__init__()
        self._store = store
        self._versions: dict[tuple[str, str], int] = {}

    async def _read(self, collection: str, key: str) -> Document | None:
        version, doc = await self._store.read_versioned(collection, key)
        self._versions[(collection, key)] = version
        return doc

    async def _apply(self, writes: dict[tuple[str, str], Document]) -> None:
        await self._store.commit_versioned(self._versions, writes)


class MemoryDocumentStore:
    """
    An asynchronous in-memory document store that mimics a hosted document database.

    Features:
        - Documents kept as serialized JSON, so callers never share references
        - Monotonic per-document versions for optimistic transactions
        - Field equality, range and array-contains queries
        - Thread-safe operations via asyncio.Lock
    """

    backend = "in-memory"

    def __init__(self) -> None:
        # collection -> key -> (version, serialized document)
        self._collections: dict[str, dict[str, tuple[int, str]]] = {}
        self._versions = count(1)
        self.is_connected: bool = True
        self._lock = Lock()

    async def connect(self) -> None:
        self.is_connected = True

    async def close(self) -> None:
        self.is_connected = False

    def _rows(self, collection: str) -> list[DocumentRow]:
        """Decode every document of a collection (internal, no lock)."""
        docs = self._collections.get(collection, {})
        return [(key, deserialize(payload)) for key, (_, payload) in sorted(docs.items())]

    def _write(self, collection: str, key: str, value: Document) -> None:
        payload = serialize(value)
        self._collections.setdefault(collection, {})[key] = (next(self._versions), payload)

    async def get_document(self, collection: str, key: str) -> Document | None:
        async with self._lock:
            entry = self._collections.get(collection, {}).get(key)
        return deserialize(entry[1]) if entry else None

    async def set_document(self, collection: str, key: str, value: Document) -> None:
        async with self._lock:
            self._write(collection, key, value)

    async def delete_document(self, collection: str, key: str) -> None:
        async with self._lock:
            self._collections.get(collection, {}).pop(key, None)

    async def list_documents(self, collection: str) -> list[DocumentRow]:
        async with self._lock:
            return self._rows(collection)

    async def query_equal(self, collection: str, field: str, value: Any) -> list[DocumentRow]:
        rows = await self.list_documents(collection)
        return [(key, doc) for key, doc in rows if matches_equal(doc, field, value)]

    async def query_less_or_equal(
        self,
        collection: str,
        field: str,
        value: Any,
    ) -> list[DocumentRow]:
        rows = await self.list_documents(collection)
        return [(key, doc) for key, doc in rows if matches_less_or_equal(doc, field, value)]

    async def query_array_contains(
        self,
        collection: str,
        field: str,
        value: Any,
    ) -> list[DocumentRow]:
        rows = await self.list_documents(collection)
        return [(key, doc) for key, doc in rows if matches_array_contains(doc, field, value)]

    async def read_versioned(self, collection: str, key: str) -> tuple[int, Document | None]:
        """Return the document with its version; absent documents have version 0."""
        async with self._lock:
            entry = self._collections.get(collection, {}).get(key)
        if entry is None:
            return 0, None
        return entry[0], deserialize(entry[1])

    async def commit_versioned(
        self,
        versions: dict[tuple[str, str], int],
        writes: dict[tuple[str, str], Document],
    ) -> None:
        """Apply writes only if every document read is still at the version seen."""
        async with self._lock:
            for (collection, key), seen in versions.items():
                entry = self._collections.get(collection, {}).get(key)
                current = entry[0] if entry else 0
                if current != seen:
                    mssg = f"{collection}/{key} changed during the transaction"
                    raise TransactionConflictError(mssg)
            for (collection, key), value in writes.items():
                self._write(collection, key, value)
        if logger.isEnabledFor(DEBUG):
            logger.debug("Committed %d document writes.", len(writes))

    @asynccontextmanager
    async def transaction(self) -> AsyncGenerator[MemoryTransaction]:
        yield MemoryTransaction(self)

    async def ping(self) -> bool:
        """Check if the store is alive."""
        return self.is_connected

    async def info(self) -> dict[str, Any]:
        """Get information about the in-memory store."""
        async with self._lock:
            return {
                "server": "In-Memory Document Store",
                "collections": len(self._collections),
                "total_documents": sum(len(docs) for docs in self._collections.values()),
            }
