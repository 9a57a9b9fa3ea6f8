"""Protocol definitions for document store implementations."""

from collections.abc import Awaitable
from contextlib import AbstractAsyncContextManager
from typing import Any, Protocol, TypeAlias, runtime_checkable

Document: TypeAlias = dict[str, Any]
DocumentRow: TypeAlias = tuple[str, Document]


@runtime_checkable
class DocumentTransactionProtocol(Protocol):
    """
    One attempt of an optimistic read-modify-write.

    Reads must precede writes. `commit` raises `TransactionConflictError`
    when a document read in this attempt was changed by someone else.
    """

    def get(self, collection: str, key: str) -> Awaitable[Document | None]:
        """Read a document and remember its version."""
        ...

    def set(self, collection: str, key: str, value: Document) -> None:
        """Buffer a full overwrite."""
        ...

    def update(self, collection: str, key: str, fields: Document) -> None:
        """Buffer a field merge into a document read earlier."""
        ...

    def commit(self) -> Awaitable[None]:
        """Apply buffered writes atomically."""
        ...


@runtime_checkable
class DocumentStoreProtocol(Protocol):
    """
    Protocol for document store implementations.

    Both MemoryDocumentStore and RedisDocumentStore conform to this protocol.
    Errors reaching the store surface as `DatabaseError` subclasses.
    """

    backend: str

    def get_document(self, collection: str, key: str) -> Awaitable[Document | None]:
        """Get a document, or None when absent."""
        ...

    def set_document(self, collection: str, key: str, value: Document) -> Awaitable[None]:
        """Overwrite a document."""
        ...

    def delete_document(self, collection: str, key: str) -> Awaitable[None]:
        """Delete a document; deleting an absent key is not an error."""
        ...

    def list_documents(self, collection: str) -> Awaitable[list[DocumentRow]]:
        """Return every document of a collection."""
        ...

    def query_equal(self, collection: str, field: str, value: Any) -> Awaitable[list[DocumentRow]]:
        """Return documents where `field == value`."""
        ...

    def query_less_or_equal(
        self,
        collection: str,
        field: str,
        value: Any,
    ) -> Awaitable[list[DocumentRow]]:
        """Return documents where `field <= value`."""
        ...

    def query_array_contains(
        self,
        collection: str,
        field: str,
        value: Any,
    ) -> Awaitable[list[DocumentRow]]:
        """Return documents whose array `field` contains `value`."""
        ...

    def transaction(self) -> AbstractAsyncContextManager[DocumentTransactionProtocol]:
        """Open one transaction attempt."""
        ...

    def ping(self) -> Awaitable[bool]:
        """Check if the store is reachable."""
        ...

    def info(self) -> Awaitable[dict[str, Any]]:
        """Get information about the store."""
        ...


def matches_equal(doc: Document, field: str, value: Any) -> bool:
    return field in doc and doc[field] == value


def matches_less_or_equal(doc: Document, field: str, value: Any) -> bool:
    """Type-mismatched or missing fields never match."""
    current = doc.get(field)
    if current is None:
        return False
    try:
        return current <= value
    except TypeError:
        return False


def matches_array_contains(doc: Document, field: str, value: Any) -> bool:
    current = doc.get(field)
    return isinstance(current, list) and value in current
