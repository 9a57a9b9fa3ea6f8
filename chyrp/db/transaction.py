"""
Optimistic transactions over a document store.

`BufferedTransaction` holds the read snapshots and buffered writes of one
attempt; stores subclass it to supply the versioned read and the atomic
apply. `run_transaction` is the compare-and-swap loop: it re-runs the body
on `TransactionConflictError` and gives up with `TransactionAbortedError`
once the attempt budget is spent. Any other error ends the loop at once.
"""

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from copy import deepcopy
from logging import getLogger
from typing import TypeVar

from tenacity import (
    AsyncRetrying,
    RetryError,
    retry_if_exception_type,
    stop_after_attempt,
)

from chyrp.clients.protocols import Document, DocumentStoreProtocol, DocumentTransactionProtocol
from chyrp.configs import TransactionConfig, file_logger
from chyrp.decorators import backoff, log_retry
from chyrp.errors import (
    RecordNotFoundError,
    TransactionAbortedError,
    TransactionConflictError,
    TransactionError,
)

logger = file_logger(getLogger(__name__))

T = TypeVar("T")

TransactionBody = Callable[[DocumentTransactionProtocol], Awaitable[T]]


class BufferedTransaction(ABC):
    """Read snapshots and buffered writes of a single transaction attempt."""

    def __init__(self) -> None:
        self._snapshots: dict[tuple[str, str], Document | None] = {}
        self._writes: dict[tuple[str, str], Document] = {}
        self._committed = False

    @abstractmethod
    async def _read(self, collection: str, key: str) -> Document | None:
        """Read a document and register it for conflict detection."""

    @abstractmethod
    async def _apply(self, writes: dict[tuple[str, str], Document]) -> None:
        """Atomically apply writes, raising TransactionConflictError on a stale read."""

    async def get(self, collection: str, key: str) -> Document | None:
        if self._writes:
            mssg = "All reads must happen before writes in a transaction"
            raise TransactionError(mssg)
        doc = await self._read(collection, key)
        self._snapshots[(collection, key)] = doc
        return deepcopy(doc)

    def set(self, collection: str, key: str, value: Document) -> None:
        self._writes[(collection, key)] = dict(value)

    def update(self, collection: str, key: str, fields: Document) -> None:
        ref = (collection, key)
        if ref in self._writes:
            base = self._writes[ref]
        elif ref in self._snapshots:
            base = self._snapshots[ref]
            if base is None:
                mssg = f"No document to update at {collection}/{key}"
                raise RecordNotFoundError(mssg)
        else:
            mssg = f"{collection}/{key} must be read before it is updated"
            raise TransactionError(mssg)
        self._writes[ref] = {**base, **fields}

    async def commit(self) -> None:
        if self._committed:
            mssg = "Transaction already committed"
            raise TransactionError(mssg)
        if self._writes:
            await self._apply(self._writes)
        self._committed = True


async def _attempt(store: DocumentStoreProtocol, body: TransactionBody[T]) -> T:
    async with store.transaction() as tx:
        result = await body(tx)
        await tx.commit()
    return result


async def run_transaction(
    store: DocumentStoreProtocol,
    body: TransactionBody[T],
    config: TransactionConfig | None = None,
    name: str = "transaction",
) -> T:
    """
    Run `body` inside an optimistic transaction, retrying on conflicts.

    Args:
        store: Document store providing `transaction()`.
        body: Coroutine function receiving the transaction; it reads through
            `tx.get` and buffers writes with `tx.set`/`tx.update`.
        config: Retry budget and backoff; defaults to `TransactionConfig()`.
        name: What the transaction does, for retry and abort log lines.

    Returns:
        Whatever the body returned on the committed attempt.

    Raises:
        TransactionAbortedError: Every attempt ended in a conflict.
    """
    cfg = config or TransactionConfig()
    retrying = AsyncRetrying(
        stop=stop_after_attempt(cfg.max_attempts),
        wait=backoff(cfg.base_delay, cfg.max_delay),
        retry=retry_if_exception_type(TransactionConflictError),
        before_sleep=log_retry(name, cfg.max_attempts),
    )
    try:
        async for attempt in retrying:
            with attempt:
                result = await _attempt(store, body)
    except RetryError as e:
        last = e.last_attempt.exception()
        logger.warning("%s aborted after %d attempts: %s", name, cfg.max_attempts, last)
        mssg = f"Transaction aborted after {cfg.max_attempts} conflicting attempts"
        raise TransactionAbortedError(mssg, attempts=cfg.max_attempts) from last
    return result
