# chyrp/clients/redis_store.py
"""Redis-backed document store shared by every server process."""

from collections.abc import AsyncGenerator, Awaitable
from contextlib import asynccontextmanager
from logging import getLogger
from typing import Any

from redis.asyncio import ConnectionPool, Redis
from redis.asyncio.client import Pipeline
from redis.exceptions import RedisError, WatchError

from chyrp.clients.protocols import (
    Document,
    DocumentRow,
    matches_array_contains,
    matches_equal,
    matches_less_or_equal,
)
from chyrp.configs import StoreConfig, file_logger, pool_kwargs
from chyrp.db.transaction import BufferedTransaction
from chyrp.decorators import with_retry
from chyrp.errors import DatabaseConnectionError, TransactionConflictError
from chyrp.utils.cache_serializer import deserialize, serialize

logger = file_logger(getLogger(__name__))


class RedisTransaction(BufferedTransaction):
    """Transaction attempt using WATCH/MULTI/EXEC on the documents it reads."""

    def __init__(self, store: "RedisDocumentStore", pipe: Pipeline) -> None:
        super().__init__()
        self._store = store
        self._pipe = pipe

    async def _read(self, collection: str, key: str) -> Document | None:
        doc_key = self._store.doc_key(collection, key)
        try:
            await self._pipe.watch(doc_key)
            raw = await self._pipe.get(doc_key)
        except RedisError as e:
            logger.exception(f"Failed to read {doc_key} in transaction")
            mssg = f"Transaction read failed for {collection}/{key}: {e}"
            raise DatabaseConnectionError(mssg) from e
        return deserialize(raw) if raw is not None else None

    async def _apply(self, writes: dict[tuple[str, str], Document]) -> None:
        self._pipe.multi()
        for (collection, key), value in writes.items():
            self._pipe.set(self._store.doc_key(collection, key), serialize(value))
            self._pipe.sadd(self._store.index_key(collection), key)
        try:
            await self._pipe.execute()
        except WatchError as e:
            mssg = f"Watched documents changed during the transaction: {list(writes)}"
            raise TransactionConflictError(mssg) from e
        except RedisError as e:
            logger.exception("Failed to commit transaction")
            mssg = f"Transaction commit failed: {e}"
            raise DatabaseConnectionError(mssg) from e


class RedisDocumentStore:
    """
    Async Redis document store with connection pooling.

    Documents are JSON strings under `<prefix>:doc:<collection>:<key>`; each
    collection keeps a set of its keys under `<prefix>:index:<collection>`
    so it can be listed and queried without SCAN.
    """

    backend = "redis"

    def __init__(self, key_prefix: str | None = None) -> None:
        """Initialize Redis document store."""
        self.config = pool_kwargs
        self.key_prefix = key_prefix or StoreConfig().key_prefix
        self._pool: ConnectionPool | None = None
        self._redis: Redis | None = None

    @with_retry("redis connect", max_attempts=3, retry_on=(DatabaseConnectionError,))
    async def connect(self) -> None:
        """Establish Redis connection pool."""
        try:
            self._pool = ConnectionPool(**self.config)
            self._redis = Redis(connection_pool=self._pool)
            ping_result = self._redis.ping()
            result = await ping_result if isinstance(ping_result, Awaitable) else ping_result
            if not result:
                mssg = "Redis ping returned False"
                raise DatabaseConnectionError(mssg)
            logger.info("Redis connection successful. Document store is using Redis.")
        except (ConnectionError, RedisError) as e:
            logger.exception("Failed to connect to Redis")
            mssg = f"Cannot connect to Redis at {self.config.get('host')}:{self.config.get('port')}"
            raise DatabaseConnectionError(mssg) from e

    async def close(self) -> None:
        """Close Redis connection pool."""
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None
            logger.info("Redis connection closed.")

    @property
    def client(self) -> Redis:
        """Get Redis client instance."""
        if self._redis is None:
            mssg = "Redis client not initialized. Call connect() first."
            raise DatabaseConnectionError(mssg)
        return self._redis

    def doc_key(self, collection: str, key: str) -> str:
        return f"{self.key_prefix}:doc:{collection}:{key}"

    def index_key(self, collection: str) -> str:
        return f"{self.key_prefix}:index:{collection}"

    async def get_document(self, collection: str, key: str) -> Document | None:
        try:
            raw = await self.client.get(self.doc_key(collection, key))
        except RedisError as e:
            logger.exception(f"Failed to get {collection}/{key}")
            mssg = f"Document get failed for {collection}/{key}: {e}"
            raise DatabaseConnectionError(mssg) from e
        return deserialize(raw) if raw is not None else None

    async def set_document(self, collection: str, key: str, value: Document) -> None:
        payload = serialize(value)
        try:
            async with self.client.pipeline(transaction=True) as pipe:
                pipe.set(self.doc_key(collection, key), payload)
                pipe.sadd(self.index_key(collection), key)
                await pipe.execute()
        except RedisError as e:
            logger.exception(f"Failed to set {collection}/{key}")
            mssg = f"Document set failed for {collection}/{key}: {e}"
            raise DatabaseConnectionError(mssg) from e

    async def delete_document(self, collection: str, key: str) -> None:
        try:
            async with self.client.pipeline(transaction=True) as pipe:
                pipe.delete(self.doc_key(collection, key))
                pipe.srem(self.index_key(collection), key)
                await pipe.execute()
        except RedisError as e:
            logger.exception(f"Failed to delete {collection}/{key}")
            mssg = f"Document delete failed for {collection}/{key}: {e}"
            raise DatabaseConnectionError(mssg) from e

    async def list_documents(self, collection: str) -> list[DocumentRow]:
        try:
            keys = sorted(await self.client.smembers(self.index_key(collection)))
            if not keys:
                return []
            raws = await self.client.mget([self.doc_key(collection, key) for key in keys])
        except RedisError as e:
            logger.exception(f"Failed to list {collection}")
            mssg = f"Document listing failed for {collection}: {e}"
            raise DatabaseConnectionError(mssg) from e
        # Index entries can outlive a document deleted by another writer
        return [(key, deserialize(raw)) for key, raw in zip(keys, raws, strict=True) if raw]

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

    @asynccontextmanager
    async def transaction(self) -> AsyncGenerator[RedisTransaction]:
        async with self.client.pipeline(transaction=True) as pipe:
            yield RedisTransaction(self, pipe)

    async def ping(self) -> bool:
        """Ping Redis server."""
        try:
            return bool(await self.client.ping())
        except RedisError as e:
            logger.exception("Failed to ping Redis")
            mssg = f"Document store ping failed: {e}"
            raise DatabaseConnectionError(mssg) from e

    async def info(self) -> dict[str, Any]:
        """Get Redis server info."""
        try:
            info = await self.client.info()
        except RedisError as e:
            logger.exception("Failed to get server info")
            mssg = f"Document store info failed: {e}"
            raise DatabaseConnectionError(mssg) from e
        if not isinstance(info, dict):
            return {"server": "Redis"}
        return {
            "server": "Redis",
            "redis_version": info.get("redis_version"),
            "connected_clients": info.get("connected_clients"),
            "used_memory_human": info.get("used_memory_human"),
        }
