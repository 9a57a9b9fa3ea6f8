# chyrp/managers/cache_manager.py
"""Two-tier read-through cache with tag-based invalidation."""

from asyncio import CancelledError, Future, current_task, gather, get_running_loop, shield
from collections.abc import Callable
from copy import deepcopy
from logging import DEBUG, getLogger
from time import time
from typing import Any

from pydantic import ValidationError
from pydantic_core import PydanticSerializationError
from redis.exceptions import RedisError

from chyrp.clients.protocols import DocumentRow, DocumentStoreProtocol
from chyrp.configs import CacheConfig, file_logger
from chyrp.data import CacheStatistics
from chyrp.errors import BASE_EXCEPTION, BaseAppError
from chyrp.managers.cache_types import (
    CacheCallback,
    CacheKey,
    CacheLookup,
    CacheTagSet,
    CacheValue,
)
from chyrp.schemas.cache import CacheEntry

logger = file_logger(getLogger(__name__))

# Anything the persistent tier can raise; all of it degrades to a miss or a no-op.
FAIL_OPEN_ERRORS: tuple[type[BaseException], ...] = (
    BaseAppError,
    RedisError,
    ValidationError,
    ValueError,
    TypeError,
    *BASE_EXCEPTION,
)


class CacheManager:
    """
    Read-through, write-through cache over a document store.

    Tiers:
        - Memory: a per-process dict, consulted first, never suspends
        - Persistent: the `cache` collection of the document store, shared
          by every process and surviving restarts

    Features:
        - Time-based expiry with lazy deletion on read and explicit `cleanup`
        - Tag-based bulk invalidation across both tiers
        - Fail-open persistent tier: errors are logged and counted, never raised
        - Optional coalescing of concurrent misses for the same key
        - Statistics tracking

    One instance is built at application startup and injected into every
    consumer.
    """

    def __init__(
        self,
        store: DocumentStoreProtocol,
        config: CacheConfig | None = None,
        clock: Callable[[], float] = time,
    ) -> None:
        """
        Initialize cache manager.

        Args:
            store: Document store holding the persistent tier.
            config: Cache configuration; defaults to `CacheConfig()`.
            clock: Epoch-seconds time source.
        """
        self.store = store
        self.cache_config = config or CacheConfig()
        self.collection = self.cache_config.collection
        self.statistics = CacheStatistics()
        self._clock = clock
        self._memory: dict[CacheKey, CacheEntry] = {}
        self._inflight: dict[CacheKey, Future[CacheValue]] = {}

    @property
    def memory_size(self) -> int:
        """Number of entries held by the memory tier."""
        return len(self._memory)

    def _ttl_for(self, ttl: float | None) -> float:
        return min(ttl or self.cache_config.default_ttl, self.cache_config.max_ttl)

    def _drop_memory(self, predicate: Callable[[CacheEntry], bool]) -> int:
        doomed = [key for key, entry in self._memory.items() if predicate(entry)]
        for key in doomed:
            del self._memory[key]
        return len(doomed)

    async def _delete_rows(self, rows: list[DocumentRow]) -> None:
        await gather(*(self.store.delete_document(self.collection, key) for key, _ in rows))

    async def try_get(self, key: CacheKey) -> CacheLookup:
        """
        Look a key up in both tiers.

        Returns:
            `HIT` with the value, `MISS`, or `ERROR` when the persistent tier
            failed. An expired persistent entry is deleted and reported as a miss.
        """
        now = self._clock()
        entry = self._memory.get(key)
        if entry is not None:
            if entry.is_live(now):
                self.statistics.record_hit("memory")
                return CacheLookup.found(deepcopy(entry.data))
            del self._memory[key]

        try:
            doc = await self.store.get_document(self.collection, key)
            stored = CacheEntry.model_validate(doc) if doc is not None else None
        except FAIL_OPEN_ERRORS as e:
            logger.warning("Cache get failed for key %s: %s", key, e)
            self.statistics.record_error()
            return CacheLookup.failed(e)

        if stored is None:
            self.statistics.record_miss()
            return CacheLookup.missing()

        if stored.is_live(now):
            self._memory[key] = stored
            self.statistics.record_hit("store")
            return CacheLookup.found(deepcopy(stored.data))

        if logger.isEnabledFor(DEBUG):
            logger.debug("Cache entry %s expired, removing.", key)
        self.statistics.record_expiration()
        await self.delete(key)
        self.statistics.record_miss()
        return CacheLookup.missing()

    async def get(self, key: CacheKey) -> CacheValue | None:
        """Get value from cache, or None when absent, expired or unreadable."""
        return (await self.try_get(key)).value

    async def set(
        self,
        key: CacheKey,
        data: CacheValue,
        ttl: float | None = None,
        tags: CacheTagSet | None = None,
    ) -> bool:
        """
        Set value in both tiers.

        Args:
            key: Cache key.
            data: JSON-serializable value.
            ttl: Lifetime in seconds; falsy means the configured default.
            tags: Invalidation tags for the entry.

        Returns:
            True if the persistent tier accepted the write. The memory tier
            is always written.

        Both tiers hold the JSON form of `data`, detached from the caller's
        object: later mutations of `data` are not cached, and a memory hit
        returns the same types a persistent hit would.
        """
        now = self._clock()
        try:
            document = CacheEntry(
                key=key,
                data=data,
                created_at=now,
                expires_at=now + self._ttl_for(ttl),
                tags=sorted(set(tags or ())),
            ).model_dump(mode="json")
        except PydanticSerializationError as e:
            logger.warning("Cache value for key %s is not JSON-serializable: %s", key, e)
            await self.delete(key)
            self.statistics.record_error()
            return False
        self._memory[key] = CacheEntry.model_validate(deepcopy(document))
        self.statistics.record_set()

        try:
            await self.store.set_document(self.collection, key, document)
        except FAIL_OPEN_ERRORS as e:
            logger.warning("Cache set failed for key %s: %s", key, e)
            self.statistics.record_error()
            return False
        return True

    async def delete(self, key: CacheKey) -> None:
        """Delete a key from both tiers. Absent keys are ignored."""
        self._memory.pop(key, None)
        try:
            await self.store.delete_document(self.collection, key)
        except FAIL_OPEN_ERRORS as e:
            logger.warning("Cache delete failed for key %s: %s", key, e)
            self.statistics.record_error()
            return
        self.statistics.record_delete()

    async def clear_by_tags(self, tags: CacheTagSet) -> int:
        """
        Remove every entry carrying at least one of the tags.

        The persistent tier is queried once per tag; an entry matched by
        several tags is simply deleted again.

        Returns:
            Number of persistent deletions issued.
        """
        wanted = frozenset(tags)
        if not wanted:
            return 0

        dropped = self._drop_memory(lambda entry: entry.has_any_tag(wanted))
        removed = 0
        for tag in sorted(wanted):
            try:
                rows = await self.store.query_array_contains(self.collection, "tags", tag)
                await self._delete_rows(rows)
            except FAIL_OPEN_ERRORS as e:
                logger.warning("Cache invalidation failed for tag %s: %s", tag, e)
                self.statistics.record_error()
                continue
            removed += len(rows)

        self.statistics.record_invalidation(removed)
        if logger.isEnabledFor(DEBUG):
            logger.debug(
                "Invalidated tags %s: %d memory, %d stored entries.",
                sorted(wanted),
                dropped,
                removed,
            )
        return removed

    async def clear_all(self) -> int:
        """Empty the memory tier and delete every persistent entry."""
        self._memory.clear()
        try:
            rows = await self.store.list_documents(self.collection)
            await self._delete_rows(rows)
        except FAIL_OPEN_ERRORS as e:
            logger.warning("Cache clear failed: %s", e)
            self.statistics.record_error()
            return 0
        logger.info("Cache cleared, %d stored entries removed.", len(rows))
        return len(rows)

    async def cleanup(self) -> int:
        """
        Remove expired entries from both tiers.

        Returns:
            Number of persistent entries removed.
        """
        now = self._clock()
        dropped = self._drop_memory(lambda entry: not entry.is_live(now))
        try:
            rows = await self.store.query_less_or_equal(self.collection, "expires_at", now)
            await self._delete_rows(rows)
        except FAIL_OPEN_ERRORS as e:
            logger.warning("Cache cleanup failed: %s", e)
            self.statistics.record_error()
            rows = []

        self.statistics.record_expiration(len(rows))
        logger.info("Cache cleanup removed %d memory and %d stored entries.", dropped, len(rows))
        return len(rows)

    async def get_or_set(
        self,
        key: CacheKey,
        callback: CacheCallback,
        ttl: float | None = None,
        tags: CacheTagSet | None = None,
    ) -> CacheValue:
        """
        Get from cache or set using callback if not found.

        Concurrent misses for the same key each run the callback unless
        `coalesce_misses` is enabled. Errors raised by the callback propagate.
        """
        lookup = await self.try_get(key)
        if lookup.hit:
            return lookup.value

        if self.cache_config.coalesce_misses:
            return await self._coalesced_fill(key, callback, ttl, tags)

        value = await callback()
        await self.set(key, value, ttl, tags)
        return value

    async def _coalesced_fill(
        self,
        key: CacheKey,
        callback: CacheCallback,
        ttl: float | None,
        tags: CacheTagSet | None,
    ) -> CacheValue:
        """
        Share a single in-flight callback between concurrent misses of one key.

        Followers await the leader's future through `shield`, so cancelling
        one follower leaves the others waiting. If the leader itself is
        cancelled its followers start the fill over.
        """
        pending = self._inflight.get(key)
        if pending is not None:
            try:
                return deepcopy(await shield(pending))
            except CancelledError:
                if not pending.cancelled() or current_task().cancelling():
                    raise
            logger.debug("Leader fill for %s was cancelled, retrying.", key)
            return await self.get_or_set(key, callback, ttl, tags)

        future: Future[CacheValue] = get_running_loop().create_future()
        self._inflight[key] = future
        try:
            value = await callback()
            await self.set(key, value, ttl, tags)
        except CancelledError:
            future.cancel()
            raise
        except Exception as e:
            future.set_exception(e)
            # Mark retrieved so an unobserved failure is not reported twice
            future.exception()
            raise
        else:
            future.set_result(value)
            return value
        finally:
            self._inflight.pop(key, None)

    async def ping(self) -> bool:
        """Ping the persistent tier."""
        try:
            return await self.store.ping()
        except FAIL_OPEN_ERRORS:
            logger.exception("Cache ping failed")
            return False

    async def health_check(self) -> dict[str, Any]:
        """
        Perform a health check of the cache and its document store.

        Returns:
            Dictionary with health status and details.
        """
        result: dict[str, Any] = {
            "backend": self.store.backend,
            "memory_entries": self.memory_size,
            "statistics": self.get_statistics(),
        }
        try:
            result["status"] = "healthy" if await self.store.ping() else "unhealthy"
            result["info"] = await self.store.info()
        except FAIL_OPEN_ERRORS as e:
            result["status"] = "unhealthy"
            result["error"] = str(e)
        return result

    def get_statistics(self) -> dict[str, int | str]:
        """Get cache statistics."""
        return self.statistics.to_dict()

    def reset_statistics(self) -> None:
        """Reset cache statistics."""
        self.statistics.reset()
        logger.info("Cache statistics reset.")
