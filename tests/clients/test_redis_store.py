"""Tests for chyrp/clients/redis_store.py."""

from unittest.mock import AsyncMock, MagicMock, patch

import orjson
import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import RedisError, WatchError

from chyrp.clients.redis_store import RedisDocumentStore, RedisTransaction
from chyrp.errors import DatabaseConnectionError, TransactionConflictError


def _json(value: dict) -> str:
    return orjson.dumps(value).decode()


def _pipeline() -> MagicMock:
    pipe = MagicMock()
    pipe.execute = AsyncMock(return_value=[True, 1])
    pipe.watch = AsyncMock()
    pipe.get = AsyncMock(return_value=None)
    return pipe


@pytest.fixture
def redis_mock() -> MagicMock:
    client = MagicMock()
    client.get = AsyncMock(return_value=None)
    client.smembers = AsyncMock(return_value=set())
    client.mget = AsyncMock(return_value=[])
    client.ping = AsyncMock(return_value=True)
    client.info = AsyncMock(return_value={"redis_version": "7.2.0", "connected_clients": 3})
    client.aclose = AsyncMock()
    pipe = _pipeline()
    client.pipeline.return_value.__aenter__.return_value = pipe
    client.pipeline.return_value.__aexit__.return_value = None
    return client


@pytest.fixture
def redis_store(redis_mock: MagicMock) -> RedisDocumentStore:
    store = RedisDocumentStore(key_prefix="test")
    store._redis = redis_mock
    return store


class TestKeys:
    """Tests for key layout."""

    def test_document_and_index_keys(self, redis_store: RedisDocumentStore) -> None:
        """Test keys are namespaced by prefix and collection."""
        assert redis_store.doc_key("posts", "p1") == "test:doc:posts:p1"
        assert redis_store.index_key("posts") == "test:index:posts"

    def test_client_requires_connect(self) -> None:
        """Test using the store before connect raises."""
        store = RedisDocumentStore()
        with pytest.raises(DatabaseConnectionError):
            _ = store.client


class TestDocuments:
    """Tests for document operations."""

    @pytest.mark.asyncio
    async def test_get_document(self, redis_store: RedisDocumentStore, redis_mock) -> None:
        """Test a stored JSON string is decoded."""
        redis_mock.get.return_value = _json({"title": "A"})

        assert await redis_store.get_document("posts", "p1") == {"title": "A"}
        redis_mock.get.assert_awaited_once_with("test:doc:posts:p1")

    @pytest.mark.asyncio
    async def test_get_missing_document(self, redis_store: RedisDocumentStore) -> None:
        """Test an absent key returns None."""
        assert await redis_store.get_document("posts", "nope") is None

    @pytest.mark.asyncio
    async def test_set_document_updates_index(
        self,
        redis_store: RedisDocumentStore,
        redis_mock,
    ) -> None:
        """Test set writes the document and registers its key in one pipeline."""
        await redis_store.set_document("posts", "p1", {"title": "A"})

        pipe = redis_mock.pipeline.return_value.__aenter__.return_value
        pipe.set.assert_called_once_with("test:doc:posts:p1", _json({"title": "A"}))
        pipe.sadd.assert_called_once_with("test:index:posts", "p1")
        pipe.execute.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_delete_document_updates_index(
        self,
        redis_store: RedisDocumentStore,
        redis_mock,
    ) -> None:
        """Test delete removes the document and its index entry."""
        await redis_store.delete_document("posts", "p1")

        pipe = redis_mock.pipeline.return_value.__aenter__.return_value
        pipe.delete.assert_called_once_with("test:doc:posts:p1")
        pipe.srem.assert_called_once_with("test:index:posts", "p1")

    @pytest.mark.asyncio
    async def test_list_skips_dangling_index_entries(
        self,
        redis_store: RedisDocumentStore,
        redis_mock,
    ) -> None:
        """Test documents removed behind the index are skipped."""
        redis_mock.smembers.return_value = {"b", "a"}
        redis_mock.mget.return_value = [_json({"n": 1}), None]

        assert await redis_store.list_documents("posts") == [("a", {"n": 1})]
        redis_mock.mget.assert_awaited_once_with(["test:doc:posts:a", "test:doc:posts:b"])

    @pytest.mark.asyncio
    async def test_queries_filter_listing(
        self,
        redis_store: RedisDocumentStore,
        redis_mock,
    ) -> None:
        """Test queries run over the collection listing."""
        redis_mock.smembers.return_value = {"x", "y"}
        redis_mock.mget.return_value = [
            _json({"expires_at": 5, "tags": ["posts"], "status": "Draft"}),
            _json({"expires_at": 50, "tags": ["users"], "status": "Published"}),
        ]

        expired = await redis_store.query_less_or_equal("cache", "expires_at", 10)
        tagged = await redis_store.query_array_contains("cache", "tags", "users")
        published = await redis_store.query_equal("cache", "status", "Published")

        assert [key for key, _ in expired] == ["x"]
        assert [key for key, _ in tagged] == ["y"]
        assert [key for key, _ in published] == ["y"]

    @pytest.mark.asyncio
    async def test_redis_errors_are_wrapped(
        self,
        redis_store: RedisDocumentStore,
        redis_mock,
    ) -> None:
        """Test client failures surface as DatabaseConnectionError."""
        redis_mock.get.side_effect = RedisError("boom")
        redis_mock.smembers.side_effect = RedisError("boom")

        with pytest.raises(DatabaseConnectionError):
            await redis_store.get_document("posts", "p1")
        with pytest.raises(DatabaseConnectionError):
            await redis_store.list_documents("posts")


class TestTransactions:
    """Tests for WATCH/MULTI/EXEC transactions."""

    @pytest.mark.asyncio
    async def test_commit_applies_writes(self, redis_store: RedisDocumentStore) -> None:
        """Test reads are watched and writes are queued after MULTI."""
        pipe = _pipeline()
        pipe.get.return_value = _json({"likes": [], "like_count": 0})
        tx = RedisTransaction(redis_store, pipe)

        doc = await tx.get("posts", "p1")
        tx.update("posts", "p1", {"likes": ["u1"], "like_count": 1})
        await tx.commit()

        assert doc == {"likes": [], "like_count": 0}
        pipe.watch.assert_awaited_once_with("test:doc:posts:p1")
        pipe.multi.assert_called_once()
        pipe.set.assert_called_once_with(
            "test:doc:posts:p1",
            _json({"likes": ["u1"], "like_count": 1}),
        )
        pipe.execute.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_watch_error_is_a_conflict(self, redis_store: RedisDocumentStore) -> None:
        """Test a WatchError on EXEC becomes a transaction conflict."""
        pipe = _pipeline()
        pipe.get.return_value = _json({"n": 0})
        pipe.execute.side_effect = WatchError("changed")
        tx = RedisTransaction(redis_store, pipe)

        await tx.get("posts", "p1")
        tx.update("posts", "p1", {"n": 1})

        with pytest.raises(TransactionConflictError):
            await tx.commit()

    @pytest.mark.asyncio
    async def test_exec_failure_is_a_connection_error(
        self,
        redis_store: RedisDocumentStore,
    ) -> None:
        """Test other EXEC failures are not retried as conflicts."""
        pipe = _pipeline()
        pipe.get.return_value = _json({"n": 0})
        pipe.execute.side_effect = RedisError("gone")
        tx = RedisTransaction(redis_store, pipe)

        await tx.get("posts", "p1")
        tx.update("posts", "p1", {"n": 1})

        with pytest.raises(DatabaseConnectionError):
            await tx.commit()

    @pytest.mark.asyncio
    async def test_read_only_transaction_skips_exec(
        self,
        redis_store: RedisDocumentStore,
    ) -> None:
        """Test a transaction without writes never calls EXEC."""
        pipe = _pipeline()
        tx = RedisTransaction(redis_store, pipe)

        assert await tx.get("posts", "p1") is None
        await tx.commit()

        pipe.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_transaction_context_uses_pipeline(
        self,
        redis_store: RedisDocumentStore,
        redis_mock,
    ) -> None:
        """Test transaction() opens a transactional pipeline."""
        async with redis_store.transaction() as tx:
            assert isinstance(tx, RedisTransaction)

        redis_mock.pipeline.assert_called_with(transaction=True)


class TestConnection:
    """Tests for connect, ping and info."""

    @pytest.mark.asyncio
    async def test_connect_success(self) -> None:
        """Test connect builds a pooled client and pings it."""
        client = MagicMock()
        client.ping = AsyncMock(return_value=True)
        with (
            patch("chyrp.clients.redis_store.ConnectionPool"),
            patch("chyrp.clients.redis_store.Redis", return_value=client),
        ):
            store = RedisDocumentStore()
            await store.connect()

        assert store.client is client

    @pytest.mark.asyncio
    async def test_connect_failure(self) -> None:
        """Test an unreachable server raises after the retry budget."""
        client = MagicMock()
        client.ping = AsyncMock(side_effect=RedisConnectionError("refused"))
        with (
            patch("chyrp.clients.redis_store.ConnectionPool"),
            patch("chyrp.clients.redis_store.Redis", return_value=client),
            pytest.raises(DatabaseConnectionError),
        ):
            await RedisDocumentStore().connect()

        assert client.ping.await_count == 3

    @pytest.mark.asyncio
    async def test_ping_info_close(self, redis_store: RedisDocumentStore, redis_mock) -> None:
        """Test health helpers and close."""
        assert await redis_store.ping() is True

        info = await redis_store.info()
        assert info["server"] == "Redis"
        assert info["redis_version"] == "7.2.0"

        await redis_store.close()
        redis_mock.aclose.assert_awaited_once()
        with pytest.raises(DatabaseConnectionError):
            _ = redis_store.client

    @pytest.mark.asyncio
    async def test_ping_failure(self, redis_store: RedisDocumentStore, redis_mock) -> None:
        """Test a failed ping is wrapped."""
        redis_mock.ping.side_effect = RedisConnectionError("refused")

        with pytest.raises(DatabaseConnectionError):
            await redis_store.ping()
