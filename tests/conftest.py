# tests/conftest.py
"""Root pytest configuration and shared fixtures."""

from collections.abc import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient

from chyrp.clients.memory_store import MemoryDocumentStore
from chyrp.configs import CacheConfig, TransactionConfig
from chyrp.managers.cache_manager import CacheManager
from chyrp.managers.rate_limiter import limiter


class FakeClock:
    """Epoch-seconds clock that only moves when told to."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    """Controllable time source for expiry tests."""
    return FakeClock()


@pytest.fixture
async def store() -> AsyncGenerator[MemoryDocumentStore]:
    """Fresh in-memory document store per test."""
    memory = MemoryDocumentStore()
    await memory.connect()
    yield memory
    await memory.close()


@pytest.fixture
def cache_manager(store: MemoryDocumentStore, clock: FakeClock) -> CacheManager:
    """Cache manager over the test store with a fake clock."""
    return CacheManager(store, CacheConfig(), clock=clock)


@pytest.fixture
def fast_retries() -> TransactionConfig:
    """Transaction retry budget without real backoff delays."""
    return TransactionConfig(max_attempts=3, base_delay=0, max_delay=0)


@pytest.fixture
async def client(
    store: MemoryDocumentStore,
    cache_manager: CacheManager,
) -> AsyncGenerator[AsyncClient]:
    """
    Create async HTTP client for testing FastAPI endpoints.

    The lifespan does not run under ASGITransport, so the application state
    is wired to the test store and cache manager directly. Rate limiting is
    disabled for the duration of the test.
    """
    from chyrp.main import app

    limiter.enabled = False
    app.state.store = store
    app.state.cache_manager = cache_manager
    async with AsyncClient(
        base_url="http://test",
        transport=ASGITransport(app=app),
    ) as ac:
        yield ac
    limiter.enabled = True
