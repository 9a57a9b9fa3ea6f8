"""Fixtures for service tests."""

import pytest

from chyrp.clients.memory_store import MemoryDocumentStore
from chyrp.configs import TransactionConfig
from chyrp.managers.cache_manager import CacheManager
from chyrp.schemas import Post, PostCreate
from chyrp.services import CommentService, InteractionService, PostService, UserService


@pytest.fixture
def interaction_service(
    store: MemoryDocumentStore,
    cache_manager: CacheManager,
    fast_retries: TransactionConfig,
) -> InteractionService:
    return InteractionService(store, cache_manager, fast_retries)


@pytest.fixture
def post_service(
    store: MemoryDocumentStore,
    cache_manager: CacheManager,
    fast_retries: TransactionConfig,
) -> PostService:
    return PostService(store, cache_manager, fast_retries)


@pytest.fixture
def comment_service(
    store: MemoryDocumentStore,
    cache_manager: CacheManager,
    interaction_service: InteractionService,
) -> CommentService:
    return CommentService(store, cache_manager, interaction_service)


@pytest.fixture
def user_service(
    store: MemoryDocumentStore,
    cache_manager: CacheManager,
    fast_retries: TransactionConfig,
) -> UserService:
    return UserService(store, cache_manager, fast_retries)


@pytest.fixture
async def post(post_service: PostService) -> Post:
    """A published post with no interactions."""
    return await post_service.create_post(
        PostCreate(
            title="Writing With Machines",
            content="Notes on drafting posts with an assistant.",
            author="author-1",
            status="Published",
            tags=["ai", "writing"],
        ),
    )
