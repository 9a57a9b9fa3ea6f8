"""Tests for like/dislike toggles and comment counters."""

from asyncio import gather, sleep
from itertools import cycle
from unittest.mock import AsyncMock, patch

import pytest

from chyrp.clients.memory_store import MemoryDocumentStore
from chyrp.configs import POSTS_COLLECTION, TransactionConfig
from chyrp.errors import (
    DatabaseConnectionError,
    InteractionUpdateError,
    PostNotFoundError,
    TransactionConflictError,
)
from chyrp.managers.cache_manager import CacheManager
from chyrp.schemas import InteractionType, Post, PostCreate
from chyrp.services import InteractionService, PostService, toggle_interaction
from chyrp.utils import CacheKeys

LIKE = InteractionType.LIKE
DISLIKE = InteractionType.DISLIKE


class TestToggleInteraction:
    """Tests for the pure toggle rule."""

    def test_like_adds(self) -> None:
        """Test a first like adds the user."""
        assert toggle_interaction([], [], "a", LIKE) == (["a"], [])

    def test_like_twice_removes(self) -> None:
        """Test repeating a like withdraws it."""
        assert toggle_interaction(["a", "b"], [], "a", LIKE) == (["b"], [])

    def test_like_switches_from_dislike(self) -> None:
        """Test liking a disliked post moves the user across."""
        assert toggle_interaction([], ["a", "b"], "a", LIKE) == (["a"], ["b"])

    def test_dislike_is_symmetric(self) -> None:
        """Test the dislike rule mirrors the like rule."""
        assert toggle_interaction(["a"], [], "a", DISLIKE) == ([], ["a"])
        assert toggle_interaction([], ["a"], "a", DISLIKE) == ([], [])

    def test_inputs_are_not_mutated(self) -> None:
        """Test the input lists are left untouched."""
        likes, dislikes = ["a"], ["b"]
        toggle_interaction(likes, dislikes, "b", LIKE)
        assert likes == ["a"]
        assert dislikes == ["b"]


async def _stored(store: MemoryDocumentStore, post_id: str) -> dict:
    doc = await store.get_document(POSTS_COLLECTION, post_id)
    assert doc is not None
    return doc


@pytest.mark.asyncio
async def test_like_unlike_dislike_switch_scenario(
    interaction_service: InteractionService,
    store: MemoryDocumentStore,
    post: Post,
) -> None:
    """Test the like, unlike, dislike, switch-to-like sequence."""
    state = await interaction_service.update_interaction(post.id, "A", LIKE)
    assert (state.likes, state.like_count) == (["A"], 1)

    state = await interaction_service.update_interaction(post.id, "A", LIKE)
    assert (state.likes, state.like_count) == ([], 0)

    state = await interaction_service.update_interaction(post.id, "A", DISLIKE)
    assert (state.dislikes, state.dislike_count) == (["A"], 1)

    state = await interaction_service.update_interaction(post.id, "A", LIKE)
    assert state.likes == ["A"]
    assert state.dislikes == []
    assert state.like_count == 1
    assert state.dislike_count == 0

    doc = await _stored(store, post.id)
    assert doc["likes"] == ["A"]
    assert doc["dislikes"] == []
    assert doc["like_count"] == 1
    assert doc["dislike_count"] == 0


@pytest.mark.asyncio
async def test_alternating_sequence_keeps_invariants(
    interaction_service: InteractionService,
    store: MemoryDocumentStore,
    post: Post,
) -> None:
    """Test counts always equal set sizes and no user is on both sides."""
    actions = cycle([LIKE, LIKE, DISLIKE, LIKE, DISLIKE, DISLIKE])
    users = cycle(["u1", "u2", "u3"])

    for _ in range(24):
        await interaction_service.update_interaction(post.id, next(users), next(actions))
        doc = await _stored(store, post.id)
        assert doc["like_count"] == len(doc["likes"])
        assert doc["dislike_count"] == len(doc["dislikes"])
        assert not set(doc["likes"]) & set(doc["dislikes"])
        assert len(set(doc["likes"])) == len(doc["likes"])


@pytest.mark.asyncio
async def test_missing_post_is_terminal(
    interaction_service: InteractionService,
    store: MemoryDocumentStore,
) -> None:
    """Test a missing post raises a 404 error and writes nothing."""
    with pytest.raises(InteractionUpdateError) as exc_info:
        await interaction_service.update_interaction("ghost", "A", LIKE)

    assert exc_info.value.status_code == 404
    assert exc_info.value.detail.startswith("Failed to update interaction:")
    assert isinstance(exc_info.value.__cause__, PostNotFoundError)
    assert await store.get_document(POSTS_COLLECTION, "ghost") is None


@pytest.mark.asyncio
async def test_conflict_exhaustion_is_surfaced(
    interaction_service: InteractionService,
    store: MemoryDocumentStore,
    post: Post,
) -> None:
    """Test running out of attempts surfaces a 409 and leaves the post unchanged."""
    with patch.object(
        store,
        "commit_versioned",
        AsyncMock(side_effect=TransactionConflictError("changed")),
    ):
        with pytest.raises(InteractionUpdateError) as exc_info:
            await interaction_service.update_interaction(post.id, "A", LIKE)

    assert exc_info.value.status_code == 409
    assert (await _stored(store, post.id))["likes"] == []


@pytest.mark.asyncio
async def test_store_failure_is_surfaced(
    interaction_service: InteractionService,
    store: MemoryDocumentStore,
    post: Post,
) -> None:
    """Test an unavailable store surfaces a 503 without retrying."""
    failure = AsyncMock(side_effect=DatabaseConnectionError("store down"))
    with patch.object(store, "read_versioned", failure):
        with pytest.raises(InteractionUpdateError) as exc_info:
            await interaction_service.update_interaction(post.id, "A", LIKE)

    assert exc_info.value.status_code == 503
    assert failure.await_count == 1


@pytest.mark.asyncio
async def test_interaction_invalidates_post_cache(
    interaction_service: InteractionService,
    cache_manager: CacheManager,
    post: Post,
) -> None:
    """Test a committed toggle drops the post key and everything tagged posts."""
    await cache_manager.set(CacheKeys.post_by_id(post.id), {"stale": True}, tags={"posts"})
    await cache_manager.set(CacheKeys.posts_all(), ["stale"], tags={"posts"})
    await cache_manager.set(CacheKeys.users_all(), ["kept"], tags={"users"})

    await interaction_service.update_interaction(post.id, "A", LIKE)

    assert await cache_manager.get(CacheKeys.post_by_id(post.id)) is None
    assert await cache_manager.get(CacheKeys.posts_all()) is None
    assert await cache_manager.get(CacheKeys.users_all()) == ["kept"]


@pytest.mark.asyncio
async def test_invalidation_failure_does_not_undo_commit(
    interaction_service: InteractionService,
    store: MemoryDocumentStore,
    post: Post,
) -> None:
    """Test cache failures after the commit are not surfaced."""
    failure = AsyncMock(side_effect=DatabaseConnectionError("cache down"))
    with (
        patch.object(store, "delete_document", failure),
        patch.object(store, "query_array_contains", failure),
    ):
        state = await interaction_service.update_interaction(post.id, "A", LIKE)

    assert state.like_count == 1
    assert (await _stored(store, post.id))["like_count"] == 1


@pytest.mark.asyncio
async def test_increment_comment_count(
    interaction_service: InteractionService,
    store: MemoryDocumentStore,
    cache_manager: CacheManager,
    post: Post,
) -> None:
    """Test the counter increments and the cached post is left in place."""
    key = CacheKeys.post_by_id(post.id)
    await cache_manager.set(key, {"comment_count": 0}, tags={"posts"})

    assert await interaction_service.increment_comment_count(post.id) == 1
    assert await interaction_service.increment_comment_count(post.id) == 2

    assert (await _stored(store, post.id))["comment_count"] == 2
    assert await cache_manager.get(key) == {"comment_count": 0}


@pytest.mark.asyncio
async def test_increment_comment_count_missing_post(
    interaction_service: InteractionService,
) -> None:
    """Test incrementing a missing post's counter raises."""
    with pytest.raises(PostNotFoundError):
        await interaction_service.increment_comment_count("ghost")


class InterleavingStore(MemoryDocumentStore):
    """Memory store that yields after every versioned read, so writers overlap."""

    async def read_versioned(self, collection: str, key: str) -> tuple[int, dict | None]:
        result = await super().read_versioned(collection, key)
        await sleep(0)
        return result


@pytest.mark.asyncio
async def test_concurrent_likes_beyond_attempt_budget_all_land(clock) -> None:
    """Test more simultaneous likes than the default attempt budget are all applied."""
    store = InterleavingStore()
    cache = CacheManager(store, clock=clock)
    service = InteractionService(store, cache)
    post = await PostService(store, cache).create_post(
        PostCreate(title="Busy", author="author-1", status="Published"),
    )
    readers = [f"reader-{i}" for i in range(TransactionConfig().max_attempts + 3)]

    await gather(*(service.update_interaction(post.id, uid, LIKE) for uid in readers))

    doc = await _stored(store, post.id)
    assert sorted(doc["likes"]) == sorted(readers)
    assert doc["like_count"] == len(doc["likes"]) == len(readers)
    assert doc["dislikes"] == []


def test_unknown_interaction_is_rejected() -> None:
    """Test a reaction other than like or dislike raises instead of being applied."""
    with pytest.raises(ValueError, match="love"):
        toggle_interaction(["a"], ["b"], "c", "love")

    assert toggle_interaction([], [], "c", "dislike") == ([], ["c"])


@pytest.mark.asyncio
async def test_unknown_interaction_leaves_post_untouched(
    interaction_service: InteractionService,
    store: MemoryDocumentStore,
    post: Post,
) -> None:
    """Test the service refuses an unknown reaction before writing anything."""
    with pytest.raises(ValueError, match="love"):
        await interaction_service.update_interaction(post.id, "A", "love")

    doc = await _stored(store, post.id)
    assert doc["likes"] == []
    assert doc["dislikes"] == []
