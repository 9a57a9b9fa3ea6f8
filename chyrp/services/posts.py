"""Post service: cached reads and invalidating writes over the posts collection."""

from logging import getLogger
from typing import Any
from uuid import uuid4

from chyrp.clients.protocols import (
    Document,
    DocumentRow,
    DocumentStoreProtocol,
    DocumentTransactionProtocol,
)
from chyrp.configs import (
    POSTS_COLLECTION,
    TTL_ENTITY,
    TTL_LIST,
    TTL_SEARCH,
    TransactionConfig,
    file_logger,
)
from chyrp.db import run_transaction
from chyrp.errors import InvalidPostUpdateError, PostNotFoundError
from chyrp.managers.cache_manager import CacheManager
from chyrp.managers.cache_types import CacheCallback
from chyrp.schemas.blog import INTERACTION_FIELDS, Post, PostCreate, PostUpdate
from chyrp.utils import CacheKeys, CacheTags, normalize_query, utc_now

logger = file_logger(getLogger(__name__))

SEARCHABLE_FIELDS = ("title", "content", "meta_description")


def _newest_first(rows: list[DocumentRow]) -> list[Document]:
    return sorted((doc for _, doc in rows), key=lambda doc: doc["created_at"], reverse=True)


def _matches(doc: Document, needle: str) -> bool:
    if any(needle in str(doc.get(field) or "").lower() for field in SEARCHABLE_FIELDS):
        return True
    return any(needle in str(tag).lower() for tag in doc.get("tags") or [])


class PostService:
    """
    Service for post CRUD and listing.

    Reads go through `CacheManager.get_or_set` and every cached entry is
    tagged `posts`, so any write can drop all post listings at once.
    Interaction fields are left to `InteractionService`.
    """

    def __init__(
        self,
        store: DocumentStoreProtocol,
        cache: CacheManager,
        config: TransactionConfig | None = None,
    ) -> None:
        """
        Initialize the post service.

        Args:
            store: Document store holding the posts collection.
            cache: Shared cache manager.
            config: Retry budget for transactional updates.
        """
        self.store = store
        self.cache = cache
        self.config = config

    async def _invalidate(self, post_id: str | None = None) -> None:
        if post_id is not None:
            await self.cache.delete(CacheKeys.post_by_id(post_id))
        await self.cache.clear_by_tags({CacheTags.POSTS})

    async def _cached_list(
        self,
        key: str,
        fetch: CacheCallback,
        ttl: int = TTL_LIST,
    ) -> list[Post]:
        docs = await self.cache.get_or_set(key, fetch, ttl=ttl, tags={CacheTags.POSTS})
        return [Post.model_validate(doc) for doc in docs]

    async def create_post(self, payload: PostCreate) -> Post:
        """
        Store a new post with empty interaction state.

        Returns:
            The stored post.
        """
        now = utc_now()
        post = Post(
            id=uuid4().hex,
            created_at=now,
            updated_at=now,
            **payload.model_dump(),
        )
        await self.store.set_document(POSTS_COLLECTION, post.id, post.model_dump(mode="json"))
        await self._invalidate()
        logger.info(f"Post {post.id} created by {post.author}")
        return post

    async def get_post(self, post_id: str) -> Post:
        """
        Get a post by id.

        Raises:
            PostNotFoundError: The post does not exist. Absence is never cached.
        """

        async def fetch() -> Document:
            doc = await self.store.get_document(POSTS_COLLECTION, post_id)
            if doc is None:
                raise PostNotFoundError(post_id)
            return doc

        doc = await self.cache.get_or_set(
            CacheKeys.post_by_id(post_id),
            fetch,
            ttl=TTL_ENTITY,
            tags={CacheTags.POSTS},
        )
        return Post.model_validate(doc)

    async def list_posts(self) -> list[Post]:
        """All posts, newest first."""

        async def fetch() -> list[Document]:
            return _newest_first(await self.store.list_documents(POSTS_COLLECTION))

        return await self._cached_list(CacheKeys.posts_all(), fetch)

    async def list_published(self) -> list[Post]:
        """Published posts, newest first."""

        async def fetch() -> list[Document]:
            rows = await self.store.query_equal(POSTS_COLLECTION, "status", "Published")
            return _newest_first(rows)

        return await self._cached_list(CacheKeys.posts_published(), fetch)

    async def list_by_author(self, author_id: str) -> list[Post]:
        """Posts written by one author, newest first."""

        async def fetch() -> list[Document]:
            rows = await self.store.query_equal(POSTS_COLLECTION, "author", author_id)
            return _newest_first(rows)

        return await self._cached_list(CacheKeys.posts_by_author(author_id), fetch)

    async def search_posts(self, query: str) -> list[Post]:
        """
        Case-insensitive substring search over published posts.

        Title, content, meta description and tags are matched. A blank
        query returns nothing and touches neither the cache nor the store.
        """
        needle = normalize_query(query)
        if not needle:
            return []

        async def fetch() -> list[Document]:
            rows = await self.store.query_equal(POSTS_COLLECTION, "status", "Published")
            return [doc for doc in _newest_first(rows) if _matches(doc, needle)]

        return await self._cached_list(CacheKeys.posts_search(needle), fetch, ttl=TTL_SEARCH)

    async def update_post(self, post_id: str, changes: dict[str, Any]) -> Post:
        """
        Merge editable fields into a post.

        Args:
            post_id: Post document id.
            changes: Fields to overwrite; see `PostUpdate`.

        Raises:
            InvalidPostUpdateError: `changes` names an interaction field.
            PostNotFoundError: The post does not exist.
        """
        owned = sorted(INTERACTION_FIELDS.intersection(changes))
        if owned:
            mssg = f"Fields {owned} are managed by the interaction service"
            raise InvalidPostUpdateError(mssg)

        fields = PostUpdate.model_validate(changes).model_dump(mode="json", exclude_unset=True)
        fields["updated_at"] = utc_now().isoformat()

        async def body(tx: DocumentTransactionProtocol) -> Document:
            doc = await tx.get(POSTS_COLLECTION, post_id)
            if doc is None:
                raise PostNotFoundError(post_id)
            tx.update(POSTS_COLLECTION, post_id, fields)
            return {**doc, **fields}

        doc = await run_transaction(self.store, body, self.config, name=f"update of post {post_id}")
        await self._invalidate(post_id)
        logger.info(f"Post {post_id} updated: {sorted(fields)}")
        return Post.model_validate(doc)

    async def delete_post(self, post_id: str) -> None:
        """
        Delete a post.

        Raises:
            PostNotFoundError: The post does not exist.
        """
        if await self.store.get_document(POSTS_COLLECTION, post_id) is None:
            raise PostNotFoundError(post_id)
        await self.store.delete_document(POSTS_COLLECTION, post_id)
        await self._invalidate(post_id)
        await self.cache.delete(CacheKeys.comments_by_post(post_id))
        logger.info(f"Post {post_id} deleted")
