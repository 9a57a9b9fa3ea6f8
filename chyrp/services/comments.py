"""Comment service."""

from logging import getLogger
from uuid import uuid4

from chyrp.clients.protocols import Document, DocumentStoreProtocol
from chyrp.configs import COMMENTS_COLLECTION, POSTS_COLLECTION, TTL_LIST, file_logger
from chyrp.errors import PostNotFoundError
from chyrp.managers.cache_manager import CacheManager
from chyrp.schemas.blog import Comment, CommentCreate
from chyrp.services.interactions import InteractionService
from chyrp.utils import CacheKeys, CacheTags, utc_now

logger = file_logger(getLogger(__name__))


class CommentService:
    """Service for posting and listing comments on posts."""

    def __init__(
        self,
        store: DocumentStoreProtocol,
        cache: CacheManager,
        interactions: InteractionService,
    ) -> None:
        self.store = store
        self.cache = cache
        self.interactions = interactions

    async def add_comment(self, post_id: str, payload: CommentCreate) -> Comment:
        """
        Store a comment and bump the post's comment counter.

        The comment listing of the post is invalidated; the cached post
        itself keeps its old `comment_count` until it expires.

        Raises:
            PostNotFoundError: The post does not exist.
        """
        if await self.store.get_document(POSTS_COLLECTION, post_id) is None:
            raise PostNotFoundError(post_id)

        comment = Comment(
            id=uuid4().hex,
            post_id=post_id,
            created_at=utc_now(),
            **payload.model_dump(),
        )
        await self.store.set_document(
            COMMENTS_COLLECTION,
            comment.id,
            comment.model_dump(mode="json"),
        )
        total = await self.interactions.increment_comment_count(post_id)

        await self.cache.delete(CacheKeys.comments_by_post(post_id))
        await self.cache.clear_by_tags({CacheTags.COMMENTS})
        logger.info(f"Comment {comment.id} added to post {post_id} ({total} total)")
        return comment

    async def list_comments(self, post_id: str) -> list[Comment]:
        """Comments on a post, newest first."""

        async def fetch() -> list[Document]:
            rows = await self.store.query_equal(COMMENTS_COLLECTION, "post_id", post_id)
            docs = [doc for _, doc in rows]
            return sorted(docs, key=lambda doc: doc["created_at"], reverse=True)

        docs = await self.cache.get_or_set(
            CacheKeys.comments_by_post(post_id),
            fetch,
            ttl=TTL_LIST,
            tags={CacheTags.COMMENTS},
        )
        return [Comment.model_validate(doc) for doc in docs]
