"""
Like/dislike toggles and comment counters on posts.

Interaction fields are denormalized onto the post document and written
through optimistic transactions, so two readers reacting to the same post
at once never lose each other's update. The committed state is then pushed
out of the cache.
"""

from logging import getLogger

from chyrp.clients.protocols import DocumentStoreProtocol, DocumentTransactionProtocol
from chyrp.configs import POSTS_COLLECTION, TransactionConfig, file_logger
from chyrp.db import run_transaction
from chyrp.errors import BaseAppError, InteractionUpdateError, PostNotFoundError
from chyrp.managers.cache_manager import CacheManager
from chyrp.schemas.blog import InteractionState, InteractionType
from chyrp.utils import CacheKeys, CacheTags

logger = file_logger(getLogger(__name__))


def toggle_interaction(
    likes: list[str],
    dislikes: list[str],
    user_id: str,
    interaction: InteractionType | str,
) -> tuple[list[str], list[str]]:
    """
    Apply one reaction to the like/dislike sets.

    Repeating a reaction withdraws it; switching moves the user from one set
    to the other. The user never ends up in both sets.

    Returns:
        New `(likes, dislikes)` lists, order of first reaction preserved.

    Raises:
        ValueError: `interaction` is neither `like` nor `dislike`.
    """
    interaction = InteractionType(interaction)
    chosen, other = (likes, dislikes) if interaction == InteractionType.LIKE else (dislikes, likes)
    if user_id in chosen:
        chosen = [uid for uid in chosen if uid != user_id]
    else:
        chosen = [*chosen, user_id]
        other = [uid for uid in other if uid != user_id]

    if interaction == InteractionType.LIKE:
        return chosen, other
    return other, chosen


class InteractionService:
    """Service owning the interaction fields of post documents."""

    def __init__(
        self,
        store: DocumentStoreProtocol,
        cache: CacheManager,
        config: TransactionConfig | None = None,
    ) -> None:
        self.store = store
        self.cache = cache
        self.config = config

    async def _invalidate_post(self, post_id: str) -> None:
        # Cache operations fail open; nothing here can undo the commit.
        await self.cache.delete(CacheKeys.post_by_id(post_id))
        await self.cache.clear_by_tags({CacheTags.POSTS})

    async def update_interaction(
        self,
        post_id: str,
        user_id: str,
        interaction: InteractionType | str,
    ) -> InteractionState:
        """
        Toggle a user's like or dislike on a post.

        Args:
            post_id: Post document id.
            user_id: Reacting user.
            interaction: `like` or `dislike`.

        Returns:
            The committed interaction state.

        Raises:
            InteractionUpdateError: The post is missing (404), every attempt
                conflicted (409) or the store failed (503).
            ValueError: `interaction` is neither `like` nor `dislike`.
        """
        interaction = InteractionType(interaction)

        async def body(tx: DocumentTransactionProtocol) -> InteractionState:
            doc = await tx.get(POSTS_COLLECTION, post_id)
            if doc is None:
                raise PostNotFoundError(post_id)

            likes, dislikes = toggle_interaction(
                list(doc.get("likes") or []),
                list(doc.get("dislikes") or []),
                user_id,
                interaction,
            )
            tx.update(
                POSTS_COLLECTION,
                post_id,
                {
                    "likes": likes,
                    "dislikes": dislikes,
                    "like_count": len(likes),
                    "dislike_count": len(dislikes),
                },
            )
            return InteractionState(
                post_id=post_id,
                likes=likes,
                dislikes=dislikes,
                like_count=len(likes),
                dislike_count=len(dislikes),
            )

        try:
            state = await run_transaction(
                self.store,
                body,
                self.config,
                name=f"{interaction} on post {post_id}",
            )
        except BaseAppError as e:
            logger.warning(
                "Interaction %s by %s on post %s failed: %s",
                interaction,
                user_id,
                post_id,
                e,
            )
            mssg = f"Failed to update interaction: {e}"
            raise InteractionUpdateError(mssg, status_code=e.status_code) from e

        await self._invalidate_post(post_id)
        logger.info(
            "Post %s now has %d likes and %d dislikes.",
            post_id,
            state.like_count,
            state.dislike_count,
        )
        return state

    async def increment_comment_count(self, post_id: str) -> int:
        """
        Add one to a post's comment counter.

        The cached post is left alone, so readers see the old count until
        its entry expires.

        Returns:
            The committed comment count.

        Raises:
            PostNotFoundError: The post does not exist.
            TransactionAbortedError: Every attempt conflicted.
        """

        async def body(tx: DocumentTransactionProtocol) -> int:
            doc = await tx.get(POSTS_COLLECTION, post_id)
            if doc is None:
                raise PostNotFoundError(post_id)
            total = int(doc.get("comment_count") or 0) + 1
            tx.update(POSTS_COLLECTION, post_id, {"comment_count": total})
            return total

        return await run_transaction(
            self.store,
            body,
            self.config,
            name=f"comment count of post {post_id}",
        )
