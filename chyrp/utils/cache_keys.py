"""
Cache key builders and invalidation tags for the application.

This module contains functions to generate consistent cache keys for various
entities in the system, ensuring that different parts of the application
(e.g. routes, services) can coordinate cache invalidation.
"""

from enum import StrEnum
from urllib.parse import quote


class CacheTags(StrEnum):
    """Fixed vocabulary of invalidation tags."""

    POSTS = "posts"
    COMMENTS = "comments"
    USERS = "users"
    MEDIA = "media"


class CacheKeys:
    """Namespace of cache key builders."""

    @staticmethod
    def posts_all() -> str:
        return "posts:all"

    @staticmethod
    def post_by_id(post_id: str) -> str:
        return f"posts:{post_id}"

    @staticmethod
    def posts_by_author(author_id: str) -> str:
        return f"posts:author:{author_id}"

    @staticmethod
    def posts_published() -> str:
        return "posts:published"

    @staticmethod
    def posts_drafts() -> str:
        return "posts:drafts"

    @staticmethod
    def posts_by_category(category: str) -> str:
        return f"posts:category:{category}"

    @staticmethod
    def posts_by_tag(tag: str) -> str:
        return f"posts:tag:{tag}"

    @staticmethod
    def posts_search(query: str) -> str:
        """Search keys are case-insensitive and URL-quoted."""
        return f"posts:search:{quote(normalize_query(query), safe='')}"

    @staticmethod
    def comments_by_post(post_id: str) -> str:
        return f"comments:post:{post_id}"

    @staticmethod
    def users_all() -> str:
        return "users:all"

    @staticmethod
    def user_by_id(uid: str) -> str:
        return f"users:{uid}"


def normalize_query(query: str) -> str:
    """Lower-case a search query and collapse surrounding whitespace."""
    return " ".join(query.lower().split())
