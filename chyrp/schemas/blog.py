"""
Post, comment and interaction models for the Modern Chyrp application.

Documents are stored with the field names used here; the interaction
fields (`likes`, `dislikes` and the three counters) are owned by the
interaction service and are never accepted from request bodies.
"""

from datetime import datetime
from enum import StrEnum
from re import sub
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, model_validator

from chyrp.configs.settings import MAX_COMMENT_LENGTH

PostStatus = Literal["Published", "Draft", "Review"]

INTERACTION_FIELDS: frozenset[str] = frozenset(
    {"likes", "dislikes", "like_count", "dislike_count", "comment_count"},
)


class InteractionType(StrEnum):
    """Kinds of reader reaction a post accepts."""

    LIKE = "like"
    DISLIKE = "dislike"


def generate_slug(title: str) -> str:
    """Build a URL-friendly slug from a post title."""
    slug = sub(r"[^a-z0-9\s-]", "", title.lower()).strip()
    slug = sub(r"\s+", "-", slug)
    return sub(r"-+", "-", slug)


class PostCreate(BaseModel):
    """Post creation model (request body, excludes generated fields)."""

    title: Annotated[str, StringConstraints(min_length=1, max_length=200)] = Field(
        ...,
        description="Post title",
        examples=["Writing with an AI co-author"],
    )
    content: str = Field(default="", description="Post body (markdown)")
    author: str = Field(..., min_length=1, description="Author user id")
    status: PostStatus = Field(default="Draft", description="Publication status")
    meta_description: str = Field(default="", max_length=300)
    tags: list[str] = Field(default_factory=list, max_length=20)
    slug: str | None = Field(default=None, max_length=200)

    @model_validator(mode="after")
    def fill_slug(self) -> "PostCreate":
        """Auto-generate slug from title if not provided."""
        if not self.slug:
            self.slug = generate_slug(self.title)
        return self


class PostUpdate(BaseModel):
    """Partial post update; unknown and interaction fields are rejected."""

    model_config = ConfigDict(extra="forbid")

    title: Annotated[str, StringConstraints(min_length=1, max_length=200)] | None = None
    content: str | None = None
    status: PostStatus | None = None
    meta_description: str | None = Field(default=None, max_length=300)
    tags: list[str] | None = Field(default=None, max_length=20)
    slug: str | None = Field(default=None, max_length=200)


class Post(BaseModel):
    """A stored post, including its denormalized interaction state."""

    id: str
    title: str
    content: str = ""
    author: str
    status: PostStatus = "Draft"
    meta_description: str = ""
    tags: list[str] = Field(default_factory=list)
    slug: str = ""
    created_at: datetime
    updated_at: datetime | None = None
    likes: list[str] = Field(default_factory=list)
    dislikes: list[str] = Field(default_factory=list)
    like_count: int = Field(default=0, ge=0)
    dislike_count: int = Field(default=0, ge=0)
    comment_count: int = Field(default=0, ge=0)


class PostSearchResponse(BaseModel):
    """Search result envelope."""

    posts: list[Post]
    count: int
    query: str


class InteractionRequest(BaseModel):
    """Body of a like/dislike toggle."""

    user_id: str = Field(..., min_length=1)
    type: InteractionType


class InteractionState(BaseModel):
    """Committed interaction state of a post."""

    post_id: str
    likes: list[str]
    dislikes: list[str]
    like_count: int
    dislike_count: int


class CommentCreate(BaseModel):
    """Comment creation model."""

    author_id: str = Field(..., min_length=1)
    author_name: str = Field(..., min_length=1, max_length=100)
    author_avatar: str | None = None
    content: str = Field(..., min_length=1, max_length=MAX_COMMENT_LENGTH)


class Comment(CommentCreate):
    """A stored comment."""

    id: str
    post_id: str
    created_at: datetime
