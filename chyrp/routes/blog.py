# chyrp/routes/blog.py

"""
Blog Routes.

Provides post CRUD, listing and search, like/dislike toggles and comments.

Summary
-------
Endpoints include:
  - List posts (all, published only, or by author)
  - Search published posts
  - Get, create, update and delete a post
  - Toggle a like or dislike
  - List and add comments

Caching
-------
Reads are served through the shared `CacheManager`; every write
invalidates the affected keys and tags before responding.

Rate Limiting
-------------
All endpoints define explicit limits. Tiered limits apply when `X-API-Key`
is present, offering higher throughput for identified clients.
"""

from logging import getLogger
from typing import Annotated

from fastapi import APIRouter, Query, Request
from fastapi.responses import ORJSONResponse
from starlette.responses import Response
from starlette.status import HTTP_201_CREATED, HTTP_204_NO_CONTENT

from chyrp.configs import MAX_SEARCH_QUERY_LENGTH, file_logger
from chyrp.dependencies import CommentServiceDep, InteractionServiceDep, PostServiceDep
from chyrp.managers import limiter
from chyrp.schemas import (
    Comment,
    CommentCreate,
    InteractionRequest,
    InteractionState,
    Post,
    PostCreate,
    PostSearchResponse,
    PostUpdate,
)

router = APIRouter(prefix="/posts", tags=["📝 Posts"])

logger = file_logger(getLogger(__name__))

RATE_LIMIT_RESPONSE = {
    429: {
        "description": "Rate limit exceeded",
        "content": {"application/json": {"example": {"detail": "Rate limit exceeded"}}},
    },
}
NOT_FOUND_RESPONSE = {
    404: {
        "description": "Not found",
        "content": {"application/json": {"example": {"detail": "Post <id> does not exist"}}},
    },
}


@router.get(
    "",
    response_class=ORJSONResponse,
    response_model=list[Post],
    summary="List posts",
    description="List posts newest first, optionally only published ones or one author's.",
    responses={**RATE_LIMIT_RESPONSE},
    operation_id="posts_list",
)
@limiter.limit(lambda key: "60/minute" if "apikey" in key else "30/minute")
async def list_posts(
    request: Request,
    service: PostServiceDep,
    published: bool = False,
    author: str | None = None,
) -> list[Post]:
    """
    List posts.

    Parameters
    ----------
    request : Request
        Current request context.
    service : PostService
        Post service dependency.
    published : bool
        Only return published posts.
    author : str | None
        Only return posts by this author id.

    Returns
    -------
    list[Post]
        Posts, newest first.
    """
    if author:
        posts = await service.list_by_author(author)
        return [post for post in posts if post.status == "Published"] if published else posts
    if published:
        return await service.list_published()
    return await service.list_posts()


@router.get(
    "/search",
    response_class=ORJSONResponse,
    response_model=PostSearchResponse,
    summary="Search published posts",
    description="Case-insensitive search over title, content, description and tags.",
    responses={**RATE_LIMIT_RESPONSE},
    operation_id="posts_search",
)
@limiter.limit(lambda key: "60/minute" if "apikey" in key else "20/minute")
async def search_posts(
    request: Request,
    service: PostServiceDep,
    q: Annotated[str, Query(max_length=MAX_SEARCH_QUERY_LENGTH)] = "",
) -> PostSearchResponse:
    """
    Search published posts.

    Parameters
    ----------
    request : Request
        Current request context.
    service : PostService
        Post service dependency.
    q : str
        Search text; blank returns no results.

    Returns
    -------
    PostSearchResponse
        Matching posts with their count and the query echoed back.
    """
    posts = await service.search_posts(q)
    return PostSearchResponse(posts=posts, count=len(posts), query=q)


@router.get(
    "/{post_id}",
    response_class=ORJSONResponse,
    response_model=Post,
    summary="Get post by ID",
    responses={**NOT_FOUND_RESPONSE, **RATE_LIMIT_RESPONSE},
    operation_id="posts_get",
)
@limiter.limit(lambda key: "120/minute" if "apikey" in key else "60/minute")
async def get_post(request: Request, post_id: str, service: PostServiceDep) -> Post:
    """
    Get a post by its id.

    Returns
    -------
    Post
        The post, possibly served from cache.
    """
    return await service.get_post(post_id)


@router.post(
    "",
    response_class=ORJSONResponse,
    response_model=Post,
    status_code=HTTP_201_CREATED,
    summary="Create a new post",
    responses={**RATE_LIMIT_RESPONSE},
    operation_id="posts_create",
)
@limiter.limit(lambda key: "10/minute" if "apikey" in key else "5/minute")
async def create_post(request: Request, payload: PostCreate, service: PostServiceDep) -> Post:
    """
    Create a post with empty interaction state.

    Returns
    -------
    Post
        The stored post.
    """
    return await service.create_post(payload)


@router.patch(
    "/{post_id}",
    response_class=ORJSONResponse,
    response_model=Post,
    summary="Update a post",
    description="Update editable fields. Interaction fields are rejected.",
    responses={**NOT_FOUND_RESPONSE, **RATE_LIMIT_RESPONSE},
    operation_id="posts_update",
)
@limiter.limit(lambda key: "20/minute" if "apikey" in key else "10/minute")
async def update_post(
    request: Request,
    post_id: str,
    payload: PostUpdate,
    service: PostServiceDep,
) -> Post:
    """
    Update a post.

    Returns
    -------
    Post
        The post after the update.
    """
    return await service.update_post(post_id, payload.model_dump(exclude_unset=True))


@router.delete(
    "/{post_id}",
    status_code=HTTP_204_NO_CONTENT,
    summary="Delete a post",
    responses={**NOT_FOUND_RESPONSE, **RATE_LIMIT_RESPONSE},
    operation_id="posts_delete",
)
@limiter.limit(lambda key: "10/minute" if "apikey" in key else "5/minute")
async def delete_post(request: Request, post_id: str, service: PostServiceDep) -> Response:
    """Delete a post."""
    await service.delete_post(post_id)
    return Response(status_code=HTTP_204_NO_CONTENT)


@router.post(
    "/{post_id}/interactions",
    response_class=ORJSONResponse,
    response_model=InteractionState,
    summary="Toggle a like or dislike",
    description=(
        "Repeating a reaction withdraws it; switching moves the user to the other side."
    ),
    responses={
        **NOT_FOUND_RESPONSE,
        409: {
            "description": "Too many concurrent updates",
            "content": {
                "application/json": {
                    "example": {"detail": "Failed to update interaction: ..."},
                },
            },
        },
        **RATE_LIMIT_RESPONSE,
    },
    operation_id="posts_interact",
)
@limiter.limit(lambda key: "60/minute" if "apikey" in key else "30/minute")
async def update_interaction(
    request: Request,
    post_id: str,
    payload: InteractionRequest,
    service: InteractionServiceDep,
) -> InteractionState:
    """
    Toggle a reaction on a post.

    Returns
    -------
    InteractionState
        Committed likes, dislikes and their counts.
    """
    return await service.update_interaction(post_id, payload.user_id, payload.type)


@router.get(
    "/{post_id}/comments",
    response_class=ORJSONResponse,
    response_model=list[Comment],
    summary="List comments on a post",
    responses={**RATE_LIMIT_RESPONSE},
    operation_id="comments_list",
)
@limiter.limit(lambda key: "60/minute" if "apikey" in key else "30/minute")
async def list_comments(
    request: Request,
    post_id: str,
    service: CommentServiceDep,
) -> list[Comment]:
    """Comments on a post, newest first."""
    return await service.list_comments(post_id)


@router.post(
    "/{post_id}/comments",
    response_class=ORJSONResponse,
    response_model=Comment,
    status_code=HTTP_201_CREATED,
    summary="Add a comment to a post",
    responses={**NOT_FOUND_RESPONSE, **RATE_LIMIT_RESPONSE},
    operation_id="comments_create",
)
@limiter.limit(lambda key: "10/minute" if "apikey" in key else "5/minute")
async def add_comment(
    request: Request,
    post_id: str,
    payload: CommentCreate,
    service: CommentServiceDep,
) -> Comment:
    """
    Add a comment and bump the post's comment counter.

    Returns
    -------
    Comment
        The stored comment.
    """
    return await service.add_comment(post_id, payload)
