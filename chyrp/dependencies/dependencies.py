# chyrp/dependencies/dependencies.py

"""Application dependencies resolved from the state built at startup."""

from typing import Annotated

from fastapi import Depends, Request

from chyrp.clients.protocols import DocumentStoreProtocol
from chyrp.managers.cache_manager import CacheManager
from chyrp.services import CommentService, InteractionService, PostService, UserService


def get_store(request: Request) -> DocumentStoreProtocol:
    """Dependency to get the document store opened by the lifespan."""
    return request.app.state.store


StoreDep = Annotated[DocumentStoreProtocol, Depends(get_store)]


def get_cache_manager(request: Request) -> CacheManager:
    """Dependency to get the application cache manager instance."""
    return request.app.state.cache_manager


CacheDep = Annotated[CacheManager, Depends(get_cache_manager)]


def get_interaction_service(store: StoreDep, cache: CacheDep) -> InteractionService:
    return InteractionService(store, cache)


InteractionServiceDep = Annotated[InteractionService, Depends(get_interaction_service)]


def get_post_service(store: StoreDep, cache: CacheDep) -> PostService:
    return PostService(store, cache)


PostServiceDep = Annotated[PostService, Depends(get_post_service)]


def get_comment_service(
    store: StoreDep,
    cache: CacheDep,
    interactions: InteractionServiceDep,
) -> CommentService:
    return CommentService(store, cache, interactions)


CommentServiceDep = Annotated[CommentService, Depends(get_comment_service)]


def get_user_service(store: StoreDep, cache: CacheDep) -> UserService:
    return UserService(store, cache)


UserServiceDep = Annotated[UserService, Depends(get_user_service)]
