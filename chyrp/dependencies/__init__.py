# chyrp/dependencies/__init__.py

from chyrp.dependencies.dependencies import (
    CacheDep,
    CommentServiceDep,
    InteractionServiceDep,
    PostServiceDep,
    StoreDep,
    UserServiceDep,
    get_cache_manager,
    get_store,
)

__all__ = [
    "CacheDep",
    "CommentServiceDep",
    "InteractionServiceDep",
    "PostServiceDep",
    "StoreDep",
    "UserServiceDep",
    "get_cache_manager",
    "get_store",
]
