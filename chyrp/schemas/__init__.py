from chyrp.schemas.blog import (
    INTERACTION_FIELDS,
    Comment,
    CommentCreate,
    InteractionRequest,
    InteractionState,
    InteractionType,
    Post,
    PostCreate,
    PostSearchResponse,
    PostStatus,
    PostUpdate,
    generate_slug,
)
from chyrp.schemas.cache import (
    CacheEntry,
    CacheHealthResponse,
    CacheInvalidateRequest,
    CacheOperationResponse,
    CacheStatistics,
    CacheStatsResponse,
    HealthCheckResponse,
)
from chyrp.schemas.user import (
    UserProfile,
    UserProfileCreate,
    UserProfileUpdate,
    UserRole,
    UserRoleUpdate,
)

__all__ = [
    "INTERACTION_FIELDS",
    "CacheEntry",
    "CacheHealthResponse",
    "CacheInvalidateRequest",
    "CacheOperationResponse",
    "CacheStatistics",
    "CacheStatsResponse",
    "Comment",
    "CommentCreate",
    "HealthCheckResponse",
    "InteractionRequest",
    "InteractionState",
    "InteractionType",
    "Post",
    "PostCreate",
    "PostSearchResponse",
    "PostStatus",
    "PostUpdate",
    "UserProfile",
    "UserProfileCreate",
    "UserProfileUpdate",
    "UserRole",
    "UserRoleUpdate",
    "generate_slug",
]
