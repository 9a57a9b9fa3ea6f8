from chyrp.configs.settings import (
    COMMENTS_COLLECTION,
    MAX_SEARCH_QUERY_LENGTH,
    POSTS_COLLECTION,
    TTL_ENTITY,
    TTL_LIST,
    TTL_SEARCH,
    USERS_COLLECTION,
    CacheConfig,
    LimiterConfig,
    RedisConfig,
    StoreConfig,
    TransactionConfig,
    file_logger,
    pool_kwargs,
    settings,
)

__all__ = [
    "COMMENTS_COLLECTION",
    "MAX_SEARCH_QUERY_LENGTH",
    "POSTS_COLLECTION",
    "TTL_ENTITY",
    "TTL_LIST",
    "TTL_SEARCH",
    "USERS_COLLECTION",
    "CacheConfig",
    "LimiterConfig",
    "RedisConfig",
    "StoreConfig",
    "TransactionConfig",
    "file_logger",
    "pool_kwargs",
    "settings",
]
