from chyrp.managers.cache_manager import CacheManager
from chyrp.managers.cache_types import CacheLookup, LookupStatus
from chyrp.managers.rate_limiter import limiter, rate_limit_exceeded_handler

__all__ = [
    "CacheLookup",
    "CacheManager",
    "LookupStatus",
    "limiter",
    "rate_limit_exceeded_handler",
]
