from chyrp.utils.cache_keys import CacheKeys, CacheTags, normalize_query
from chyrp.utils.helpers import get_summary, host, today_str, utc_now

__all__ = [
    "CacheKeys",
    "CacheTags",
    "get_summary",
    "host",
    "normalize_query",
    "today_str",
    "utc_now",
]
