from chyrp.routes.blog import router as blog_router
from chyrp.routes.cache import router as cache_router
from chyrp.routes.user import router as user_router

__all__ = [
    "blog_router",
    "cache_router",
    "user_router",
]
