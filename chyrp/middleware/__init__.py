from chyrp.middleware.middleware import (
    LoggingMiddleware,
    SecurityHeadersMiddleware,
    lifespan,
    open_store,
)

__all__ = [
    "LoggingMiddleware",
    "SecurityHeadersMiddleware",
    "lifespan",
    "open_store",
]
