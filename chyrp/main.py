# chyrp/main.py

"""Modern Chyrp Backend - blog API with a two-tier document cache."""

from fastapi import FastAPI, Request
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import ORJSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded

from chyrp.configs import settings
from chyrp.errors import (
    BaseAppError,
    CacheExceptionError,
    DatabaseError,
    blog_exception_handler,
    cache_exception_handler,
    database_exception_handler,
)
from chyrp.managers import limiter, rate_limit_exceeded_handler
from chyrp.managers.cache_manager import CacheManager
from chyrp.middleware import LoggingMiddleware, SecurityHeadersMiddleware, lifespan
from chyrp.routes import blog_router, cache_router, user_router
from chyrp.schemas import CacheHealthResponse, HealthCheckResponse
from chyrp.utils import today_str

app = FastAPI(
    title=settings.APP_NAME,
    description="Posts, comments and reader interactions served through a tag-invalidated cache",
    version="1.0.0",
    debug=settings.DEBUG,
    lifespan=lifespan,
    swagger_ui_parameters={
        "docExpansion": "none",
        "operationsSorter": "method",
    },
)

app.add_middleware(LoggingMiddleware)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(GZipMiddleware, minimum_size=1000)


routes = [
    blog_router,
    user_router,
    cache_router,
]

_ = [app.include_router(router) for router in routes]

errors = [
    (CacheExceptionError, cache_exception_handler),
    (RateLimitExceeded, rate_limit_exceeded_handler),
    (DatabaseError, database_exception_handler),
    (BaseAppError, blog_exception_handler),
]

_ = [app.add_exception_handler(exc_type, handler) for exc_type, handler in errors]

app.state.limiter = limiter
limiter: Limiter = app.state.limiter


@app.get(
    "/health",
    tags=["🩺 Health"],
    summary="Health check endpoint",
    response_model=HealthCheckResponse,
    response_class=ORJSONResponse,
    responses={
        200: {
            "content": {
                "application/json": {
                    "example": {
                        "version": "1.0.0",
                        "status": "ok",
                        "timestamp": "2025-01-01 12:00:00",
                        "cache": {"backend": "in-memory", "status": "healthy"},
                    },
                },
            },
        },
    },
    operation_id="health_check",
)
@limiter.exempt
async def health_check(request: Request) -> ORJSONResponse:
    """
    Health check endpoint with cache status.

    Parameters
    ----------
    request : Request
        Current request context.

    Returns
    -------
    ORJSONResponse
        Health status including cache information. The overall status is
        `degraded` when the cache's document store does not answer.
    """
    manager: CacheManager = request.app.state.cache_manager
    cache = CacheHealthResponse(**await manager.health_check())

    response = HealthCheckResponse(
        version=app.version,
        status="ok" if cache.status == "healthy" else "degraded",
        timestamp=today_str(),
        cache=cache,
    )
    return ORJSONResponse(response.model_dump())
