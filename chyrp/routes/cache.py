# chyrp/routes/cache.py
"""Cache administration endpoints with SlowAPI rate limits."""

from logging import getLogger

from fastapi import APIRouter, Request
from fastapi.responses import ORJSONResponse
from starlette.status import HTTP_503_SERVICE_UNAVAILABLE

from chyrp.configs import file_logger
from chyrp.dependencies import CacheDep
from chyrp.managers import limiter
from chyrp.schemas import CacheInvalidateRequest, CacheOperationResponse, CacheStatsResponse
from chyrp.utils import host

logger = file_logger(getLogger(__name__))

router = APIRouter(prefix="/cache", tags=["cache"])


@router.get(
    "/stats",
    response_model=CacheStatsResponse,
    summary="Get cache statistics",
    response_class=ORJSONResponse,
)
@limiter.limit("10/minute")
async def get_cache_stats(request: Request, manager: CacheDep) -> ORJSONResponse:
    """
    Get cache statistics.

    Returns:
        Cache statistics.
    """
    stats = manager.get_statistics()
    response = CacheStatsResponse(status="success", data=stats)
    return ORJSONResponse(content=response.model_dump())


@router.get(
    "/ping",
    response_model=CacheOperationResponse,
    summary="Ping the persistent cache tier",
    response_class=ORJSONResponse,
)
@limiter.limit("20/minute")
async def ping_cache(request: Request, manager: CacheDep) -> ORJSONResponse:
    """
    Ping the document store behind the cache.

    Returns:
        Ping result; 503 when the store is unreachable.
    """
    if await manager.ping():
        response = CacheOperationResponse(status="success", message="Cache store is reachable")
        return ORJSONResponse(content=response.model_dump())

    response = CacheOperationResponse(
        status="error",
        message="Cache store is not reachable",
        error_code=HTTP_503_SERVICE_UNAVAILABLE,
    )
    return ORJSONResponse(content=response.model_dump(), status_code=HTTP_503_SERVICE_UNAVAILABLE)


@router.get(
    "/reset-stats",
    response_model=CacheOperationResponse,
    summary="Reset cache statistics",
    response_class=ORJSONResponse,
)
@limiter.limit("5/hour")
async def reset_stats(request: Request, manager: CacheDep) -> ORJSONResponse:
    """
    Reset cache statistics.

    Returns:
        Reset operation result.
    """
    manager.reset_statistics()
    response = CacheOperationResponse(status="success", message="Cache statistics reset")
    return ORJSONResponse(content=response.model_dump())


@router.post(
    "/cleanup",
    response_model=CacheOperationResponse,
    summary="Remove expired cache entries",
    response_class=ORJSONResponse,
)
@limiter.limit("10/hour")
async def cleanup_cache(request: Request, manager: CacheDep) -> ORJSONResponse:
    """
    Remove expired entries from both cache tiers.

    Returns:
        Number of stored entries removed.
    """
    removed = await manager.cleanup()
    response = CacheOperationResponse(
        status="success",
        message="Expired cache entries removed",
        removed=removed,
    )
    return ORJSONResponse(content=response.model_dump())


@router.post(
    "/invalidate",
    response_model=CacheOperationResponse,
    summary="Invalidate cache entries by tag",
    response_class=ORJSONResponse,
)
@limiter.limit("30/minute")
async def invalidate_tags(
    request: Request,
    payload: CacheInvalidateRequest,
    manager: CacheDep,
) -> ORJSONResponse:
    """
    Drop every entry carrying at least one of the given tags.

    Returns:
        Number of stored entries removed.
    """
    removed = await manager.clear_by_tags(set(payload.tags))
    logger.info(f"Tags {sorted(payload.tags)} invalidated from ip {host(request)}")
    response = CacheOperationResponse(
        status="success",
        message=f"Invalidated tags: {', '.join(sorted(payload.tags))}",
        removed=removed,
    )
    return ORJSONResponse(content=response.model_dump())


@router.delete(
    "/clear",
    response_model=CacheOperationResponse,
    summary="Clear all cache entries",
    response_class=ORJSONResponse,
)
@limiter.limit("2/hour")
async def clear_cache(request: Request, manager: CacheDep) -> ORJSONResponse:
    """
    Clear all cache entries.

    Returns:
        Clear operation result.
    """
    removed = await manager.clear_all()
    response = CacheOperationResponse(
        status="success",
        message="Cache cleared successfully",
        removed=removed,
    )
    return ORJSONResponse(content=response.model_dump())
