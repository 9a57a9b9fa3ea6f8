# chyrp/middleware/middleware.py
"""
Middleware components for the Modern Chyrp backend.

This module contains middleware for security headers and request logging,
and the lifespan event handler that opens the document store, builds the
shared cache manager and releases both on shutdown.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from logging import basicConfig, getLogger
from time import perf_counter

from fastapi import FastAPI, Request, Response
from pythonjsonlogger.json import JsonFormatter
from rich.logging import RichHandler
from rich.traceback import install
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from chyrp.clients.memory_store import MemoryDocumentStore
from chyrp.clients.protocols import DocumentStoreProtocol
from chyrp.clients.redis_store import RedisDocumentStore
from chyrp.configs import file_logger, settings
from chyrp.errors import DatabaseConnectionError
from chyrp.managers.cache_manager import CacheManager
from chyrp.utils import get_summary, host

# --- Logging Configuration ---
basicConfig(
    level=settings.LOG_LEVEL,
    format="%(message)s",
    datefmt="%X",
    handlers=[RichHandler(rich_tracebacks=True)],
)
logger = getLogger("rich")
file_logger(logger)
for handler in logger.handlers:
    handler.setFormatter(JsonFormatter())

install()


async def open_store() -> DocumentStoreProtocol:
    """
    Open the configured document store.

    A Redis store that cannot be reached is replaced by the in-memory
    store so the application still starts; the cache then only lives as
    long as the process.
    """
    if settings.STORE_BACKEND == "redis":
        store = RedisDocumentStore()
        try:
            await store.connect()
        except DatabaseConnectionError:
            logger.warning("Redis unavailable, falling back to the in-memory document store.")
        else:
            return store

    memory = MemoryDocumentStore()
    await memory.connect()
    return memory


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """Manage application startup and shutdown events with service initialization."""
    # Startup
    logger.info(f"Starting {app.title}...")
    logger.info(f"{app.description}")

    try:
        if settings.LOG_TO_FILE:
            logger.info("Logging to file enabled.")

        store = await open_store()
        app.state.store = store
        app.state.cache_manager = CacheManager(store)

        logger.info(f"Services initialized successfully (store: {store.backend})")
        logger.info("Services:")
        logger.info("  - Backend API: http://localhost:8000")
        logger.info("  - API Documentation: http://localhost:8000/docs")
        logger.info("  - Health Check: http://localhost:8000/health")

    except Exception:
        logger.exception("Failed to initialize services")
        raise

    yield

    # Shutdown
    logger.info(f"Shutting down {app.title}...")

    try:
        await store.close()
        logger.info("Document store closed")
    except Exception:
        logger.exception("Error during service cleanup")


class LoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        """Log request summary and timing information."""

        start_time = perf_counter()
        summary = get_summary(request)

        route_info = summary or f"{request.method} {request.url.path}"
        logger.info(f"Request: {route_info}, from ip: {host(request)}")

        response = await call_next(request)
        duration = perf_counter() - start_time

        logger.info(
            f"Response: {response.status_code} for {request.method} {request.url.path} "
            f"in {duration:.2f}s",
        )

        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        """Add security headers to all responses."""

        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        return response
