from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class CacheEntry(BaseModel):
    """One cached value as held by either cache tier."""

    key: str
    data: Any = None
    created_at: float = Field(description="Epoch seconds of the write")
    expires_at: float = Field(description="Epoch seconds after which the entry is absent")
    tags: list[str] = Field(default_factory=list)

    def is_live(self, now: float) -> bool:
        """Return True while `now` is strictly before expiry."""
        return now < self.expires_at

    def has_any_tag(self, tags: frozenset[str]) -> bool:
        return not tags.isdisjoint(self.tags)


class CacheStatistics(BaseModel):
    """Cache statistics model."""

    model_config = ConfigDict(ser_json_timedelta="iso8601", ser_json_bytes="utf8")

    hits: int
    memory_hits: int
    store_hits: int
    misses: int
    sets: int
    deletes: int
    invalidations: int
    expirations: int
    errors: int
    hit_rate: str
    total_requests: int
    created_at: str
    last_updated_at: str


class CacheHealthResponse(BaseModel):
    """Cache health response model (nested in HealthCheckResponse)."""

    model_config = ConfigDict(ser_json_timedelta="iso8601", ser_json_bytes="utf8")

    backend: str
    status: str
    memory_entries: int
    statistics: CacheStatistics
    info: dict[str, Any] | None = None
    error: str | None = None


class HealthCheckResponse(BaseModel):
    """Health check response model."""

    model_config = ConfigDict(ser_json_timedelta="iso8601", ser_json_bytes="utf8")

    version: str = Field(description="API version")
    status: str = Field(description="Overall health status")
    timestamp: str = Field(description="Current timestamp")
    cache: CacheHealthResponse | None = Field(
        default=None,
        description="Cache health information",
    )


class CacheStatsResponse(BaseModel):
    """Cache statistics response model."""

    status: str
    data: dict[str, Any]


class CacheOperationResponse(BaseModel):
    """Result of a cache maintenance operation."""

    status: str
    message: str
    removed: int | None = None
    error_code: int | None = None


class CacheInvalidateRequest(BaseModel):
    """Tags to invalidate."""

    tags: list[str] = Field(..., min_length=1)
