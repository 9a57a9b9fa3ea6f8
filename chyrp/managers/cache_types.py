"""Type definitions for caching module."""

from collections.abc import Callable, Coroutine, Iterable
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

CacheValue = Any
CacheKey = str
CacheCallback = Callable[[], Coroutine[Any, Any, CacheValue]]
CacheTagSet = Iterable[str]


class LookupStatus(StrEnum):
    """Outcome of a cache lookup."""

    HIT = "hit"
    MISS = "miss"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class CacheLookup:
    """
    Tagged result of `CacheManager.try_get`.

    `ERROR` means the persistent tier failed; callers treat it as a miss.
    """

    status: LookupStatus
    value: CacheValue = None
    error: BaseException | None = None

    @property
    def hit(self) -> bool:
        return self.status is LookupStatus.HIT

    @classmethod
    def found(cls, value: CacheValue) -> "CacheLookup":
        return cls(LookupStatus.HIT, value)

    @classmethod
    def missing(cls) -> "CacheLookup":
        return cls(LookupStatus.MISS)

    @classmethod
    def failed(cls, error: BaseException) -> "CacheLookup":
        return cls(LookupStatus.ERROR, error=error)
