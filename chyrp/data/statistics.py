"""Cache statistics and monitoring module."""

from dataclasses import dataclass, field
from typing import Literal

from chyrp.utils import today_str


@dataclass
class CacheStatistics:
    """Cache statistics tracker (mutated only from the event loop)."""

    memory_hits: int = 0
    store_hits: int = 0
    misses: int = 0
    sets: int = 0
    deletes: int = 0
    invalidations: int = 0
    expirations: int = 0
    errors: int = 0
    created_at: str = field(default_factory=today_str)
    last_updated_at: str = field(default_factory=today_str)

    def _touch(self) -> None:
        self.last_updated_at = today_str()

    def record_hit(self, tier: Literal["memory", "store"]) -> None:
        """Record cache hit served by the given tier."""
        if tier == "memory":
            self.memory_hits += 1
        else:
            self.store_hits += 1
        self._touch()

    def record_miss(self) -> None:
        """Record cache miss."""
        self.misses += 1
        self._touch()

    def record_set(self) -> None:
        """Record cache set operation."""
        self.sets += 1
        self._touch()

    def record_delete(self) -> None:
        """Record cache delete operation."""
        self.deletes += 1
        self._touch()

    def record_invalidation(self, removed: int = 0) -> None:
        """
        Record entries removed by tag invalidation.

        Args:
            removed: Number of persistent entries deleted.
        """
        self.invalidations += removed
        self._touch()

    def record_expiration(self, removed: int = 1) -> None:
        """Record expired entries dropped lazily or by cleanup."""
        self.expirations += removed
        self._touch()

    def record_error(self) -> None:
        """Record cache error."""
        self.errors += 1
        self._touch()

    @property
    def hits(self) -> int:
        return self.memory_hits + self.store_hits

    @property
    def hit_rate(self) -> float:
        """
        Calculate cache hit rate.

        Returns:
            Hit rate as percentage (0-100).
        """
        total = self.hits + self.misses
        return (self.hits / total * 100) if total > 0 else 0.0

    @property
    def total_requests(self) -> int:
        return self.hits + self.misses

    def reset(self) -> None:
        """Reset statistics."""
        self.memory_hits = 0
        self.store_hits = 0
        self.misses = 0
        self.sets = 0
        self.deletes = 0
        self.invalidations = 0
        self.expirations = 0
        self.errors = 0
        self.created_at = today_str()
        self.last_updated_at = today_str()

    def to_dict(self) -> dict[str, int | str]:
        """
        Convert statistics to dictionary.

        Returns:
            Dictionary representation of statistics.
        """
        return {
            "hits": self.hits,
            "memory_hits": self.memory_hits,
            "store_hits": self.store_hits,
            "misses": self.misses,
            "sets": self.sets,
            "deletes": self.deletes,
            "invalidations": self.invalidations,
            "expirations": self.expirations,
            "errors": self.errors,
            "hit_rate": f"{self.hit_rate:.2f}%",
            "total_requests": self.total_requests,
            "created_at": self.created_at,
            "last_updated_at": self.last_updated_at,
        }
