from chyrp.data.statistics import CacheStatistics

__all__ = ["CacheStatistics"]
