from weatheredge.cache.store import DEFAULT_KEY, CacheEntry, CacheService, TTLCache

__all__ = ["CacheEntry", "CacheService", "TTLCache", "DEFAULT_KEY"]
