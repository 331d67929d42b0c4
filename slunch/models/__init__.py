from slunch.models.cache_entry import CacheEntry

__all__ = [
    "CacheEntry",
]
