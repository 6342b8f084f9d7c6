"""Cache store handle."""

from chatauth.infrastructure.cache.redis_cache import CacheManager

__all__ = ["CacheManager"]
