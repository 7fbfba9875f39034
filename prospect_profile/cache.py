"""
Caching layer using diskcache.

Backs two things: successful enrichment lookups (namespace ``enrichment``)
and stored company profiles (namespace ``profiles``, see
``prospect_profile.profile.storage``). Keys are namespaced so the two never
collide.
"""

import logging
from pathlib import Path
from typing import Any, Optional

import diskcache

from prospect_profile.config import get_cache_dir

logger = logging.getLogger(__name__)

_cache: Optional["AppCache"] = None

# Profiles and lookup payloads are small; 512 MB is far more than needed
DEFAULT_CACHE_SIZE_LIMIT = 512 * 1024 * 1024


class AppCache:
    """Namespaced cache over a SQLite-backed diskcache.Cache."""

    def __init__(
        self,
        cache_dir: Path,
        timeout: float = 10.0,
        size_limit: int = DEFAULT_CACHE_SIZE_LIMIT,
    ):
        """
        Initialize cache.

        Args:
            cache_dir: Directory for cache files (created if missing)
            timeout: Seconds to wait for the SQLite lock. Collection threads
                     write profiles concurrently, so keep this above zero.
            size_limit: Maximum cache size in bytes (0 for unlimited)
        """
        self.cache_dir = Path(cache_dir)
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        self._cache = diskcache.Cache(
            str(self.cache_dir),
            timeout=timeout,
            size_limit=size_limit,
        )

    def _make_key(self, namespace: str, key: str) -> str:
        return f"{namespace}:{key}"

    def get(self, namespace: str, key: str) -> Any | None:
        """Get a value from cache."""
        return self._cache.get(self._make_key(namespace, key))

    def set(
        self,
        namespace: str,
        key: str,
        value: Any,
        ttl_days: int | None = None,
    ) -> None:
        """Set a value in cache with optional TTL."""
        expire = ttl_days * 86400 if ttl_days else None
        self._cache.set(self._make_key(namespace, key), value, expire=expire)

    def delete(self, namespace: str, key: str) -> bool:
        """Delete a value from cache."""
        return bool(self._cache.delete(self._make_key(namespace, key)))

    def clear_namespace(self, namespace: str) -> int:
        """Clear all keys in a namespace. Returns the number removed."""
        prefix = f"{namespace}:"
        doomed = [key for key in self._cache if key.startswith(prefix)]
        for key in doomed:
            self._cache.delete(key)
        return len(doomed)

    def count(self, namespace: str | None = None) -> int:
        """Count entries, optionally filtered by namespace."""
        if namespace is None:
            return len(self._cache)
        prefix = f"{namespace}:"
        return sum(1 for key in self._cache if key.startswith(prefix))

    def keys(self, namespace: str | None = None, limit: int = 100) -> list[str]:
        """Get keys (without namespace prefix), optionally filtered by namespace."""
        prefix = f"{namespace}:" if namespace else ""
        found = []
        for key in self._cache:
            if key.startswith(prefix):
                found.append(key[len(prefix) :] if prefix else key)
                if len(found) >= limit:
                    break
        return found

    def stats(self) -> dict:
        """Entry counts per namespace plus disk usage."""
        namespaces: dict[str, int] = {}
        for key in self._cache:
            ns = key.split(":")[0] if ":" in key else "unknown"
            namespaces[ns] = namespaces.get(ns, 0) + 1

        volume_bytes = self._cache.volume()
        return {
            "total": len(self._cache),
            "by_namespace": namespaces,
            "size_mb": round(volume_bytes / (1024 * 1024), 2),
            "cache_dir": str(self.cache_dir),
        }

    def close(self):
        """Close the cache."""
        self._cache.close()


def get_cache(cache_dir: Path | None = None) -> AppCache:
    """
    Get or create the global cache instance.

    Args:
        cache_dir: Directory for cache files (default: ``Settings.cache_dir``)
    """
    global _cache
    if _cache is None:
        _cache = AppCache(cache_dir or get_cache_dir())
    return _cache
