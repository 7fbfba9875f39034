"""
Unit tests for prospect_profile.cache (AppCache) module.
"""

import tempfile
from pathlib import Path

from prospect_profile.cache import AppCache


class TestAppCacheBasics:
    """Basic AppCache functionality tests."""

    def test_initialization(self):
        """Cache directory is created."""
        with tempfile.TemporaryDirectory() as tmpdir:
            cache_dir = Path(tmpdir) / "test_cache"
            cache = AppCache(cache_dir)

            assert cache.cache_dir == cache_dir
            assert cache_dir.exists()
            cache.close()

    def test_set_and_get(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            cache = AppCache(Path(tmpdir) / "cache")

            cache.set("enrichment", "pdl:domain:acme.com", {"name": "Acme"})

            assert cache.get("enrichment", "pdl:domain:acme.com") == {"name": "Acme"}
            cache.close()

    def test_get_missing_key(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            cache = AppCache(Path(tmpdir) / "cache")
            assert cache.get("enrichment", "missing") is None
            cache.close()

    def test_namespaces_do_not_collide(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            cache = AppCache(Path(tmpdir) / "cache")

            cache.set("enrichment", "acme.com", "lookup")
            cache.set("profiles", "acme.com", "profile")

            assert cache.get("enrichment", "acme.com") == "lookup"
            assert cache.get("profiles", "acme.com") == "profile"
            cache.close()

    def test_delete(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            cache = AppCache(Path(tmpdir) / "cache")
            cache.set("profiles", "acme", 1)

            assert cache.delete("profiles", "acme") is True
            assert cache.delete("profiles", "acme") is False
            assert cache.get("profiles", "acme") is None
            cache.close()


class TestAppCacheNamespaces:
    """Counting, listing and clearing by namespace."""

    def test_count_and_keys(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            cache = AppCache(Path(tmpdir) / "cache")
            for key in ("a", "b", "c"):
                cache.set("enrichment", key, key)
            cache.set("profiles", "acme", {})

            assert cache.count() == 4
            assert cache.count("enrichment") == 3
            assert sorted(cache.keys("enrichment")) == ["a", "b", "c"]
            assert len(cache.keys("enrichment", limit=2)) == 2
            cache.close()

    def test_clear_namespace(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            cache = AppCache(Path(tmpdir) / "cache")
            cache.set("enrichment", "a", 1)
            cache.set("enrichment", "b", 2)
            cache.set("profiles", "acme", 3)

            assert cache.clear_namespace("enrichment") == 2
            assert cache.count("enrichment") == 0
            assert cache.get("profiles", "acme") == 3
            cache.close()

    def test_stats(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            cache = AppCache(Path(tmpdir) / "cache")
            cache.set("enrichment", "a", 1)
            cache.set("profiles", "acme", 2)

            stats = cache.stats()

            assert stats["total"] == 2
            assert stats["by_namespace"] == {"enrichment": 1, "profiles": 1}
            assert stats["cache_dir"] == str(Path(tmpdir) / "cache")
            assert stats["size_mb"] >= 0
            cache.close()

    def test_ttl_sets_expiry(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            cache = AppCache(Path(tmpdir) / "cache")
            cache.set("enrichment", "a", 1, ttl_days=30)

            _, expire_time = cache._cache.get("enrichment:a", expire_time=True)

            assert expire_time is not None
            cache.close()
