"""
Unit tests for profile persistence.
"""

from datetime import datetime, timezone

import pytest

from prospect_profile.cache import AppCache
from prospect_profile.profile.models import CompanyProfile, FieldProvenance, Origin, empty_provenance
from prospect_profile.profile.reconciler import ProfileReconciler
from prospect_profile.profile.storage import CacheProfileStore, InMemoryProfileStore


@pytest.fixture
def cache_store(tmp_path):
    cache = AppCache(tmp_path / "cache")
    yield CacheProfileStore(cache)
    cache.close()


def sample_record():
    profile = CompanyProfile(name="Acme Widgets", social_profiles={"linkedin": "https://linkedin.com/company/acme"})
    profile.structured_address.city = "Springfield"
    provenance = empty_provenance()
    provenance["name"] = FieldProvenance(
        origin=Origin.USER,
        last_suggested_value="Acmewidgets",
        accepted_at=datetime(2024, 3, 1, tzinfo=timezone.utc),
        pass_id=1,
    )
    return profile, provenance


class TestInMemoryProfileStore:
    def test_empty(self, store):
        assert store.load_profile("acme") is None
        assert store.load_provenance("acme") is None

    def test_round_trip_is_isolated(self, store):
        profile, provenance = sample_record()
        store.save_profile("acme", profile, provenance)

        profile.name = "Changed"
        loaded = store.load_profile("acme")
        loaded.social_profiles["twitter"] = "x"

        assert store.load_profile("acme").name == "Acme Widgets"
        assert "twitter" not in store.load_profile("acme").social_profiles
        assert store.load_provenance("acme")["name"].origin is Origin.USER
        assert store.save_count == 1


class TestCacheProfileStore:
    def test_empty(self, cache_store):
        assert cache_store.load_profile("acme") is None
        assert cache_store.load_provenance("acme") is None

    def test_round_trip(self, cache_store):
        profile, provenance = sample_record()
        cache_store.save_profile("acme", profile, provenance)

        assert cache_store.load_profile("acme") == profile
        assert cache_store.load_provenance("acme")["name"] == provenance["name"]
        assert cache_store.cache.count("profiles") == 1

    def test_reconciler_resumes_from_disk(self, cache_store):
        first = ProfileReconciler("acme", store=cache_store)
        first.suggest("industry", "machinery", Origin.ENRICHMENT, pass_id=1)
        first.record_user_edit("name", "Acme Widgets LLC")

        second = ProfileReconciler("acme", store=cache_store)
        decision = second.suggest("name", "Acme Widgets Inc", Origin.ENRICHMENT, pass_id=2)

        assert not decision.applied
        assert second.profile.name == "Acme Widgets LLC"
        assert second.profile.industry == "machinery"
        assert second.provenance("industry").origin is Origin.ENRICHMENT
