"""
Pytest configuration and shared fixtures for prospect_profile tests.
"""

import os
from datetime import datetime, timezone

import pytest

# Pin test environment before any Settings are loaded
os.environ.setdefault("ENRICHMENT_PROVIDER", "pdl")
os.environ["PDL_API_KEY"] = ""
os.environ["ABSTRACT_API_KEY"] = ""

from prospect_profile.errors import FetchError, FetchErrorKind  # noqa: E402
from prospect_profile.profile.reconciler import ProfileReconciler  # noqa: E402
from prospect_profile.profile.storage import InMemoryProfileStore  # noqa: E402

FIXED_TIME = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


class FakeFetcher:
    """
    Stand-in for fetch_page serving canned markup.

    Keys may be bare domains or absolute URLs. A value that is a FetchError
    is raised; a missing key raises FetchError(unreachable).
    """

    def __init__(self, pages: dict):
        self.pages = pages
        self.calls: list[str] = []

    def __call__(self, domain_or_url: str) -> str:
        self.calls.append(domain_or_url)
        key = domain_or_url.rstrip("/")
        page = self.pages.get(key)
        if page is None:
            page = self.pages.get(key.replace("https://", ""))
        if page is None:
            raise FetchError(FetchErrorKind.UNREACHABLE, f"no page for {domain_or_url}")
        if isinstance(page, FetchError):
            raise page
        return page


@pytest.fixture
def store():
    """Fresh in-memory profile store."""
    return InMemoryProfileStore()


@pytest.fixture
def reconciler(store):
    """Reconciler for company "acme" with a fixed clock."""
    return ProfileReconciler("acme", store=store, clock=lambda: FIXED_TIME)


@pytest.fixture
def fake_fetcher():
    """Factory for FakeFetcher instances."""
    return FakeFetcher


@pytest.fixture
def fixed_time():
    """Timestamp returned by the reconciler fixture's clock."""
    return FIXED_TIME
