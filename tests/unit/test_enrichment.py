"""
Unit tests for the enrichment lookup client.

The HTTP session is a MagicMock; provider rate limiters are replaced with
no-ops so tests never sleep.
"""

from unittest.mock import MagicMock, patch

import pytest
import requests

from prospect_profile.cache import AppCache
from prospect_profile.errors import EnrichmentFailureKind
from prospect_profile.profile.models import Origin
from prospect_profile.sources import enrichment
from prospect_profile.sources.enrichment import (
    ABSTRACT_ENRICH_URL,
    PDL_ENRICH_URL,
    PDL_SEARCH_URL,
    CompanyFacts,
    EnrichmentClient,
    EnrichmentResult,
    employee_count_bucket,
    enrichment_candidates,
    normalize_abstract_company,
    normalize_pdl_company,
)

PDL_PAYLOAD = {
    "display_name": "Acme Widgets",
    "name": "acme widgets",
    "industry": "machinery",
    "employee_count": 37,
    "size": "11-50",
    "founded": 1982,
    "website": "acmewidgets.com",
    "summary": "Maker of  precision widgets.",
    "linkedin_url": "linkedin.com/company/acme-widgets",
    "location": {
        "street_address": "742 Evergreen Terrace",
        "locality": "Springfield",
        "region": "Illinois",
        "postal_code": "62704",
        "country": "United States",
    },
}

ABSTRACT_PAYLOAD = {
    "name": "Acme Widgets",
    "domain": "acmewidgets.com",
    "industry": "Manufacturing",
    "employee_count": 1200,
    "year_founded": 1982,
    "linkedin_url": "https://www.linkedin.com/company/acme-widgets",
    "phone": "+1 555 867 5309",
    "address": {"street_number": "742", "street_name": "Evergreen Terrace", "city": "Springfield"},
}


@pytest.fixture(autouse=True)
def no_rate_limits():
    with patch.object(enrichment, "get_rate_limiter") as get_limiter:
        yield get_limiter


def make_session(status_code=200, payload=None, exc=None):
    session = MagicMock()
    if exc is not None:
        session.request.side_effect = exc
        return session
    response = MagicMock()
    response.status_code = status_code
    if isinstance(payload, Exception):
        response.json.side_effect = payload
    else:
        response.json.return_value = payload
    session.request.return_value = response
    return session


class TestEmployeeCountBucket:
    @pytest.mark.parametrize(
        "count,expected",
        [(1, "1-10"), (10, "1-10"), (37, "11-50"), (200, "51-200"), (10000, "5001-10000"), (25000, "10001+")],
    )
    def test_counts(self, count, expected):
        assert employee_count_bucket(count) == expected

    def test_size_labels(self):
        assert employee_count_bucket(size="51-200") == "51-200"
        assert employee_count_bucket(size="Medium") == "201-500"

    def test_unknown(self):
        assert employee_count_bucket() is None
        assert employee_count_bucket(0) is None
        assert employee_count_bucket(size="huge") is None


class TestNormalization:
    def test_pdl(self):
        facts = normalize_pdl_company(PDL_PAYLOAD)

        assert facts.name == "Acme Widgets"
        assert facts.industry == "machinery"
        assert facts.employee_count_bucket == "11-50"
        assert facts.founded == "1982"
        assert facts.website == "https://acmewidgets.com"
        assert facts.description == "Maker of precision widgets."
        assert facts.social_profiles == {"linkedin": "https://linkedin.com/company/acme-widgets"}
        assert facts.city == "Springfield"
        assert facts.state == "Illinois"

    def test_pdl_coarse_size(self):
        facts = normalize_pdl_company({"name": "Acme", "size": "medium"})
        assert facts.employee_count == 250
        assert facts.employee_count_bucket == "201-500"

    def test_abstract(self):
        facts = normalize_abstract_company(ABSTRACT_PAYLOAD)

        assert facts.name == "Acme Widgets"
        assert facts.employee_count_bucket == "1001-5000"
        assert facts.street_address == "742 Evergreen Terrace"
        assert facts.phone == "+1 555 867 5309"
        assert facts.country is None


class TestEnrichByDomain:
    def test_pdl_success(self, no_rate_limits):
        session = make_session(payload=PDL_PAYLOAD)
        client = EnrichmentClient("pdl", api_key="test_key", session=session)

        result = client.enrich_by_domain("https://www.AcmeWidgets.com/about")

        assert result.ok
        assert result.provider == "pdl"
        assert result.facts.name == "Acme Widgets"
        method, url = session.request.call_args.args
        assert (method, url) == ("GET", PDL_ENRICH_URL)
        kwargs = session.request.call_args.kwargs
        assert kwargs["params"] == {"website": "acmewidgets.com"}
        assert kwargs["headers"]["X-Api-Key"] == "test_key"
        no_rate_limits.assert_called_once_with("pdl")
        no_rate_limits.return_value.acquire.assert_called_once()

    def test_abstract_success(self):
        session = make_session(payload=ABSTRACT_PAYLOAD)
        client = EnrichmentClient("abstract", api_key="abc", session=session)

        result = client.enrich_by_domain("acmewidgets.com")

        assert result.ok
        assert session.request.call_args.args == ("GET", ABSTRACT_ENRICH_URL)
        assert session.request.call_args.kwargs["params"] == {"api_key": "abc", "domain": "acmewidgets.com"}

    @pytest.mark.parametrize(
        "status,kind",
        [
            (404, EnrichmentFailureKind.NOT_FOUND),
            (429, EnrichmentFailureKind.RATE_LIMITED),
            (401, EnrichmentFailureKind.TRANSPORT_ERROR),
            (503, EnrichmentFailureKind.TRANSPORT_ERROR),
        ],
    )
    def test_http_failures(self, status, kind):
        session = make_session(status_code=status, payload={"error": {"message": "nope"}})
        result = EnrichmentClient("pdl", api_key="k", session=session).enrich_by_domain("acme.com")

        assert not result.ok
        assert result.failure is kind
        assert result.reason == f"HTTP {status}: nope"

    def test_connection_error(self):
        session = make_session(exc=requests.exceptions.ConnectionError("connection refused"))
        result = EnrichmentClient("pdl", api_key="k", session=session).enrich_by_domain("acme.com")

        assert result.failure is EnrichmentFailureKind.TRANSPORT_ERROR
        assert "connection refused" in result.reason

    def test_invalid_json(self):
        session = make_session(payload=ValueError("bad json"))
        result = EnrichmentClient("pdl", api_key="k", session=session).enrich_by_domain("acme.com")

        assert result.failure is EnrichmentFailureKind.TRANSPORT_ERROR

    @pytest.mark.parametrize("payload", [{}, {"industry": "machinery"}])
    def test_no_company_data(self, payload):
        session = make_session(payload=payload)
        result = EnrichmentClient("pdl", api_key="k", session=session).enrich_by_domain("acme.com")

        assert result.failure is EnrichmentFailureKind.NOT_FOUND

    def test_missing_api_key(self):
        session = make_session(payload=PDL_PAYLOAD)
        result = EnrichmentClient("pdl", api_key="", session=session).enrich_by_domain("acme.com")

        assert result.failure is EnrichmentFailureKind.TRANSPORT_ERROR
        assert result.reason == "API key not configured"
        session.request.assert_not_called()

    def test_empty_domain(self):
        session = make_session(payload=PDL_PAYLOAD)
        result = EnrichmentClient("pdl", api_key="k", session=session).enrich_by_domain("")

        assert result.failure is EnrichmentFailureKind.NOT_FOUND
        session.request.assert_not_called()

    def test_unknown_provider(self):
        with pytest.raises(ValueError):
            EnrichmentClient("clearbit", api_key="k")


class TestEnrichByName:
    def test_pdl_search(self):
        session = make_session(payload={"data": [PDL_PAYLOAD], "total": 1})
        client = EnrichmentClient("pdl", api_key="k", session=session)

        result = client.enrich_by_name("Acme Widgets", location="Springfield")

        assert result.ok
        assert session.request.call_args.args == ("POST", PDL_SEARCH_URL)
        query = session.request.call_args.kwargs["json"]
        assert query["size"] == 1
        assert query["query"]["bool"]["must"] == [
            {"term": {"name": "acme widgets"}},
            {"match": {"location.name": "Springfield"}},
        ]

    def test_no_matches(self):
        session = make_session(payload={"data": [], "total": 0})
        result = EnrichmentClient("pdl", api_key="k", session=session).enrich_by_name("Nobody")

        assert result.failure is EnrichmentFailureKind.NOT_FOUND

    def test_abstract_does_not_search(self):
        session = make_session(payload=ABSTRACT_PAYLOAD)
        result = EnrichmentClient("abstract", api_key="k", session=session).enrich_by_name("Acme")

        assert result.failure is EnrichmentFailureKind.NOT_FOUND
        session.request.assert_not_called()


class TestCaching:
    def test_success_cached(self, tmp_path):
        cache = AppCache(tmp_path / "cache")
        session = make_session(payload=PDL_PAYLOAD)
        client = EnrichmentClient("pdl", api_key="k", session=session, cache=cache)

        first = client.enrich_by_domain("acmewidgets.com")
        second = client.enrich_by_domain("www.acmewidgets.com")

        assert first.facts == second.facts
        assert session.request.call_count == 1
        cache.close()

    def test_failure_not_cached(self, tmp_path):
        cache = AppCache(tmp_path / "cache")
        session = make_session(status_code=404, payload={})
        client = EnrichmentClient("pdl", api_key="k", session=session, cache=cache)

        client.enrich_by_domain("acme.com")
        client.enrich_by_domain("acme.com")

        assert session.request.call_count == 2
        assert cache.count("enrichment") == 0
        cache.close()


class TestEnrichmentCandidates:
    def test_success(self):
        facts = CompanyFacts(name="Acme Widgets", industry="machinery", employee_count=37, employee_count_bucket="11-50")
        candidates = enrichment_candidates(EnrichmentResult.success("pdl", facts), pass_id=2)

        assert {c.field: c.value for c in candidates} == {
            "name": "Acme Widgets",
            "industry": "machinery",
            "employee_count_bucket": "11-50",
        }
        assert all(c.source is Origin.ENRICHMENT and c.pass_id == 2 for c in candidates)

    def test_failure_yields_nothing(self):
        result = EnrichmentResult.failed("pdl", EnrichmentFailureKind.RATE_LIMITED, "HTTP 429")
        assert enrichment_candidates(result) == []
