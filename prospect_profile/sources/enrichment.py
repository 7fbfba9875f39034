"""
Enrichment lookup client.

Queries a paid company database and normalizes the answer into
CompanyFacts. Two providers are supported, chosen by ENRICHMENT_PROVIDER:

- People Data Labs ("pdl"): lookup by website, search by name
- AbstractAPI ("abstract"): lookup by domain only

Lookups never raise. Every call makes exactly one HTTP attempt and returns
an EnrichmentResult that is either a success carrying CompanyFacts or a
failure carrying a kind (not_found / rate_limited / transport_error) and a
human-readable reason.
"""

import logging
from dataclasses import dataclass, fields

import requests

from prospect_profile.cache import AppCache
from prospect_profile.config import (
    get_abstract_api_key,
    get_enrichment_provider,
    get_pdl_api_key,
    get_provider_rate_limits,
    get_settings,
)
from prospect_profile.constants import (
    CACHE_TTL_ENRICHMENT,
    EMPLOYEE_COUNT_BUCKETS,
    EMPLOYEE_COUNT_TOP_BUCKET,
)
from prospect_profile.domain.validation import format_url, strip_domain
from prospect_profile.errors import EnrichmentFailureKind
from prospect_profile.profile.models import Candidate, Origin
from prospect_profile.utils.rate_limiting import get_rate_limiter

logger = logging.getLogger(__name__)

PDL_ENRICH_URL = "https://api.peopledatalabs.com/v5/company/enrich"
PDL_SEARCH_URL = "https://api.peopledatalabs.com/v5/company/search"
ABSTRACT_ENRICH_URL = "https://companyenrichment.abstractapi.com/v1/"

ENRICHMENT_NAMESPACE = "enrichment"

# PDL sometimes reports only a coarse size; map it to a representative headcount
PDL_SIZE_COUNTS = {
    "small": 50,
    "medium": 250,
    "large": 1000,
    "enterprise": 5000,
}

BUCKET_LABELS = frozenset(label for _, label in EMPLOYEE_COUNT_BUCKETS) | {EMPLOYEE_COUNT_TOP_BUCKET}


@dataclass(frozen=True)
class CompanyFacts:
    """Normalized company record returned by either provider."""

    name: str | None = None
    industry: str | None = None
    employee_count: int | None = None
    employee_count_bucket: str | None = None
    founded: str | None = None
    annual_revenue_bucket: str | None = None
    social_profiles: dict[str, str] | None = None
    website: str | None = None
    description: str | None = None
    phone: str | None = None
    street_address: str | None = None
    city: str | None = None
    state: str | None = None
    postal_code: str | None = None
    country: str | None = None


@dataclass(frozen=True)
class EnrichmentResult:
    """Tagged success/failure of one lookup."""

    provider: str
    facts: CompanyFacts | None = None
    failure: EnrichmentFailureKind | None = None
    reason: str = ""

    @property
    def ok(self) -> bool:
        return self.facts is not None

    @classmethod
    def success(cls, provider: str, facts: CompanyFacts) -> "EnrichmentResult":
        return cls(provider=provider, facts=facts)

    @classmethod
    def failed(cls, provider: str, kind: EnrichmentFailureKind, reason: str) -> "EnrichmentResult":
        return cls(provider=provider, failure=kind, reason=reason)


class _LookupFailed(Exception):
    def __init__(self, kind: EnrichmentFailureKind, reason: str):
        self.kind = kind
        self.reason = reason
        super().__init__(reason)


def employee_count_bucket(count: int | None = None, size: str | None = None) -> str | None:
    """
    Normalize a headcount (or a provider size label) into a bucket.

    Examples:
        employee_count_bucket(37) -> "11-50"
        employee_count_bucket(size="51-200") -> "51-200"
        employee_count_bucket(size="medium") -> "201-500"
        employee_count_bucket(25000) -> "10001+"
    """
    if count is None and size:
        normalized = size.strip().lower()
        if normalized in BUCKET_LABELS:
            return normalized
        count = PDL_SIZE_COUNTS.get(normalized)
    if count is None or count <= 0:
        return None
    for upper, label in EMPLOYEE_COUNT_BUCKETS:
        if count <= upper:
            return label
    return EMPLOYEE_COUNT_TOP_BUCKET


def _clean(value) -> str | None:
    if value is None:
        return None
    text = " ".join(str(value).split())
    return text or None


def _social_profiles(pairs: dict[str, str | None]) -> dict[str, str] | None:
    profiles = {network: format_url(url) for network, url in pairs.items() if url}
    return profiles or None


def normalize_pdl_company(payload: dict) -> CompanyFacts:
    """Map a PDL company record onto CompanyFacts."""
    employee_count = payload.get("employee_count")
    size = payload.get("size")
    if not employee_count and size:
        employee_count = PDL_SIZE_COUNTS.get(str(size).strip().lower())

    profiles = payload.get("profiles")
    if not isinstance(profiles, dict):
        profiles = {}
    location = payload.get("location") or {}
    founded = payload.get("founded") or payload.get("year_founded")

    return CompanyFacts(
        name=_clean(payload.get("display_name") or payload.get("name")),
        industry=_clean(payload.get("industry_name") or payload.get("industry")),
        employee_count=employee_count or None,
        employee_count_bucket=employee_count_bucket(
            payload.get("employee_count"), size
        ),
        founded=str(founded) if founded else None,
        annual_revenue_bucket=_clean(payload.get("inferred_revenue") or payload.get("revenue")),
        social_profiles=_social_profiles(
            {
                "linkedin": profiles.get("linkedin_url") or payload.get("linkedin_url"),
                "twitter": profiles.get("twitter_url") or payload.get("twitter_url"),
                "facebook": profiles.get("facebook_url") or payload.get("facebook_url"),
            }
        ),
        website=format_url(payload["website"]) if payload.get("website") else None,
        description=_clean(payload.get("summary") or payload.get("description")),
        street_address=_clean(location.get("street_address")),
        city=_clean(location.get("locality")),
        state=_clean(location.get("region")),
        postal_code=_clean(location.get("postal_code")),
        country=_clean(location.get("country")),
    )


def normalize_abstract_company(payload: dict) -> CompanyFacts:
    """Map an AbstractAPI company record onto CompanyFacts."""
    address = payload.get("address") or {}
    street = " ".join(
        part for part in (address.get("street_number"), address.get("street_name")) if part
    )
    employee_count = payload.get("employee_count")
    founded = payload.get("year_founded")

    return CompanyFacts(
        name=_clean(payload.get("name")),
        industry=_clean(payload.get("industry")),
        employee_count=employee_count or None,
        employee_count_bucket=employee_count_bucket(employee_count),
        founded=str(founded) if founded else None,
        social_profiles=_social_profiles({"linkedin": payload.get("linkedin_url")}),
        website=format_url(payload["domain"]) if payload.get("domain") else None,
        phone=_clean(payload.get("phone")),
        street_address=_clean(street),
        city=_clean(address.get("city")),
        state=_clean(address.get("state")),
        postal_code=_clean(address.get("postal_code")),
        country=_clean(address.get("country") or payload.get("country")),
    )


def _error_reason(response: requests.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return f"HTTP {response.status_code}"
    error = payload.get("error") if isinstance(payload, dict) else None
    if isinstance(error, dict):
        error = error.get("message")
    return f"HTTP {response.status_code}: {error}" if error else f"HTTP {response.status_code}"


class EnrichmentClient:
    """
    One provider's lookup client.

    Args:
        provider: "pdl" or "abstract" (defaults to ENRICHMENT_PROVIDER)
        api_key: Overrides the configured key for the provider
        session: Optional requests.Session (tests pass a mock)
        cache: Optional AppCache; successful lookups are cached there
        timeout: Request timeout in seconds (defaults to the enrichment bound)
    """

    def __init__(
        self,
        provider: str | None = None,
        api_key: str | None = None,
        session: requests.Session | None = None,
        cache: AppCache | None = None,
        timeout: float | None = None,
    ):
        self.provider = (provider or get_enrichment_provider()).lower()
        if self.provider not in get_provider_rate_limits():
            raise ValueError(f"Unknown enrichment provider: {self.provider}")
        if api_key is None:
            api_key = get_pdl_api_key() if self.provider == "pdl" else get_abstract_api_key()
        self.api_key = api_key
        self.session = session or requests.Session()
        self.cache = cache
        self.timeout = timeout if timeout is not None else get_settings().enrichment_timeout

    def enrich_by_domain(self, domain: str) -> EnrichmentResult:
        """Look up a company by its domain (scheme, ``www.`` and path are stripped)."""
        normalized = strip_domain(domain)
        if not normalized:
            return EnrichmentResult.failed(
                self.provider, EnrichmentFailureKind.NOT_FOUND, "No domain given"
            )
        return self._lookup(f"{self.provider}:domain:{normalized}", self._fetch_by_domain, normalized)

    def enrich_by_name(self, name: str, location: str | None = None) -> EnrichmentResult:
        """Search for a company by name, optionally narrowed by location."""
        name = _clean(name)
        if not name:
            return EnrichmentResult.failed(
                self.provider, EnrichmentFailureKind.NOT_FOUND, "No company name given"
            )
        if self.provider == "abstract":
            return EnrichmentResult.failed(
                self.provider,
                EnrichmentFailureKind.NOT_FOUND,
                "AbstractAPI only supports lookup by domain",
            )
        key = f"{self.provider}:name:{name.lower()}|{(location or '').lower()}"
        return self._lookup(key, self._fetch_by_name, name, location)

    # ------------------------------------------------------------------

    def _lookup(self, cache_key: str, fetch, *args) -> EnrichmentResult:
        if not self.api_key:
            logger.debug(f"{self.provider} enrichment skipped: API key not configured")
            return EnrichmentResult.failed(
                self.provider, EnrichmentFailureKind.TRANSPORT_ERROR, "API key not configured"
            )

        if self.cache is not None:
            cached = self.cache.get(ENRICHMENT_NAMESPACE, cache_key)
            if cached is not None:
                logger.debug(f"Enrichment cache hit: {cache_key}")
                return EnrichmentResult.success(self.provider, CompanyFacts(**cached))

        try:
            facts = fetch(*args)
        except _LookupFailed as e:
            logger.debug(f"{self.provider} enrichment failed ({e.kind.value}): {e.reason}")
            return EnrichmentResult.failed(self.provider, e.kind, e.reason)

        if self.cache is not None:
            self.cache.set(
                ENRICHMENT_NAMESPACE,
                cache_key,
                {f.name: getattr(facts, f.name) for f in fields(CompanyFacts)},
                ttl_days=CACHE_TTL_ENRICHMENT,
            )
        logger.debug(f"{self.provider} enrichment success: {facts.name} ({facts.industry})")
        return EnrichmentResult.success(self.provider, facts)

    def _request(self, method: str, url: str, **kwargs) -> dict:
        get_rate_limiter(self.provider).acquire()
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.exceptions.RequestException as e:
            raise _LookupFailed(EnrichmentFailureKind.TRANSPORT_ERROR, str(e)) from e

        if response.status_code == 404:
            raise _LookupFailed(EnrichmentFailureKind.NOT_FOUND, _error_reason(response))
        if response.status_code == 429:
            raise _LookupFailed(EnrichmentFailureKind.RATE_LIMITED, _error_reason(response))
        if response.status_code >= 400:
            raise _LookupFailed(EnrichmentFailureKind.TRANSPORT_ERROR, _error_reason(response))

        try:
            payload = response.json()
        except ValueError as e:
            raise _LookupFailed(
                EnrichmentFailureKind.TRANSPORT_ERROR, f"Invalid JSON from {self.provider}"
            ) from e
        if not payload or not isinstance(payload, dict):
            raise _LookupFailed(EnrichmentFailureKind.NOT_FOUND, "No company data found")
        return payload

    def _fetch_by_domain(self, domain: str) -> CompanyFacts:
        if self.provider == "pdl":
            payload = self._request(
                "GET",
                PDL_ENRICH_URL,
                params={"website": domain},
                headers={"X-Api-Key": self.api_key, "Accept": "application/json"},
            )
            facts = normalize_pdl_company(payload)
        else:
            payload = self._request(
                "GET",
                ABSTRACT_ENRICH_URL,
                params={"api_key": self.api_key, "domain": domain},
            )
            facts = normalize_abstract_company(payload)

        if not facts.name:
            raise _LookupFailed(EnrichmentFailureKind.NOT_FOUND, f"No company data found for {domain}")
        return facts

    def _fetch_by_name(self, name: str, location: str | None) -> CompanyFacts:
        must = [{"term": {"name": name.lower()}}]
        if location:
            must.append({"match": {"location.name": location}})
        payload = self._request(
            "POST",
            PDL_SEARCH_URL,
            json={"query": {"bool": {"must": must}}, "size": 1},
            headers={"X-Api-Key": self.api_key, "Accept": "application/json"},
        )
        matches = payload.get("data") or []
        if not matches:
            raise _LookupFailed(EnrichmentFailureKind.NOT_FOUND, "No matching companies found")
        return normalize_pdl_company(matches[0])


def enrich_by_domain(domain: str, client: EnrichmentClient | None = None) -> EnrichmentResult:
    """Look up a company by domain with the configured provider."""
    return (client or EnrichmentClient()).enrich_by_domain(domain)


def enrich_by_name(
    name: str, location: str | None = None, client: EnrichmentClient | None = None
) -> EnrichmentResult:
    """Look up a company by name with the configured provider."""
    return (client or EnrichmentClient()).enrich_by_name(name, location)


# CompanyFacts attribute -> profile field
_FACT_FIELDS = (
    "name",
    "industry",
    "employee_count_bucket",
    "founded",
    "annual_revenue_bucket",
    "social_profiles",
    "website",
    "description",
    "phone",
    "street_address",
    "city",
    "state",
    "postal_code",
    "country",
)


def enrichment_candidates(result: EnrichmentResult, pass_id: int | None = None) -> list[Candidate]:
    """Turn a successful lookup into profile candidates. A failure yields none."""
    if not result.ok:
        return []
    return [
        Candidate(name, getattr(result.facts, name), Origin.ENRICHMENT, pass_id)
        for name in _FACT_FIELDS
        if getattr(result.facts, name) not in (None, "", {})
    ]
