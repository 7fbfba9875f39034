"""
Remote sources: the enrichment lookup client and the website fetch boundary.
"""

from prospect_profile.sources.enrichment import (
    CompanyFacts,
    EnrichmentClient,
    EnrichmentResult,
    enrich_by_domain,
    enrich_by_name,
)
from prospect_profile.sources.fetch import fetch_page

__all__ = [
    "CompanyFacts",
    "EnrichmentClient",
    "EnrichmentResult",
    "enrich_by_domain",
    "enrich_by_name",
    "fetch_page",
]
