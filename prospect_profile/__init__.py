"""
Prospect Profile - company profile enrichment and reconciliation.

This package provides utilities for:
- Collecting passive domain/DNS signals for a prospect's domain
- Looking up company facts from a third-party enrichment service
- Scraping and cleaning company details from the prospect's website
- Reconciling all of the above into one operator-editable company profile
"""

import logging

# Set up NullHandler to prevent "No handler found" warnings
# when used as a library. Applications should configure their own handlers.
logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "0.1.0"

# Re-export commonly used items
from prospect_profile.config import get_settings
from prospect_profile.constants import (
    DEFAULT_DOMAIN_TIMEOUT,
    DEFAULT_ENRICHMENT_TIMEOUT,
    DEFAULT_SCRAPER_TIMEOUT,
)
from prospect_profile.profile.models import (
    Candidate,
    CompanyProfile,
    FieldProvenance,
    Origin,
)
from prospect_profile.profile.reconciler import ProfileReconciler

__all__ = [
    "__version__",
    # Config
    "get_settings",
    # Constants
    "DEFAULT_DOMAIN_TIMEOUT",
    "DEFAULT_ENRICHMENT_TIMEOUT",
    "DEFAULT_SCRAPER_TIMEOUT",
    # Profile
    "Candidate",
    "CompanyProfile",
    "FieldProvenance",
    "Origin",
    "ProfileReconciler",
]
