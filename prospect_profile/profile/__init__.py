"""
Company profile model, reconciliation engine and persistence boundary.
"""

from prospect_profile.profile.models import (
    PROFILE_FIELDS,
    Candidate,
    CompanyProfile,
    FieldProvenance,
    Origin,
    StructuredAddress,
)
from prospect_profile.profile.reconciler import Decision, Outcome, ProfileReconciler
from prospect_profile.profile.storage import (
    CacheProfileStore,
    InMemoryProfileStore,
    ProfileStore,
)

__all__ = [
    "PROFILE_FIELDS",
    "Candidate",
    "CompanyProfile",
    "FieldProvenance",
    "Origin",
    "StructuredAddress",
    "Decision",
    "Outcome",
    "ProfileReconciler",
    "CacheProfileStore",
    "InMemoryProfileStore",
    "ProfileStore",
]
