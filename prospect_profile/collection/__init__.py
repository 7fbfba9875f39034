"""
Collection trigger: runs the three lookups and routes results to the reconciler.
"""

from prospect_profile.collection.trigger import (
    NO_DATA_MESSAGE,
    CollectionOrchestrator,
    CollectionPass,
    SourceStatus,
    TriggerState,
    collect_profile,
)

__all__ = [
    "NO_DATA_MESSAGE",
    "CollectionOrchestrator",
    "CollectionPass",
    "SourceStatus",
    "TriggerState",
    "collect_profile",
]
