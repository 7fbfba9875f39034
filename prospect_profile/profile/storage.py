"""
Persistence boundary for company profiles.

The reconciler writes the full current profile and provenance after every
applied batch; it never writes diffs and never assumes the store holds
anything consistent beyond what it last wrote.
"""

import logging
import threading
from abc import ABC, abstractmethod
from copy import deepcopy

from prospect_profile.cache import AppCache
from prospect_profile.profile.models import CompanyProfile, FieldProvenance

logger = logging.getLogger(__name__)

PROFILE_NAMESPACE = "profiles"


class ProfileStore(ABC):
    """Interface the reconciler uses to load and save profiles."""

    @abstractmethod
    def load_profile(self, company_id: str) -> CompanyProfile | None:
        """Return the stored profile, or None if nothing is stored."""

    @abstractmethod
    def load_provenance(self, company_id: str) -> dict[str, FieldProvenance] | None:
        """Return the stored provenance record, or None if nothing is stored."""

    @abstractmethod
    def save_profile(
        self,
        company_id: str,
        profile: CompanyProfile,
        provenance: dict[str, FieldProvenance],
    ) -> None:
        """Replace whatever is stored for ``company_id``."""


class InMemoryProfileStore(ProfileStore):
    """Dictionary-backed store. Holds deep copies so callers cannot mutate stored state."""

    def __init__(self):
        self._lock = threading.Lock()
        self._records: dict[str, tuple[CompanyProfile, dict[str, FieldProvenance]]] = {}
        self.save_count = 0

    def load_profile(self, company_id: str) -> CompanyProfile | None:
        with self._lock:
            record = self._records.get(company_id)
            return deepcopy(record[0]) if record else None

    def load_provenance(self, company_id: str) -> dict[str, FieldProvenance] | None:
        with self._lock:
            record = self._records.get(company_id)
            return deepcopy(record[1]) if record else None

    def save_profile(self, company_id, profile, provenance) -> None:
        with self._lock:
            self._records[company_id] = (deepcopy(profile), deepcopy(provenance))
            self.save_count += 1


class CacheProfileStore(ProfileStore):
    """Store profiles in the diskcache-backed AppCache (namespace ``profiles``)."""

    def __init__(self, cache: AppCache):
        self.cache = cache

    def _record(self, company_id: str) -> dict | None:
        return self.cache.get(PROFILE_NAMESPACE, str(company_id))

    def load_profile(self, company_id: str) -> CompanyProfile | None:
        record = self._record(company_id)
        return record["profile"] if record else None

    def load_provenance(self, company_id: str) -> dict[str, FieldProvenance] | None:
        record = self._record(company_id)
        return record["provenance"] if record else None

    def save_profile(self, company_id, profile, provenance) -> None:
        self.cache.set(
            PROFILE_NAMESPACE,
            str(company_id),
            {"profile": profile, "provenance": provenance},
        )
        logger.debug(f"Saved profile for company {company_id}")
