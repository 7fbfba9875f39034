"""
Reconciliation engine: the only code allowed to mutate a CompanyProfile.

Every automatic value arrives as a Candidate tagged with its source. For
each candidate the engine decides:

1. Field is ``user-edited``: drop it. Nothing automatic ever overwrites an
   operator's edit.
2. A higher-priority source already supplied the field in the same
   collection pass: drop it (priority: enrichment > scrape > domain).
3. Otherwise accept it. This covers an empty field, a field still holding
   the last auto-filled value, and a field holding some other automatic
   value (last writer wins among automatic sources).

Candidates may arrive from several threads at once; ``apply_candidates``
holds a lock for the whole batch so provenance updates are never lost.
"""

import logging
import threading
from collections.abc import Callable, Iterable
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from prospect_profile.domain.validation import format_url
from prospect_profile.profile.models import (
    AUTOMATIC_ORIGINS,
    PROFILE_FIELDS,
    SOURCE_PRIORITY,
    Candidate,
    CompanyProfile,
    FieldProvenance,
    Origin,
    empty_provenance,
)
from prospect_profile.profile.storage import ProfileStore

logger = logging.getLogger(__name__)


class Outcome(str, Enum):
    ACCEPTED = "accepted"
    UNCHANGED = "unchanged"
    DROPPED_USER_EDITED = "dropped_user_edited"
    DROPPED_LOWER_PRIORITY = "dropped_lower_priority"
    DROPPED_BLANK = "dropped_blank"


@dataclass(frozen=True)
class Decision:
    """What the engine did with one candidate."""

    field: str
    value: Any
    source: Origin
    outcome: Outcome

    @property
    def applied(self) -> bool:
        return self.outcome is Outcome.ACCEPTED


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def normalize_value(field: str, value: Any) -> Any:
    """
    Canonical form of a candidate value, or None if it is blank.

    Strings are stripped and ``website`` is always a full URL. Dicts drop
    empty entries.
    """
    if value is None:
        return None
    if isinstance(value, str):
        value = " ".join(value.split())
        if not value:
            return None
        return format_url(value) if field == "website" else value
    if isinstance(value, dict):
        cleaned = {k: v for k, v in value.items() if v}
        return cleaned or None
    return value


class ProfileReconciler:
    """
    Owns one company's profile and provenance.

    Args:
        company_id: Key used with the store
        store: Persistence collaborator; when given, the stored profile is
               loaded on construction and saved after every applied batch
        profile: Starting profile (overrides the store)
        provenance: Starting provenance (overrides the store)
        clock: Callable returning the acceptance timestamp
    """

    def __init__(
        self,
        company_id: str,
        store: ProfileStore | None = None,
        profile: CompanyProfile | None = None,
        provenance: dict[str, FieldProvenance] | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.company_id = company_id
        self._store = store
        self._clock = clock
        self._lock = threading.RLock()

        if profile is None and store is not None:
            profile = store.load_profile(company_id)
        if provenance is None and store is not None:
            provenance = store.load_provenance(company_id)

        self._profile = profile.copy() if profile is not None else CompanyProfile()
        # Fields added since the record was stored start out unset
        self._provenance = empty_provenance()
        for name, record in (provenance or {}).items():
            if name in self._provenance:
                self._provenance[name] = replace(record)

    # ------------------------------------------------------------------
    # Public entry points

    def suggest(
        self, field: str, value: Any, source: Origin, pass_id: int | None = None
    ) -> Decision:
        """Offer a single value from an automatic source."""
        return self.apply_candidates([Candidate(field, value, source, pass_id)])[0]

    def apply_candidates(self, candidates: Iterable[Candidate]) -> list[Decision]:
        """
        Apply a batch of candidates.

        Within the batch, candidates for the same field and the same pass
        compete on priority (ties: the later one); the others are reported
        as ``dropped_lower_priority``. Blank candidates never win a field.
        Candidates from different passes, or with no pass, are applied in
        input order so the last one wins. The store is written once if
        anything was applied.

        Returns:
            One Decision per candidate, in input order

        Raises:
            KeyError: a candidate names an unknown field
            ValueError: a candidate claims to be a user edit
        """
        candidates = list(candidates)
        for candidate in candidates:
            if candidate.field not in PROFILE_FIELDS:
                raise KeyError(f"Unknown profile field: {candidate.field}")
            if candidate.source not in AUTOMATIC_ORIGINS:
                raise ValueError(
                    f"Candidates must come from an automatic source, got {candidate.source}"
                )

        # Only candidates from the same pass compete on priority. Blank values
        # never compete, and pass-less suggestions are applied in order.
        blank = [normalize_value(c.field, c.value) is None for c in candidates]
        winners: dict[tuple[str, int], int] = {}
        for index, candidate in enumerate(candidates):
            if candidate.pass_id is None or blank[index]:
                continue
            key = (candidate.field, candidate.pass_id)
            best = winners.get(key)
            if best is None or (
                SOURCE_PRIORITY[candidate.source] >= SOURCE_PRIORITY[candidates[best].source]
            ):
                winners[key] = index

        with self._lock:
            decisions = []
            for index, candidate in enumerate(candidates):
                key = (candidate.field, candidate.pass_id)
                if not blank[index] and winners.get(key, index) != index:
                    decisions.append(
                        Decision(
                            candidate.field,
                            candidate.value,
                            candidate.source,
                            Outcome.DROPPED_LOWER_PRIORITY,
                        )
                    )
                    continue
                decisions.append(self._apply_one(candidate))

            if any(d.applied for d in decisions):
                self._save()
            return decisions

    def record_user_edit(self, field: str, value: Any) -> None:
        """
        Record that the operator typed ``value`` into ``field``.

        From now on no automatic source can change this field. A blank
        value is stored as None (the operator cleared the field).
        """
        if field not in PROFILE_FIELDS:
            raise KeyError(f"Unknown profile field: {field}")

        value = normalize_value(field, value)
        with self._lock:
            previous = self._provenance[field]
            self._profile.set_field(field, value)
            self._provenance[field] = FieldProvenance(
                origin=Origin.USER,
                last_suggested_value=previous.last_suggested_value,
                accepted_at=self._clock(),
                pass_id=None,
            )
            logger.debug(f"[{self.company_id}] {field} marked user-edited")
            self._save()

    def snapshot(self) -> tuple[CompanyProfile, dict[str, FieldProvenance]]:
        """Copies of the current profile and provenance."""
        with self._lock:
            return self._profile.copy(), {k: replace(v) for k, v in self._provenance.items()}

    @property
    def profile(self) -> CompanyProfile:
        return self.snapshot()[0]

    def provenance(self, field: str) -> FieldProvenance:
        with self._lock:
            return replace(self._provenance[field])

    # ------------------------------------------------------------------
    # Internals

    def _apply_one(self, candidate: Candidate) -> Decision:
        field = candidate.field
        value = normalize_value(field, candidate.value)
        if value is None:
            return Decision(field, candidate.value, candidate.source, Outcome.DROPPED_BLANK)

        record = self._provenance[field]
        current = self._profile.get_field(field)

        if record.origin is Origin.USER:
            logger.debug(f"[{self.company_id}] {field}: kept operator value, dropped {candidate.source.value}")
            return Decision(field, value, candidate.source, Outcome.DROPPED_USER_EDITED)

        if (
            record.origin in AUTOMATIC_ORIGINS
            and candidate.pass_id is not None
            and record.pass_id == candidate.pass_id
            and SOURCE_PRIORITY[candidate.source] < SOURCE_PRIORITY[record.origin]
        ):
            return Decision(field, value, candidate.source, Outcome.DROPPED_LOWER_PRIORITY)

        if (
            current == value
            and record.origin is candidate.source
            and record.last_suggested_value == value
            and record.pass_id == candidate.pass_id
        ):
            return Decision(field, value, candidate.source, Outcome.UNCHANGED)

        if current is None:
            rule = "empty field"
        elif current == record.last_suggested_value:
            rule = "replacing previous auto-fill"
        else:
            rule = "automatic overwrite"

        self._profile.set_field(field, value)
        self._provenance[field] = FieldProvenance(
            origin=candidate.source,
            last_suggested_value=value,
            accepted_at=self._clock(),
            pass_id=candidate.pass_id,
        )
        logger.debug(f"[{self.company_id}] {field} <- {candidate.source.value} ({rule})")
        return Decision(field, value, candidate.source, Outcome.ACCEPTED)

    def _save(self) -> None:
        if self._store is None:
            return
        profile, provenance = self.snapshot()
        self._store.save_profile(self.company_id, profile, provenance)
