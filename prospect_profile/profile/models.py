"""
Data models for the company profile and its per-field provenance.

The profile is flat from the engine's point of view: structured address
parts are addressed by their own field names ("city", "postal_code", ...)
even though they are stored on a nested StructuredAddress.
"""

from dataclasses import dataclass, field, fields, replace
from datetime import datetime
from enum import Enum
from typing import Any


class Origin(str, Enum):
    """Why a profile field holds its current value."""

    UNSET = "unset"
    DOMAIN = "domain-suggested"
    ENRICHMENT = "enrichment-suggested"
    SCRAPE = "scrape-suggested"
    USER = "user-edited"


# Higher wins when sources compete for a field within one collection pass
SOURCE_PRIORITY = {
    Origin.DOMAIN: 1,
    Origin.SCRAPE: 2,
    Origin.ENRICHMENT: 3,
}

AUTOMATIC_ORIGINS = frozenset(SOURCE_PRIORITY)


@dataclass
class StructuredAddress:
    street_address: str | None = None
    city: str | None = None
    state: str | None = None
    postal_code: str | None = None
    country: str | None = None


ADDRESS_FIELDS = tuple(f.name for f in fields(StructuredAddress))


@dataclass
class CompanyProfile:
    """The authoritative company record for one assessment."""

    name: str | None = None
    website: str | None = None
    industry: str | None = None
    employee_count_bucket: str | None = None
    phone: str | None = None
    email: str | None = None
    founded: str | None = None
    annual_revenue_bucket: str | None = None
    description: str | None = None
    social_profiles: dict[str, str] | None = None
    mail_provider: str | None = None
    hosting_provider: str | None = None
    address: str | None = None  # legacy free-form address, kept for display
    structured_address: StructuredAddress = field(default_factory=StructuredAddress)

    def get_field(self, name: str) -> Any:
        """Read a profile field by its flat name."""
        if name in ADDRESS_FIELDS:
            return getattr(self.structured_address, name)
        if name not in PROFILE_FIELDS:
            raise KeyError(f"Unknown profile field: {name}")
        return getattr(self, name)

    def set_field(self, name: str, value: Any) -> None:
        """Write a profile field by its flat name."""
        if name in ADDRESS_FIELDS:
            setattr(self.structured_address, name, value)
        elif name in PROFILE_FIELDS:
            setattr(self, name, value)
        else:
            raise KeyError(f"Unknown profile field: {name}")

    def copy(self) -> "CompanyProfile":
        social = dict(self.social_profiles) if self.social_profiles is not None else None
        return replace(
            self,
            social_profiles=social,
            structured_address=replace(self.structured_address),
        )

    def to_dict(self) -> dict[str, Any]:
        """Flat dictionary of every field, for display and export."""
        return {name: self.get_field(name) for name in PROFILE_FIELDS}


PROFILE_FIELDS = tuple(
    f.name for f in fields(CompanyProfile) if f.name != "structured_address"
) + ADDRESS_FIELDS


@dataclass
class FieldProvenance:
    """
    Recorded origin of one field's current value.

    ``last_suggested_value`` is the value most recently offered by an
    automatic source and accepted. ``pass_id`` identifies the collection
    pass that supplied the current automatic value.
    """

    origin: Origin = Origin.UNSET
    last_suggested_value: Any = None
    accepted_at: datetime | None = None
    pass_id: int | None = None


def empty_provenance() -> dict[str, FieldProvenance]:
    """Fresh provenance record for every profile field."""
    return {name: FieldProvenance() for name in PROFILE_FIELDS}


@dataclass(frozen=True)
class Candidate:
    """A single proposed value for one profile field, tagged with its source."""

    field: str
    value: Any
    source: Origin
    pass_id: int | None = None
