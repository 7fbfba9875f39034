"""
Typed failures raised by the three signal sources.

Every error here is a local failure of a single source. The collection
orchestrator recovers them: a failing source contributes zero candidates
and never aborts the other two.
"""

from enum import Enum


class DomainLookupErrorKind(str, Enum):
    UNREACHABLE = "unreachable"
    TIMEOUT = "timeout"
    MALFORMED_DOMAIN = "malformed_domain"


class EnrichmentFailureKind(str, Enum):
    NOT_FOUND = "not_found"
    RATE_LIMITED = "rate_limited"
    TRANSPORT_ERROR = "transport_error"


class FetchErrorKind(str, Enum):
    UNREACHABLE = "unreachable"
    NON_HTML = "non_html"
    TOO_LARGE = "too_large"


class ExtractionRejectedKind(str, Enum):
    SCRIPT_CONTENT_SUSPECTED = "script_content_suspected"
    SHAPE_INVALID = "shape_invalid"


class SourceError(Exception):
    """Base class for single-source failures. Carries a ``kind`` enum."""

    def __init__(self, kind: Enum, message: str = ""):
        self.kind = kind
        self.message = message or kind.value
        super().__init__(self.message)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.kind.value!r}, {self.message!r})"


class DomainLookupError(SourceError):
    """Raised by the domain signal collector."""

    kind: DomainLookupErrorKind


class FetchError(SourceError):
    """Raised by the website fetch boundary."""

    kind: FetchErrorKind


class ExtractionRejected(SourceError):
    """A scraped candidate failed the extractor's text-quality checks."""

    kind: ExtractionRejectedKind


class EnrichmentFailure(SourceError):
    """An enrichment lookup came back as a failure result."""

    kind: EnrichmentFailureKind
