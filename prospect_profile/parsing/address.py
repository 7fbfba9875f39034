"""
Postal address cleaning and decomposition for scraped text.

Scraped "address" text is frequently not an address at all: form-widget
settings blobs, inline scripts and CSS end up next to the word "Address" on
many contact pages. A candidate goes through three stages:

1. Script-content filter: anything that looks like script/style residue is
   rejected outright, before any cleaning.
2. Cleaning: tags and comments stripped, line breaks turned into ", ",
   whitespace collapsed.
3. Shape gate: at least one digit, at least one alphabetic word, and longer
   than five characters.

Survivors are decomposed into street / city / state / postal code / country
by ordered pattern extraction. Components that do not match are omitted.
"""

import logging
import re
from dataclasses import dataclass, field

from prospect_profile.constants import MIN_ADDRESS_LENGTH
from prospect_profile.errors import ExtractionRejected, ExtractionRejectedKind

logger = logging.getLogger(__name__)

SCRIPT_MARKERS = [
    re.compile(r"\b(?:var|let|const)\s+[A-Za-z_$][^;]*;"),
    re.compile(r"CDATA"),
    re.compile(r"<\s*(?:script|style)\b", re.IGNORECASE),
    # Form builders and page builders that inline their settings
    re.compile(r"wpforms_settings|hsFormsOnReady|gform_|wpcf7|elementorFrontendConfig"),
]

_HTML_COMMENT_RE = re.compile(r"<!--[\s\S]*?-->")
_BLOCK_COMMENT_RE = re.compile(r"/\*[\s\S]*?\*/")
_TAG_RE = re.compile(r"<[^>]*>?")
_LINE_BREAK_RE = re.compile(r"\s*(?:\r\n|\r|\n)\s*")
_DELIMITER_RE = re.compile(r"\s*,\s*")
_REPEATED_DELIMITER_RE = re.compile(r"(?:,\s*){2,}")

_HAS_DIGIT_RE = re.compile(r"\d")
_HAS_WORD_RE = re.compile(r"[A-Za-z]+")

STREET_RE = re.compile(r"^(.*?)(?:,|\n)")
CITY_RE = re.compile(r"(?:,|\n)\s*([^,\n]+)(?:,|\n)")
STATE_RE = re.compile(r"(?:,|\n)\s*([A-Z]{2})\s+", re.IGNORECASE)
POSTAL_CODE_RE = re.compile(r"\b(\d{5}(?:-\d{4})?)\b")
COUNTRY_RE = re.compile(r"(?:,|\n)\s*([^,\n]+)$")


@dataclass(frozen=True)
class AddressCandidate:
    """A cleaned address string plus whatever components could be matched."""

    text: str
    components: dict[str, str] = field(default_factory=dict)


def is_script_content(text: str) -> bool:
    """True if the text carries script/style markers."""
    return any(marker.search(text) for marker in SCRIPT_MARKERS)


def clean_address(text: str) -> str:
    """
    Strip markup and normalize delimiters.

    Examples:
        "<p>742 Evergreen Terrace<br>\\nSpringfield, IL 62704</p>"
            -> "742 Evergreen Terrace, Springfield, IL 62704"
    """
    cleaned = _HTML_COMMENT_RE.sub(" ", text)
    cleaned = _BLOCK_COMMENT_RE.sub(" ", cleaned)
    cleaned = _TAG_RE.sub(" ", cleaned)
    cleaned = cleaned.strip()
    cleaned = _LINE_BREAK_RE.sub(", ", cleaned)
    cleaned = " ".join(cleaned.split())
    cleaned = _DELIMITER_RE.sub(", ", cleaned)
    cleaned = _REPEATED_DELIMITER_RE.sub(", ", cleaned)
    return cleaned.strip(" ,;|")


def has_valid_shape(text: str) -> bool:
    """At least one digit, at least one alphabetic word, length > 5."""
    return (
        len(text) > MIN_ADDRESS_LENGTH
        and bool(_HAS_DIGIT_RE.search(text))
        and bool(_HAS_WORD_RE.search(text))
    )


def decompose_address(text: str) -> dict[str, str]:
    """
    Split a cleaned address into components.

    Example:
        "742 Evergreen Terrace, Springfield, IL 62704" ->
            {"street_address": "742 Evergreen Terrace", "city": "Springfield",
             "state": "IL", "postal_code": "62704"}

    The trailing segment is taken as the country only when it has no digits.
    """
    components = {}

    match = STREET_RE.search(text)
    if match and match.group(1).strip():
        components["street_address"] = match.group(1).strip()

    match = CITY_RE.search(text)
    if match and match.group(1).strip():
        components["city"] = match.group(1).strip()

    match = STATE_RE.search(text)
    if match:
        components["state"] = match.group(1)

    match = POSTAL_CODE_RE.search(text)
    if match:
        components["postal_code"] = match.group(1)

    match = COUNTRY_RE.search(text)
    if match and not _HAS_DIGIT_RE.search(match.group(1)):
        components["country"] = match.group(1).strip()

    return components


def check_address(raw: str) -> AddressCandidate:
    """
    Run a raw candidate through filter, cleaning and shape gate.

    Raises:
        ExtractionRejected: script_content_suspected or shape_invalid
    """
    if is_script_content(raw):
        raise ExtractionRejected(
            ExtractionRejectedKind.SCRIPT_CONTENT_SUSPECTED, f"Script markers in {raw[:60]!r}"
        )
    cleaned = clean_address(raw)
    if not has_valid_shape(cleaned):
        raise ExtractionRejected(ExtractionRejectedKind.SHAPE_INVALID, f"Not address-shaped: {cleaned[:60]!r}")
    return AddressCandidate(text=cleaned, components=decompose_address(cleaned))


def extract_address_candidate(raw: str | None) -> AddressCandidate | None:
    """Like check_address, but returns None for rejected input."""
    if not raw:
        return None
    try:
        return check_address(raw)
    except ExtractionRejected as e:
        logger.debug(f"Address candidate rejected ({e.kind.value}): {e.message}")
        return None
