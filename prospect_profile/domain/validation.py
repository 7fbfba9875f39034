"""
Domain normalization and validation using tldextract.

All code that turns operator input or provider output into a domain goes
through these functions, so every source sees the same canonical form
(lower-case, no scheme, no ``www.``, no path).

Uses tldextract with the Public Suffix List for authoritative TLD handling.
"""

import re

import tldextract

_SCHEME_RE = re.compile(r"^[a-z][a-z0-9+.-]*://", re.IGNORECASE)
_WWW_RE = re.compile(r"^www\.", re.IGNORECASE)


def strip_domain(value: str) -> str:
    """
    Canonicalize a domain or URL without validating it.

    Examples:
        "https://www.Acme.com/contact" -> "acme.com"
        "WWW.acme.co.uk" -> "acme.co.uk"
        "acme.com:8443" -> "acme.com"

    Args:
        value: Raw domain or URL string

    Returns:
        Lower-cased host with scheme, ``www.``, port and path removed
        ("" for empty input)
    """
    if not value:
        return ""
    cleaned = value.strip().lower()
    cleaned = _SCHEME_RE.sub("", cleaned)
    cleaned = _WWW_RE.sub("", cleaned)
    cleaned = re.split(r"[/?#]", cleaned, maxsplit=1)[0]
    cleaned = cleaned.split("@")[-1].split(":")[0]
    return cleaned.strip(".")


def is_valid_domain(domain: str) -> bool:
    """
    Validate that a string is a real, registrable domain.

    Requirements:
    - Has a suffix known to the Public Suffix List
    - Registrable label is at least 2 characters
    - Total length under 255 characters (RFC 1035)

    Args:
        domain: Domain string (scheme/www tolerated)

    Returns:
        True if domain is valid, False otherwise
    """
    if not domain or len(domain) > 255:
        return False

    cleaned = strip_domain(domain)
    if not cleaned or " " in cleaned:
        return False

    ext = tldextract.extract(cleaned)
    if not ext.domain or not ext.suffix:
        return False
    return len(ext.domain) >= 2


def normalize_domain(value: str) -> str | None:
    """
    Normalize a domain/URL and validate it.

    Subdomains are kept ("shop.acme.com" stays as typed): the operator may
    run the prospect's site on a subdomain and every source should look at
    the same host.

    Returns:
        Canonical domain, or None if the input is not a valid domain
    """
    cleaned = strip_domain(value)
    if cleaned and is_valid_domain(cleaned):
        return cleaned
    return None


def root_domain(value: str) -> str | None:
    """
    Extract the registrable domain ("investor.acme.com" -> "acme.com").

    Handles complex suffixes like .co.uk correctly.
    """
    cleaned = strip_domain(value)
    if not cleaned:
        return None
    ext = tldextract.extract(cleaned)
    if ext.domain and ext.suffix:
        return f"{ext.domain}.{ext.suffix}"
    return None


def format_url(value: str) -> str:
    """
    Ensure a website value is a fully-qualified URL.

    Examples:
        "acme.com" -> "https://acme.com"
        "http://acme.com" -> "http://acme.com" (existing scheme kept)
    """
    if not value:
        return ""
    value = value.strip()
    if value.lower().startswith(("http://", "https://")):
        return value
    return f"https://{value}"


def suggest_company_name(domain: str) -> str:
    """
    Derive a placeholder company name from a domain.

    Examples:
        "acmewidgets.com" -> "Acmewidgets"
        "blue-river-dental.co.uk" -> "Blue River Dental"
    """
    cleaned = strip_domain(domain)
    if not cleaned:
        return ""
    ext = tldextract.extract(cleaned)
    label = ext.domain or cleaned.split(".")[0]
    return " ".join(word[:1].upper() + word[1:] for word in label.split("-") if word)
