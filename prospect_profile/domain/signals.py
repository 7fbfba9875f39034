"""
Domain signal collector.

Gathers passive technical facts about a prospect's domain:
- MX records (dnspython) and the mail provider they imply
- SPF / DMARC presence (TXT records)
- Registration date (python-whois)
- Certificate expiry (TLS handshake on port 443)
- Hosting provider and technology stack (home page headers and markup)

Only the MX lookup is load-bearing: an NXDOMAIN or DNS timeout there fails
the whole collection. Every other check degrades to "unknown".
"""

import logging
import re
import socket
import ssl
from dataclasses import dataclass, field
from datetime import date, datetime, timezone

import dns.exception
import dns.resolver
import requests
import whois

from prospect_profile.constants import DEFAULT_USER_AGENT, DNS_LIFETIME, TLS_CONNECT_TIMEOUT
from prospect_profile.domain.validation import (
    format_url,
    is_valid_domain,
    strip_domain,
    suggest_company_name,
)
from prospect_profile.errors import DomainLookupError, DomainLookupErrorKind
from prospect_profile.profile.models import Candidate, Origin

logger = logging.getLogger(__name__)

# (substring of first MX host, display value); first match wins
MAIL_PROVIDERS = [
    ("google", "Google Workspace"),
    ("outlook", "Microsoft 365"),
    ("zoho", "Zoho Mail"),
]
CUSTOM_MAIL_SERVER = "Custom Mail Server"

# Response header name -> hosting provider
HOSTING_HEADERS = {
    "cf-ray": "Cloudflare",
    "x-vercel-id": "Vercel",
    "x-nf-request-id": "Netlify",
    "x-github-request-id": "GitHub Pages",
    "x-amz-cf-id": "Amazon Web Services (AWS)",
    "x-amz-request-id": "Amazon Web Services (AWS)",
    "x-azure-ref": "Microsoft Azure",
    "x-shopid": "Shopify",
    "x-wix-request-id": "Wix",
}

# Substring of the Server header (lower-cased) -> hosting provider
HOSTING_SERVERS = {
    "cloudflare": "Cloudflare",
    "amazons3": "Amazon Web Services (AWS)",
    "awselb": "Amazon Web Services (AWS)",
    "google frontend": "Google Cloud Platform (GCP)",
    "gws": "Google Cloud Platform (GCP)",
    "netlify": "Netlify",
    "vercel": "Vercel",
    "github.com": "GitHub Pages",
}

# Substring of Server / X-Powered-By (lower-cased) -> technology
HEADER_TECH = {
    "nginx": "Nginx",
    "apache": "Apache",
    "microsoft-iis": "IIS",
    "litespeed": "LiteSpeed",
    "php": "PHP",
    "asp.net": "ASP.NET",
    "express": "Express",
    "next.js": "Next.js",
}

# Markup fingerprint (regex, case-insensitive) -> technology
MARKUP_TECH = [
    (r"wp-content|wp-includes", "WordPress"),
    (r"woocommerce", "WooCommerce"),
    (r"cdn\.shopify\.com", "Shopify"),
    (r"__NEXT_DATA__", "Next.js"),
    (r"data-reactroot|react-dom", "React"),
    (r"ng-version=", "Angular"),
    (r"data-v-app|vue(?:\.min)?\.js", "Vue.js"),
    (r"Drupal\.settings|/sites/default/files/", "Drupal"),
    (r"/media/jui/|content=\"Joomla", "Joomla"),
    (r"static\.wixstatic\.com", "Wix"),
    (r"static1\.squarespace\.com", "Squarespace"),
    (r"jquery(?:\.min)?\.js", "jQuery"),
    (r"googletagmanager\.com", "Google Tag Manager"),
    (r"js\.hs-scripts\.com|js\.hsforms\.net", "HubSpot"),
]

# Cap on how much markup is fingerprinted
_FINGERPRINT_CHARS = 300_000


@dataclass(frozen=True)
class EmailSecurity:
    spf: bool = False
    dmarc: bool = False


@dataclass(frozen=True)
class DomainSignal:
    """Point-in-time technical snapshot of a domain. Replaced wholesale on re-run."""

    domain: str
    registration_date: date | None = None
    ssl_expiry: date | None = None
    mx_records: tuple[str, ...] = ()
    inferred_mail_provider: str | None = None
    hosting_provider: str | None = None
    tech_stack: frozenset[str] = field(default_factory=frozenset)
    email_security: EmailSecurity = field(default_factory=EmailSecurity)


def infer_mail_provider(mx_records: list[str] | tuple[str, ...]) -> str | None:
    """
    Map the highest-preference MX host to a display value.

    Examples:
        ["aspmx.l.google.com"] -> "Google Workspace"
        ["acme-com.mail.protection.outlook.com"] -> "Microsoft 365"
        ["mx1.acme.com"] -> "Custom Mail Server"
        [] -> None
    """
    if not mx_records:
        return None
    first = mx_records[0].lower()
    for needle, provider in MAIL_PROVIDERS:
        if needle in first:
            return provider
    return CUSTOM_MAIL_SERVER


def _make_resolver() -> dns.resolver.Resolver:
    resolver = dns.resolver.Resolver()
    resolver.lifetime = DNS_LIFETIME
    return resolver


def lookup_mx_records(domain: str, resolver: dns.resolver.Resolver | None = None) -> list[str]:
    """
    Resolve MX records ordered by preference.

    Raises:
        DomainLookupError: unreachable (NXDOMAIN) or timeout
    """
    resolver = resolver or _make_resolver()
    try:
        answers = resolver.resolve(domain, "MX")
    except dns.resolver.NXDOMAIN as e:
        raise DomainLookupError(DomainLookupErrorKind.UNREACHABLE, f"{domain} does not exist") from e
    except dns.exception.Timeout as e:
        raise DomainLookupError(DomainLookupErrorKind.TIMEOUT, f"DNS timeout for {domain}") from e
    except (dns.resolver.NoAnswer, dns.resolver.NoNameservers) as e:
        logger.debug(f"No MX records for {domain}: {e}")
        return []

    ordered = sorted(answers, key=lambda r: r.preference)
    return [str(r.exchange).rstrip(".").lower() for r in ordered]


def _has_txt_record(resolver: dns.resolver.Resolver, name: str, prefix: str) -> bool:
    try:
        answers = resolver.resolve(name, "TXT")
    except dns.exception.DNSException:
        return False
    for record in answers:
        text = b"".join(record.strings).decode("utf-8", errors="ignore")
        if text.lower().startswith(prefix):
            return True
    return False


def lookup_email_security(domain: str, resolver: dns.resolver.Resolver | None = None) -> EmailSecurity:
    """Check for an SPF record on the domain and a DMARC record on _dmarc.<domain>."""
    resolver = resolver or _make_resolver()
    return EmailSecurity(
        spf=_has_txt_record(resolver, domain, "v=spf1"),
        dmarc=_has_txt_record(resolver, f"_dmarc.{domain}", "v=dmarc1"),
    )


def _to_date(value) -> date | None:
    if isinstance(value, list):
        value = min((v for v in value if isinstance(v, datetime)), default=None)
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return None


def lookup_registration_date(domain: str) -> date | None:
    """Creation date from WHOIS, or None when WHOIS is unavailable."""
    try:
        record = whois.whois(domain)
    except Exception as e:
        logger.debug(f"WHOIS lookup failed for {domain}: {e}")
        return None
    return _to_date(record.get("creation_date"))


def lookup_ssl_expiry(domain: str, timeout: float = TLS_CONNECT_TIMEOUT) -> date | None:
    """Expiry date of the certificate served on port 443, or None."""
    context = ssl.create_default_context()
    try:
        with socket.create_connection((domain, 443), timeout=timeout) as sock:
            with context.wrap_socket(sock, server_hostname=domain) as tls:
                cert = tls.getpeercert()
    except (OSError, ssl.SSLError) as e:
        logger.debug(f"TLS handshake failed for {domain}: {e}")
        return None

    not_after = cert.get("notAfter") if cert else None
    if not not_after:
        return None
    try:
        return datetime.fromtimestamp(ssl.cert_time_to_seconds(not_after), tz=timezone.utc).date()
    except ValueError:
        return None


def detect_hosting_provider(headers) -> str | None:
    """Hosting provider implied by response headers, if any."""
    lowered = {k.lower(): str(v) for k, v in headers.items()}
    for header, provider in HOSTING_HEADERS.items():
        if header in lowered:
            return provider
    server = lowered.get("server", "").lower()
    for needle, provider in HOSTING_SERVERS.items():
        if needle in server:
            return provider
    return None


def detect_tech_stack(headers, html: str) -> frozenset[str]:
    """Technologies fingerprinted from headers and markup."""
    found = set()
    lowered = {k.lower(): str(v).lower() for k, v in headers.items()}
    server_bits = f"{lowered.get('server', '')} {lowered.get('x-powered-by', '')}"
    for needle, tech in HEADER_TECH.items():
        if needle in server_bits:
            found.add(tech)

    sample = html[:_FINGERPRINT_CHARS]
    for pattern, tech in MARKUP_TECH:
        if re.search(pattern, sample, re.IGNORECASE):
            found.add(tech)
    return frozenset(found)


def inspect_home_page(
    domain: str, session: requests.Session | None = None, timeout: float = TLS_CONNECT_TIMEOUT
) -> tuple[str | None, frozenset[str]]:
    """Fetch the home page once and fingerprint hosting + tech stack."""
    session = session or requests.Session()
    try:
        response = session.get(
            f"https://{domain}",
            headers={"User-Agent": DEFAULT_USER_AGENT},
            timeout=timeout,
        )
    except requests.exceptions.RequestException as e:
        logger.debug(f"Home page check failed for {domain}: {e}")
        return None, frozenset()
    return detect_hosting_provider(response.headers), detect_tech_stack(
        response.headers, response.text or ""
    )


def collect_domain_signal(
    domain: str,
    session: requests.Session | None = None,
    resolver: dns.resolver.Resolver | None = None,
) -> DomainSignal:
    """
    Collect a DomainSignal for a bare domain. No retries.

    Args:
        domain: Bare domain (caller strips scheme and ``www.``)
        session: Optional requests.Session for the home page check
        resolver: Optional dnspython resolver

    Returns:
        DomainSignal snapshot

    Raises:
        DomainLookupError: malformed_domain, unreachable or timeout
    """
    cleaned = strip_domain(domain)
    if not is_valid_domain(cleaned):
        raise DomainLookupError(
            DomainLookupErrorKind.MALFORMED_DOMAIN, f"Not a valid domain: {domain!r}"
        )

    resolver = resolver or _make_resolver()
    mx_records = lookup_mx_records(cleaned, resolver)
    hosting, tech_stack = inspect_home_page(cleaned, session=session)

    signal = DomainSignal(
        domain=cleaned,
        registration_date=lookup_registration_date(cleaned),
        ssl_expiry=lookup_ssl_expiry(cleaned),
        mx_records=tuple(mx_records),
        inferred_mail_provider=infer_mail_provider(mx_records),
        hosting_provider=hosting,
        tech_stack=tech_stack,
        email_security=lookup_email_security(cleaned, resolver),
    )
    logger.debug(
        f"Domain signal for {cleaned}: mail={signal.inferred_mail_provider}, "
        f"hosting={signal.hosting_provider}, tech={sorted(signal.tech_stack)}"
    )
    return signal


def domain_suggestions(domain: str, pass_id: int | None = None) -> list[Candidate]:
    """Candidates known as soon as the domain is: website URL and a placeholder name."""
    cleaned = strip_domain(domain)
    if not cleaned:
        return []
    candidates = [Candidate("website", format_url(cleaned), Origin.DOMAIN, pass_id)]
    name = suggest_company_name(cleaned)
    if name:
        candidates.append(Candidate("name", name, Origin.DOMAIN, pass_id))
    return candidates


def domain_candidates(signal: DomainSignal, pass_id: int | None = None) -> list[Candidate]:
    """Turn a DomainSignal into profile candidates."""
    candidates = []
    if signal.inferred_mail_provider:
        candidates.append(
            Candidate("mail_provider", signal.inferred_mail_provider, Origin.DOMAIN, pass_id)
        )
    if signal.hosting_provider:
        candidates.append(
            Candidate("hosting_provider", signal.hosting_provider, Origin.DOMAIN, pass_id)
        )
    return candidates
