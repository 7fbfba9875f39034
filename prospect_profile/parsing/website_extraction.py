"""
Company detail extraction from a prospect's own website.

Best-effort scraping of the home page plus (when linked) one contact page
and one about page. Extracts:
- company name (title, then logo alt text, then first <h1>)
- phone number and email
- postal address (filtered and decomposed by ``parsing.address``)
- industry hint, description, social profile links

Every extracted value is a candidate only; nothing here touches the profile.
"""

import logging
import re
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from urllib.parse import unquote, urljoin, urlparse

from bs4 import BeautifulSoup, FeatureNotFound

from prospect_profile.constants import (
    INDUSTRY_KEYWORD_MIN_HITS,
    MIN_DESCRIPTION_CHARS,
    MIN_DESCRIPTION_WORDS,
)
from prospect_profile.domain.validation import format_url, root_domain, strip_domain
from prospect_profile.errors import ExtractionRejected, FetchError
from prospect_profile.parsing.address import AddressCandidate, check_address
from prospect_profile.profile.models import Candidate, Origin
from prospect_profile.sources.fetch import fetch_page

logger = logging.getLogger(__name__)

Fetcher = Callable[[str], str]

PHONE_RE = re.compile(r"(\+?\d[\s.-]?)?(\(?\d{3}\)?[\s.-]?\d{3}[\s.-]?\d{4})")
EMAIL_RE = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")

LOGO_SELECTOR = 'header img, .logo img, .site-logo img, img[alt*="logo"], img[src*="logo"]'
ADDRESS_SELECTOR = 'address, [itemprop="address"], [class*="address"]'
ADDRESS_LABEL_RE = re.compile(r"address|location", re.IGNORECASE)

INDUSTRY_PHRASES = ["industry", "sector", "specializing in", "specialized in"]

# Checked in order; the first category with enough keyword hits wins
INDUSTRY_KEYWORDS = [
    ("Technology & Software", ["technology", "software", "tech", "app", "digital", "web", "development", "developers", "programming"]),
    ("Finance & Banking", ["finance", "banking", "investment", "insurance", "financial", "loan", "credit", "wealth", "money", "payment"]),
    ("Healthcare & Medical", ["healthcare", "health", "medical", "hospital", "clinic", "doctor", "patient", "care", "wellness"]),
    ("Education", ["education", "school", "university", "college", "learning", "teaching", "student", "course", "academic"]),
    ("Retail & E-commerce", ["retail", "store", "shop", "shopping", "ecommerce", "commerce", "sale", "product", "consumer"]),
    ("Manufacturing", ["manufacturing", "factory", "production", "industrial", "industry", "machinery", "equipment"]),
    ("Consulting", ["consulting", "consultant", "advisor", "strategy", "business solution"]),
    ("Marketing & Advertising", ["marketing", "advertising", "media", "campaign", "brand", "promotion"]),
    ("Legal", ["legal", "law", "attorney", "lawyer", "firm", "litigation", "legal service"]),
    ("Real Estate", ["real estate", "property", "housing", "mortgage", "rent", "lease", "home"]),
    ("Construction & Engineering", ["construction", "building", "contractor", "architecture", "engineering"]),
    ("Hospitality & Tourism", ["hospitality", "hotel", "restaurant", "food", "catering", "travel", "tourism"]),
    ("Transportation & Logistics", ["transportation", "logistics", "shipping", "delivery", "freight", "supply chain"]),
    ("Energy & Utilities", ["energy", "power", "utility", "oil", "gas", "electricity", "renewable", "solar", "wind"]),
    ("Telecommunications", ["telecommunications", "telecom", "network", "internet", "communication"]),
    ("IT Services & Support", ["it services", "managed services", "msp", "support", "security", "cloud", "backup"]),
]

SOCIAL_NETWORKS = [
    ("facebook", re.compile(r"facebook\.com/", re.IGNORECASE)),
    ("twitter", re.compile(r"(?:twitter|x)\.com/", re.IGNORECASE)),
    ("linkedin", re.compile(r"linkedin\.com/", re.IGNORECASE)),
    ("instagram", re.compile(r"instagram\.com/", re.IGNORECASE)),
]
_SHARE_LINK_RE = re.compile(r"sharer|/share\b|intent/", re.IGNORECASE)


@dataclass
class ScrapeResult:
    """
    Outcome of scraping one domain.

    ``error`` is set when the home page could not be fetched; every other
    field is then empty. ``rejections`` lists address candidates discarded
    by the script filter or shape gate.
    """

    domain: str
    name: str | None = None
    phone: str | None = None
    email: str | None = None
    address: AddressCandidate | None = None
    industry: str | None = None
    description: str | None = None
    social_profiles: dict[str, str] = field(default_factory=dict)
    error: FetchError | None = None
    rejections: list[ExtractionRejected] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def failed(cls, domain: str, error: FetchError) -> "ScrapeResult":
        return cls(domain=domain, error=error)


def parse_html(html: str) -> BeautifulSoup:
    # lxml is faster; fall back when it isn't installed
    try:
        return BeautifulSoup(html, "lxml")
    except FeatureNotFound:
        return BeautifulSoup(html, "html.parser")


def visible_text(soup: BeautifulSoup) -> str:
    """Page text without script/style/noscript content. Does not modify ``soup``."""
    copy = parse_html(str(soup))
    for tag in copy(["script", "style", "noscript"]):
        tag.decompose()
    return copy.get_text(" ", strip=True)


def extract_company_name(soup: BeautifulSoup) -> str | None:
    """
    Best-effort company name.

    Order: <title> up to the first "-" or "|" (skipped for 404 pages), logo
    alt text, first <h1>.
    """
    title = soup.title.get_text(strip=True) if soup.title else ""
    lowered = title.lower()
    if title and "404" not in lowered and "not found" not in lowered:
        name = re.split(r"[-|]", title)[0].strip()
        if name:
            return name

    logo = soup.select_one(LOGO_SELECTOR)
    if logo is not None:
        alt = (logo.get("alt") or "").strip()
        if len(alt) > 3:
            name = re.sub(r"\blogo\b", "", alt, flags=re.IGNORECASE).strip(" -|")
            if name:
                return name

    h1 = soup.find("h1")
    if h1 is not None:
        text = h1.get_text(" ", strip=True)
        if text:
            return text
    return None


def _first_link_target(soup: BeautifulSoup, scheme: str) -> str | None:
    link = soup.find("a", href=re.compile(rf"^{scheme}:", re.IGNORECASE))
    if link is None:
        return None
    target = unquote(link["href"].split(":", 1)[1]).split("?")[0].strip()
    return target or None


def extract_phone(soup: BeautifulSoup, text: str | None = None) -> str | None:
    """First tel: link, otherwise the first phone-shaped run of visible text."""
    phone = _first_link_target(soup, "tel")
    if phone:
        return phone
    match = PHONE_RE.search(text if text is not None else visible_text(soup))
    return match.group(0).strip() if match else None


def extract_email(soup: BeautifulSoup, text: str | None = None) -> str | None:
    """First mailto: link, otherwise the first email address in the text (if given)."""
    email = _first_link_target(soup, "mailto")
    if email:
        return email
    if text:
        match = EMAIL_RE.search(text)
        if match:
            return match.group(0)
    return None


def _raw_text(element) -> str:
    # Keep markup when script/style is involved so the script filter sees it
    if element.name in ("script", "style") or element.find(["script", "style"]):
        return str(element)
    return element.get_text("\n", strip=True)


def iter_address_texts(soup: BeautifulSoup, follow_labels: bool = False) -> Iterator[str]:
    """
    Raw address candidates from a page, most specific first.

    With ``follow_labels`` (used on contact pages) the siblings following an
    element that mentions "address" or "location" are also offered.
    """
    for element in soup.select(ADDRESS_SELECTOR):
        text = _raw_text(element)
        if text:
            yield text

    if not follow_labels:
        return
    for label in soup.find_all(string=ADDRESS_LABEL_RE):
        parent = label.parent
        if parent is None or parent.name in ("script", "style", "title"):
            continue
        for sibling in parent.find_next_siblings(limit=3):
            text = _raw_text(sibling)
            if len(text.strip()) > 5 and re.search(r"\d", text):
                yield text


def extract_industry(about_text: str | None, home_text: str | None) -> str | None:
    """
    Industry hint: an explicit phrase on the about page ("... specializing in
    commercial HVAC"), otherwise the first keyword category with at least
    two hits on the about page, then on the home page.
    """
    if about_text:
        for phrase in INDUSTRY_PHRASES:
            match = re.search(rf"{phrase}[^.]{{3,50}}", about_text, re.IGNORECASE)
            if match:
                industry = match.group(0)[len(phrase) :]
                industry = re.sub(r"^(?:in\b|:|-|\s)+", "", industry, flags=re.IGNORECASE).strip()
                if industry:
                    return industry

    for text in (about_text, home_text):
        if not text:
            continue
        lowered = text.lower()
        for label, keywords in INDUSTRY_KEYWORDS:
            hits = sum(len(re.findall(rf"\b{re.escape(k)}\b", lowered)) for k in keywords)
            if hits >= INDUSTRY_KEYWORD_MIN_HITS:
                return label
    return None


def extract_description(soup: BeautifulSoup) -> str | None:
    """First paragraph long enough to be a company description."""
    for paragraph in soup.find_all("p"):
        text = " ".join(paragraph.get_text(" ", strip=True).split())
        if len(text) > MIN_DESCRIPTION_CHARS and len(text.split()) > MIN_DESCRIPTION_WORDS:
            return text
    return None


def extract_social_profiles(soup: BeautifulSoup) -> dict[str, str]:
    """First profile link per network, ignoring share buttons."""
    profiles: dict[str, str] = {}
    for link in soup.find_all("a", href=True):
        href = link["href"].strip()
        if _SHARE_LINK_RE.search(href):
            continue
        for network, pattern in SOCIAL_NETWORKS:
            if network not in profiles and pattern.search(href):
                profiles[network] = href
    return profiles


def find_page_link(soup: BeautifulSoup, base_url: str, keywords: tuple[str, ...]) -> str | None:
    """Absolute URL of the first same-site link whose text or href mentions a keyword."""
    site = root_domain(base_url)
    for link in soup.find_all("a", href=True):
        href = link["href"].strip()
        if not href or href.startswith(("#", "mailto:", "tel:", "javascript:")):
            continue
        text = link.get_text(" ", strip=True).lower()
        if not any(k in text or k in href.lower() for k in keywords):
            continue
        url = urljoin(base_url, href)
        if urlparse(url).scheme not in ("http", "https") or root_domain(url) != site:
            continue
        return url
    return None


def _fetch_sub_page(fetcher: Fetcher, url: str | None) -> BeautifulSoup | None:
    if not url:
        return None
    try:
        return parse_html(fetcher(url))
    except FetchError as e:
        logger.debug(f"Skipping sub-page {url}: {e.kind.value} ({e.message})")
        return None


def _first_address(texts: Iterator[str], result: ScrapeResult) -> AddressCandidate | None:
    for raw in texts:
        try:
            return check_address(raw)
        except ExtractionRejected as e:
            logger.debug(f"Address candidate rejected ({e.kind.value})")
            result.rejections.append(e)
    return None


def scrape_website(domain: str, fetcher: Fetcher = fetch_page) -> ScrapeResult:
    """
    Scrape company details from a prospect's website.

    Args:
        domain: Domain or URL of the prospect
        fetcher: Callable returning a page's markup for a domain or URL,
                 raising FetchError on failure

    Returns:
        ScrapeResult (failed if the home page could not be fetched)
    """
    domain = strip_domain(domain)
    base_url = format_url(domain) + "/"

    try:
        home = parse_html(fetcher(domain))
    except FetchError as e:
        logger.debug(f"Scrape of {domain} failed: {e.kind.value} ({e.message})")
        return ScrapeResult.failed(domain, e)

    result = ScrapeResult(domain=domain)
    home_text = visible_text(home)

    result.name = extract_company_name(home)
    result.phone = extract_phone(home, home_text)
    result.email = extract_email(home)
    result.social_profiles = extract_social_profiles(home)
    result.address = _first_address(iter_address_texts(home), result)

    contact = _fetch_sub_page(fetcher, find_page_link(home, base_url, ("contact",)))
    if contact is not None:
        contact_text = visible_text(contact)
        if not result.phone:
            result.phone = extract_phone(contact, contact_text)
        if not result.email:
            result.email = extract_email(contact, contact_text)
        if result.address is None:
            result.address = _first_address(iter_address_texts(contact, follow_labels=True), result)

    about_text = None
    about = _fetch_sub_page(fetcher, find_page_link(home, base_url, ("about", "company")))
    if about is not None:
        about_text = visible_text(about)
        result.description = extract_description(about)

    result.industry = extract_industry(about_text, home_text)

    logger.debug(
        f"Scraped {domain}: name={result.name!r}, phone={result.phone!r}, "
        f"address={result.address.text if result.address else None!r}, "
        f"industry={result.industry!r}, rejected={len(result.rejections)}"
    )
    return result


def scrape_candidates(result: ScrapeResult, pass_id: int | None = None) -> list[Candidate]:
    """
    Turn a successful scrape into profile candidates.

    The cleaned address string goes to the legacy ``address`` field and each
    matched component becomes its own candidate.
    """
    if not result.ok:
        return []

    values = {
        "name": result.name,
        "phone": result.phone,
        "email": result.email,
        "industry": result.industry,
        "description": result.description,
        "social_profiles": result.social_profiles or None,
    }
    if result.address is not None:
        values["address"] = result.address.text
        values.update(result.address.components)

    return [
        Candidate(name, value, Origin.SCRAPE, pass_id)
        for name, value in values.items()
        if value
    ]
