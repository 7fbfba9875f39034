"""
Website fetch boundary.

The scraper never talks to the network directly; it calls ``fetch_page``
(or a test double with the same signature).
"""

import logging

import requests

from prospect_profile.config import get_settings
from prospect_profile.domain.validation import format_url
from prospect_profile.errors import FetchError, FetchErrorKind

logger = logging.getLogger(__name__)

HTML_CONTENT_TYPES = ("text/html", "application/xhtml+xml")


def fetch_page(
    domain_or_url: str,
    session: requests.Session | None = None,
    timeout: float | None = None,
    max_bytes: int | None = None,
) -> str:
    """
    Fetch a page and return its markup.

    Args:
        domain_or_url: Bare domain ("acme.com") or absolute URL
        session: Optional requests.Session
        timeout: Request timeout in seconds (defaults to the scraper timeout)
        max_bytes: Largest body accepted (defaults to the configured cap)

    Returns:
        Decoded HTML

    Raises:
        FetchError: unreachable, non_html or too_large
    """
    settings = get_settings()
    timeout = timeout if timeout is not None else settings.scraper_timeout
    max_bytes = max_bytes if max_bytes is not None else settings.scraper_max_bytes
    session = session or requests.Session()
    url = format_url(domain_or_url)

    try:
        response = session.get(
            url,
            headers={"User-Agent": settings.scraper_user_agent},
            timeout=timeout,
            stream=True,
        )
    except requests.exceptions.RequestException as e:
        raise FetchError(FetchErrorKind.UNREACHABLE, f"{url}: {e}") from e

    try:
        try:
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            raise FetchError(FetchErrorKind.UNREACHABLE, f"{url}: {e}") from e

        content_type = response.headers.get("Content-Type", "").lower()
        if content_type and not content_type.startswith(HTML_CONTENT_TYPES):
            raise FetchError(FetchErrorKind.NON_HTML, f"{url} returned {content_type}")

        declared = response.headers.get("Content-Length")
        if declared and declared.isdigit() and int(declared) > max_bytes:
            raise FetchError(FetchErrorKind.TOO_LARGE, f"{url} is {declared} bytes")

        body = bytearray()
        try:
            for chunk in response.iter_content(chunk_size=65536):
                body.extend(chunk)
                if len(body) > max_bytes:
                    raise FetchError(FetchErrorKind.TOO_LARGE, f"{url} exceeds {max_bytes} bytes")
        except requests.exceptions.RequestException as e:
            raise FetchError(FetchErrorKind.UNREACHABLE, f"{url}: {e}") from e
    finally:
        response.close()

    encoding = response.encoding or "utf-8"
    logger.debug(f"Fetched {url} ({len(body)} bytes)")
    return bytes(body).decode(encoding, errors="replace")
