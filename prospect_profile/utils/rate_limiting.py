"""
Per-provider call pacing for the paid enrichment APIs.

Batch runs enrich several domains at once, so more than one thread can hit
the same provider. Each provider gets one shared limiter whose rate comes
from settings (PDL_RATE_LIMIT / ABSTRACT_RATE_LIMIT in the environment).

Usage:
    from prospect_profile.utils.rate_limiting import get_rate_limiter

    get_rate_limiter("pdl").acquire()
    session.get(...)
"""

import logging
import time
from threading import Lock

from prospect_profile.config import get_provider_rate_limits

logger = logging.getLogger(__name__)


class RateLimiter:
    """
    Spaces calls to one provider at least ``1 / requests_per_second`` apart.

    Args:
        requests_per_second: Maximum requests per second allowed
        provider: Provider name, used in log messages
    """

    def __init__(self, requests_per_second: float, provider: str = "default"):
        if requests_per_second <= 0:
            raise ValueError(f"requests_per_second must be > 0, got {requests_per_second}")

        self.requests_per_second = requests_per_second
        self.provider = provider
        self.min_interval = 1.0 / requests_per_second
        self._lock = Lock()
        self._next_slot = 0.0

    def acquire(self) -> float:
        """
        Block until this caller's slot comes up.

        Returns:
            Seconds spent waiting (0.0 when the call went straight through)
        """
        with self._lock:
            now = time.monotonic()
            wait = max(self._next_slot - now, 0.0)
            self._next_slot = max(self._next_slot, now) + self.min_interval

        if wait:
            time.sleep(wait)
            logger.debug(f"{self.provider}: throttled {wait:.3f}s")
        return wait

    __call__ = acquire


_rate_limiters: dict[str, RateLimiter] = {}
_rate_limiters_lock = Lock()


def get_rate_limiter(provider: str, requests_per_second: float | None = None) -> RateLimiter:
    """
    Get or create the shared limiter for a provider.

    Args:
        provider: "pdl", "abstract", or any name when a rate is given
        requests_per_second: Rate for a new limiter; read from settings when None

    Raises:
        ValueError: no rate was given and settings have none for the provider
    """
    with _rate_limiters_lock:
        limiter = _rate_limiters.get(provider)
        if limiter is None:
            if requests_per_second is None:
                configured = get_provider_rate_limits()
                if provider not in configured:
                    raise ValueError(f"No rate limit configured for provider: {provider}")
                requests_per_second = configured[provider]
            limiter = RateLimiter(requests_per_second, provider=provider)
            _rate_limiters[provider] = limiter
        return limiter


def clear_rate_limiters() -> None:
    """Drop every shared limiter so the next lookup re-reads settings."""
    with _rate_limiters_lock:
        _rate_limiters.clear()
