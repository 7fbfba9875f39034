"""
Configuration management for prospect_profile.

Uses pydantic-settings for type-safe configuration with automatic
environment variable loading and validation.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from prospect_profile.constants import (
    ABSTRACT_RATE_LIMIT,
    DEFAULT_DOMAIN_TIMEOUT,
    DEFAULT_ENRICHMENT_TIMEOUT,
    DEFAULT_SCRAPER_TIMEOUT,
    DEFAULT_USER_AGENT,
    MAX_PAGE_BYTES,
    PDL_RATE_LIMIT,
)


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    API keys are optional at startup: a missing key surfaces as an
    enrichment failure for that lookup rather than a crash.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # Ignore extra env vars
    )

    # Enrichment provider configuration
    enrichment_provider: Literal["pdl", "abstract"] = Field(
        default="pdl",
        description="Which company-lookup service to query",
    )
    pdl_api_key: str | None = Field(
        default=None,
        description="People Data Labs API key",
    )
    abstract_api_key: str | None = Field(
        default=None,
        description="AbstractAPI company enrichment key",
    )

    # Provider call rates (requests per second), shared across threads
    pdl_rate_limit: float = Field(
        default=PDL_RATE_LIMIT,
        gt=0,
        description="People Data Labs requests per second",
    )
    abstract_rate_limit: float = Field(
        default=ABSTRACT_RATE_LIMIT,
        gt=0,
        description="AbstractAPI requests per second",
    )

    # Per-source bounds
    scraper_timeout: float = Field(
        default=DEFAULT_SCRAPER_TIMEOUT,
        gt=0,
        description="Seconds before the website scrape is abandoned",
    )
    domain_timeout: float = Field(
        default=DEFAULT_DOMAIN_TIMEOUT,
        gt=0,
        description="Seconds before domain signal collection is abandoned",
    )
    enrichment_timeout: float = Field(
        default=DEFAULT_ENRICHMENT_TIMEOUT,
        gt=0,
        description="Seconds before an enrichment lookup is abandoned",
    )

    # Scraper configuration
    scraper_user_agent: str = Field(
        default=DEFAULT_USER_AGENT,
        description="User-Agent header sent when fetching prospect websites",
    )
    scraper_max_bytes: int = Field(
        default=MAX_PAGE_BYTES,
        gt=0,
        description="Largest page body the scraper will parse",
    )

    cache_dir: Path = Field(
        default=Path("data/cache"),
        description="Directory for the diskcache store",
    )

    @field_validator("scraper_user_agent", mode="before")
    @classmethod
    def strip_whitespace(cls, v: str) -> str:
        """Strip whitespace from string values."""
        if isinstance(v, str):
            return v.strip()
        return v

    @field_validator("pdl_api_key", "abstract_api_key", mode="before")
    @classmethod
    def empty_string_to_none(cls, v: str | None) -> str | None:
        """Convert empty strings to None for optional fields."""
        if isinstance(v, str):
            v = v.strip()
            return v if v else None
        return v

    @field_validator("enrichment_provider", mode="before")
    @classmethod
    def lowercase_provider(cls, v: str) -> str:
        """Accept PDL / Abstract in any case."""
        if isinstance(v, str):
            return v.strip().lower()
        return v


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()


def get_enrichment_provider() -> str:
    """Get the configured enrichment provider ("pdl" or "abstract")."""
    return get_settings().enrichment_provider


def get_pdl_api_key() -> str | None:
    """Get People Data Labs API key from settings (optional)."""
    return get_settings().pdl_api_key


def get_abstract_api_key() -> str | None:
    """Get AbstractAPI key from settings (optional)."""
    return get_settings().abstract_api_key


def get_source_timeouts() -> dict[str, float]:
    """Get the per-source time bounds keyed by source name."""
    settings = get_settings()
    return {
        "domain": settings.domain_timeout,
        "enrichment": settings.enrichment_timeout,
        "scrape": settings.scraper_timeout,
    }


def get_provider_rate_limits() -> dict[str, float]:
    """Get the enrichment providers' call rates keyed by provider name."""
    settings = get_settings()
    return {
        "pdl": settings.pdl_rate_limit,
        "abstract": settings.abstract_rate_limit,
    }


def get_cache_dir() -> Path:
    """Get diskcache directory from settings."""
    return get_settings().cache_dir
