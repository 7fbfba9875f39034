"""
Constants for prospect_profile package.

Centralizes magic numbers and configuration defaults.
"""

# Per-source time bounds (seconds)
# The scraper's page fetch is the least predictable of the three lookups
DEFAULT_SCRAPER_TIMEOUT = 10.0
DEFAULT_DOMAIN_TIMEOUT = 10.0
DEFAULT_ENRICHMENT_TIMEOUT = 15.0
DNS_LIFETIME = 5.0  # dnspython resolver lifetime per query
TLS_CONNECT_TIMEOUT = 5.0

# Scraper limits
MAX_PAGE_BYTES = 2 * 1024 * 1024  # 2 MB; larger pages raise FetchError(too_large)
MIN_ADDRESS_LENGTH = 5  # cleaned address must be strictly longer than this
MIN_DESCRIPTION_CHARS = 100
MIN_DESCRIPTION_WORDS = 20
INDUSTRY_KEYWORD_MIN_HITS = 2

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

# API rate limits (requests per second)
PDL_RATE_LIMIT = 10.0  # People Data Labs: 10 req/sec on paid plans
ABSTRACT_RATE_LIMIT = 1.0  # AbstractAPI free tier: 1 req/sec

# Cache TTL (Time To Live) in days
CACHE_TTL_ENRICHMENT = 30  # Successful enrichment lookups

# Employee count buckets (upper bound inclusive, label)
EMPLOYEE_COUNT_BUCKETS = [
    (10, "1-10"),
    (50, "11-50"),
    (200, "51-200"),
    (500, "201-500"),
    (1000, "501-1000"),
    (5000, "1001-5000"),
    (10000, "5001-10000"),
]
EMPLOYEE_COUNT_TOP_BUCKET = "10001+"

# Parallel processing defaults
DEFAULT_WORKERS = 4  # Default number of domains enriched concurrently in batch mode
