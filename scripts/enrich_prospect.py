#!/usr/bin/env python3
"""
Build or refresh a prospect's company profile from automatic sources.

This script:
1. Normalizes the prospect domain(s)
2. Runs one collection pass per domain: domain signals, enrichment lookup
   and website scrape, concurrently and each within its time bound
3. Reconciles every result into the stored profile (operator edits are
   never overwritten) and saves it in the cache (namespace: profiles)

Successful enrichment lookups are cached for 30 days (namespace: enrichment).

Usage:
    python scripts/enrich_prospect.py acmewidgets.com              # Dry-run (plan only)
    python scripts/enrich_prospect.py acmewidgets.com --execute    # Collect and save
    python scripts/enrich_prospect.py --domains-file prospects.txt --execute --workers 8
"""

import argparse
import sys

from prospect_profile.cache import get_cache
from prospect_profile.cli import (
    add_execute_argument,
    print_dry_run_header,
    print_execute_header,
    setup_logging,
)
from prospect_profile.cli.args import add_domain_arguments, read_domains_file
from prospect_profile.collection import collect_profile
from prospect_profile.config import (
    get_abstract_api_key,
    get_enrichment_provider,
    get_pdl_api_key,
    get_source_timeouts,
)
from prospect_profile.constants import DEFAULT_WORKERS
from prospect_profile.domain.validation import normalize_domain
from prospect_profile.profile.models import PROFILE_FIELDS, Origin
from prospect_profile.profile.storage import CacheProfileStore
from prospect_profile.sources.enrichment import EnrichmentClient
from prospect_profile.utils.parallel import execute_parallel
from prospect_profile.utils.stats import ExecutionStats


def log_profile(logger, company_id, profile, provenance):
    """Log every non-empty field with its origin."""
    logger.info(f"Profile for {company_id}:")
    for field in PROFILE_FIELDS:
        value = profile.get_field(field)
        if value is None:
            continue
        origin = provenance[field].origin
        marker = " (edited)" if origin is Origin.USER else ""
        logger.info(f"  {field:<22} {value}  [{origin.value}]{marker}")


def main():
    """Run the prospect enrichment script."""
    parser = argparse.ArgumentParser(
        description="Collect and reconcile company profile data for prospect domains"
    )
    add_execute_argument(parser)
    add_domain_arguments(parser)
    parser.add_argument(
        "--workers",
        type=int,
        default=DEFAULT_WORKERS,
        help=f"Domains collected in parallel in batch mode (default: {DEFAULT_WORKERS})",
    )
    parser.add_argument(
        "--wait",
        type=float,
        default=None,
        help="Stop waiting for a pass after this many seconds (default: largest source bound)",
    )
    parser.add_argument(
        "--no-cache",
        action="store_true",
        help="Do not read or write cached enrichment lookups",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Show per-field decisions")
    args = parser.parse_args()

    logger = setup_logging("enrich_prospect", execute=args.execute, verbose=args.verbose)

    raw_domains = [args.domain] if args.domain else []
    if args.domains_file:
        raw_domains.extend(read_domains_file(args.domains_file))
    if not raw_domains:
        parser.error("Give a domain or --domains-file")

    domains = []
    for raw in raw_domains:
        normalized = normalize_domain(raw)
        if normalized is None:
            logger.warning(f"Skipping invalid domain: {raw!r}")
            continue
        if normalized not in domains:
            domains.append(normalized)
    if not domains:
        logger.error("No valid domains to collect")
        sys.exit(1)

    provider = get_enrichment_provider()
    api_key = get_pdl_api_key() if provider == "pdl" else get_abstract_api_key()

    if not args.execute:
        print_dry_run_header("Prospect Enrichment", logger)
        logger.info(f"Domains: {len(domains)}")
        for domain in domains[:20]:
            logger.info(f"  {domain}")
        if len(domains) > 20:
            logger.info(f"  ... and {len(domains) - 20} more")
        logger.info(f"Enrichment provider: {provider} (API key {'set' if api_key else 'MISSING'})")
        for source, bound in get_source_timeouts().items():
            logger.info(f"  {source} bound: {bound}s")
        logger.info("")
        logger.info("To execute, run: python scripts/enrich_prospect.py ... --execute")
        return

    print_execute_header("Prospect Enrichment", logger)
    if not api_key:
        logger.warning(f"No {provider} API key configured; enrichment lookups will fail")

    cache = get_cache()
    store = CacheProfileStore(cache)
    client = EnrichmentClient(cache=None if args.no_cache else cache)

    def collect(domain):
        return collect_profile(
            domain,
            store=store,
            wait_timeout=args.wait,
            enrichment_lookup=client.enrich_by_domain,
        )

    if len(domains) == 1:
        reconciler, orchestrator = collect(domains[0])
        profile, provenance = reconciler.snapshot()
        for source, status in orchestrator.source_statuses().items():
            logger.info(f"{source}: {status.value}")
        if orchestrator.message:
            logger.warning(orchestrator.message)
        log_profile(logger, reconciler.company_id, profile, provenance)
        return

    stats = ExecutionStats(reconciled=0, no_data=0, failed=0)

    def on_result(domain, outcome):
        _, orchestrator = outcome
        if orchestrator.message:
            stats.increment("no_data")
            logger.debug(f"{domain}: {orchestrator.message}")

    execute_parallel(
        domains,
        collect,
        max_workers=args.workers,
        desc="Collecting",
        unit="domain",
        result_handler=on_result,
        error_handler=lambda domain, e: logger.warning(f"{domain}: {e}"),
        stats=stats,
        stats_key="reconciled",
        progress_postfix=stats.to_dict,
    )

    logger.info("")
    logger.info("=" * 70)
    logger.info(f"Reconciled: {stats['reconciled']}")
    logger.info(f"No data found: {stats['no_data']}")
    logger.info(f"Failed: {stats['failed']}")
    logger.info("=" * 70)


if __name__ == "__main__":
    main()
