#!/usr/bin/env python3
"""
Show a stored company profile or record an operator edit.

An edited field is marked user-edited: later collection passes will never
overwrite it. Passing an empty value clears the field and still locks it.

Usage:
    python scripts/edit_profile.py acmewidgets.com                         # Show profile
    python scripts/edit_profile.py acmewidgets.com --set name="Acme LLC"   # Dry-run
    python scripts/edit_profile.py acmewidgets.com --set name="Acme LLC" --execute
"""

import argparse
import sys

from prospect_profile.cache import get_cache
from prospect_profile.cli import add_execute_argument, setup_logging
from prospect_profile.domain.validation import strip_domain
from prospect_profile.profile.models import PROFILE_FIELDS, Origin
from prospect_profile.profile.reconciler import ProfileReconciler
from prospect_profile.profile.storage import CacheProfileStore


def parse_assignment(text: str) -> tuple[str, str]:
    """Split FIELD=VALUE; raises argparse.ArgumentTypeError for unknown fields."""
    if "=" not in text:
        raise argparse.ArgumentTypeError(f"Expected FIELD=VALUE, got {text!r}")
    field, value = text.split("=", 1)
    field = field.strip()
    if field not in PROFILE_FIELDS:
        raise argparse.ArgumentTypeError(
            f"Unknown field {field!r}; choose from: {', '.join(PROFILE_FIELDS)}"
        )
    return field, value


def main():
    """Run the profile edit script."""
    parser = argparse.ArgumentParser(description="Show or edit a stored company profile")
    add_execute_argument(parser)
    parser.add_argument("company", help="Company id (the prospect domain by default)")
    parser.add_argument(
        "--set",
        dest="assignments",
        action="append",
        type=parse_assignment,
        default=[],
        metavar="FIELD=VALUE",
        help="Record an operator edit (repeatable)",
    )
    args = parser.parse_args()

    logger = setup_logging("edit_profile", execute=args.execute)
    company_id = strip_domain(args.company) or args.company

    store = CacheProfileStore(get_cache())
    if store.load_profile(company_id) is None and not args.assignments:
        logger.error(f"No stored profile for {company_id}")
        sys.exit(1)

    reconciler = ProfileReconciler(company_id, store=store)

    if args.assignments and not args.execute:
        logger.info("Dry run; would record:")
        for field, value in args.assignments:
            logger.info(f"  {field} = {value!r} (user-edited)")
        logger.info("Re-run with --execute to save")
    elif args.assignments:
        for field, value in args.assignments:
            reconciler.record_user_edit(field, value)
            logger.info(f"Recorded {field} = {value!r}")

    profile, provenance = reconciler.snapshot()
    logger.info(f"Profile for {company_id}:")
    for field in PROFILE_FIELDS:
        record = provenance[field]
        value = profile.get_field(field)
        if value is None and record.origin is Origin.UNSET:
            continue
        logger.info(f"  {field:<22} {value!r:<40} [{record.origin.value}]")


if __name__ == "__main__":
    main()
