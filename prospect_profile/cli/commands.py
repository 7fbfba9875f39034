"""
CLI command entry points for prospect_profile.

These functions are registered as console scripts in pyproject.toml.
Each function delegates to the corresponding script in scripts/.
"""

import subprocess
import sys
from pathlib import Path


def _run_script(script_name: str):
    """
    Helper to run a script with arguments.

    Args:
        script_name: Name of script file (without .py extension)
    """
    script = Path(__file__).parent.parent.parent / "scripts" / f"{script_name}.py"
    # sys.argv[1:] passed as a list (no shell), arguments validated by argparse
    result = subprocess.run([sys.executable, str(script)] + sys.argv[1:], check=False)
    sys.exit(result.returncode)


def run_enrich_prospect():
    """Entry point for enrich-prospect command."""
    _run_script("enrich_prospect")


def run_edit_profile():
    """Entry point for edit-profile command."""
    _run_script("edit_profile")


def run_cache():
    """Entry point for profile-cache command."""
    import argparse

    from prospect_profile.cache import get_cache

    parser = argparse.ArgumentParser(description="Manage the profile and enrichment cache")
    parser.add_argument("command", choices=["stats", "list", "clear"])
    parser.add_argument("--namespace", "-n", help="Filter by namespace (profiles, enrichment)")
    parser.add_argument("--limit", type=int, default=20, help="Limit for list")
    parser.add_argument("--yes", "-y", action="store_true", help="Skip confirmation")
    args = parser.parse_args()

    cache = get_cache()

    if args.command == "stats":
        stats = cache.stats()
        print(f"Cache: {stats['cache_dir']}")
        print(f"  Total entries: {stats['total']}")
        print(f"  Size: {stats['size_mb']} MB")
        print("  By namespace:")
        for ns, count in sorted(stats["by_namespace"].items()):
            print(f"    {ns}: {count}")

    elif args.command == "list":
        keys = cache.keys(namespace=args.namespace, limit=args.limit)
        ns_label = args.namespace or "all"
        print(f"Keys ({ns_label}, limit {args.limit}):")
        for key in keys:
            print(f"  {key}")

    elif args.command == "clear":
        if not args.namespace:
            print("Specify --namespace to clear (profiles or enrichment)")
            return
        if not args.yes:
            confirm = input(f"Clear all {args.namespace} entries? [y/N] ")
            if confirm.lower() != "y":
                print("Aborted")
                return
        count = cache.clear_namespace(args.namespace)
        print(f"Cleared {count} entries from {args.namespace}")
