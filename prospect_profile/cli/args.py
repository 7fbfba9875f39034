"""
Argument parsing helpers shared by the scripts.
"""

from pathlib import Path


def add_execute_argument(parser):
    """
    Add the standard --execute flag (scripts default to a dry run).

    Args:
        parser: argparse.ArgumentParser instance
    """
    parser.add_argument(
        "--execute",
        action="store_true",
        help="Actually run lookups and save profiles (default is dry-run)",
    )


def add_domain_arguments(parser):
    """Add the domain / --domains-file inputs used by enrich-prospect."""
    parser.add_argument(
        "domain",
        nargs="?",
        help="Prospect domain or URL (e.g. acmewidgets.com)",
    )
    parser.add_argument(
        "--domains-file",
        type=Path,
        help="File with one domain per line (batch mode)",
    )


def read_domains_file(path: Path) -> list[str]:
    """Read domains from a file, skipping blank lines and # comments."""
    domains = []
    for line in path.read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if line and not line.startswith("#"):
            domains.append(line)
    return domains
