"""
Command-line helpers for prospect_profile scripts.
"""

from prospect_profile.cli.args import add_execute_argument
from prospect_profile.cli.logging import (
    print_dry_run_header,
    print_execute_header,
    setup_logging,
)

__all__ = [
    "add_execute_argument",
    "print_dry_run_header",
    "print_execute_header",
    "setup_logging",
]
