"""
Parallel execution helper for batch enrichment runs.

Each item (typically one prospect domain) is handled by a worker thread;
progress is shown with tqdm and failures are collected rather than raised.
"""

import logging
import sys
from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, TypeVar

from tqdm import tqdm

from prospect_profile.utils.stats import ExecutionStats

logger = logging.getLogger(__name__)

T = TypeVar("T")  # Input type
R = TypeVar("R")  # Result type


def execute_parallel(
    items: Iterable[T],
    worker_func: Callable[[T], R],
    max_workers: int = 4,
    desc: str = "Processing",
    unit: str = "item",
    show_progress: bool = True,
    error_handler: Callable[[T, Exception], None] | None = None,
    result_handler: Callable[[T, R], None] | None = None,
    stats: ExecutionStats | None = None,
    stats_key: str | None = None,
    progress_postfix: Callable[[], dict[str, Any]] | None = None,
) -> list[tuple[T, R | None, Exception | None]]:
    """
    Execute a function in parallel across multiple items with progress tracking.

    Args:
        items: Iterable of items to process
        worker_func: Function to call for each item
        max_workers: Maximum number of parallel workers
        desc: Progress bar description
        unit: Progress bar unit name
        show_progress: Whether to show progress bar
        error_handler: Optional callback for errors (item, exception)
        result_handler: Optional callback for results (item, result)
        stats: Optional ExecutionStats; ``stats_key`` is incremented on
               success and ``failed`` on error
        stats_key: Counter to increment on success
        progress_postfix: Optional callable producing the progress bar postfix

    Returns:
        List of (item, result, exception) tuples in completion order
    """
    items_list = list(items)
    if not items_list:
        return []

    results: list[tuple[T, R | None, Exception | None]] = []

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        future_to_item = {executor.submit(worker_func, item): item for item in items_list}

        progress_bar = None
        if show_progress:
            progress_bar = tqdm(
                total=len(items_list),
                desc=desc,
                unit=unit,
                file=sys.stderr,
                mininterval=0.5,
                dynamic_ncols=True,
            )

        try:
            for future in as_completed(future_to_item):
                item = future_to_item[future]
                result = None
                error = None

                try:
                    result = future.result()
                    if result_handler:
                        result_handler(item, result)
                    if stats and stats_key:
                        stats.increment(stats_key)
                except Exception as e:
                    error = e
                    if error_handler:
                        error_handler(item, e)
                    else:
                        logger.debug(f"Error processing {item}: {e}")
                    if stats:
                        stats.increment("failed")
                finally:
                    results.append((item, result, error))
                    if progress_bar:
                        if progress_postfix:
                            progress_bar.set_postfix(progress_postfix())
                        progress_bar.update(1)
        finally:
            if progress_bar:
                progress_bar.close()

    return results
