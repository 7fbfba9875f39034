"""
Shared utilities: rate limiting, parallel execution, stats, tqdm-safe logging.
"""
