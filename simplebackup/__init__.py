"""
simple-backup - tiered MySQL backup rotation

Dumps every database once per run and files the dump into hourly, daily,
weekly, monthly and yearly tiers, pruning each tier to its keep-count.
"""

try:
    from importlib.metadata import version

    __version__ = version("simple-backup")
except Exception:
    __version__ = "0.0.0"  # Fallback for development
