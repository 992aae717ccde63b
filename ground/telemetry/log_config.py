"""
Logging setup shared by the command-line entry points.
"""

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def resolve_level(level: str) -> int:
    """Map a level name such as 'debug' to its numeric value (default INFO)."""
    value = getattr(logging, str(level).upper(), None)
    return value if isinstance(value, int) else logging.INFO


def configure_logging(level: str = "INFO") -> int:
    """
    Configure root logging once for a process.

    Args:
        level: Level name, case-insensitive; unknown names fall back to INFO

    Returns:
        The numeric level applied
    """
    numeric = resolve_level(level)
    logging.basicConfig(level=numeric, format=LOG_FORMAT)
    return numeric
