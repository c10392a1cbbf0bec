"""
Logging setup for the storefront core.

Modules log through `get_logger(__name__)`; the root handler is installed
once on import, at the level named by LOG_LEVEL (default INFO).
"""

import logging
import os
import sys
from functools import cache

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
# Release builds ship logs to a collector that stamps its own time
LOG_FORMAT_RELEASE = "%(levelname)s - %(name)s - %(message)s"


def configure_logging() -> None:
    """Install a stdout handler on the root logger unless one exists."""
    root = logging.getLogger()
    if root.handlers:
        return

    level = getattr(logging, os.environ.get("LOG_LEVEL", "INFO").upper(), logging.INFO)
    release = os.environ.get("STOREFRONT_ENV") == "production"

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT_RELEASE if release else LOG_FORMAT))
    root.setLevel(level)
    root.addHandler(handler)

    # One line per API call is too noisy on a device
    logging.getLogger("httpx").setLevel(logging.WARNING)


configure_logging()


@cache
def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def sanitize_id_for_logging(id_value: str | None) -> str:
    """
    Make an id safe to log.

    Control characters are escaped (CWE-117) and only the first 8 chars are
    kept. Empty ids log as "N/A".
    """
    if not id_value:
        return "N/A"
    safe_value = (
        str(id_value)
        .replace("\n", "\\n")
        .replace("\r", "\\r")
        .replace("\t", "\\t")
        .replace("\x00", "")
    )
    return safe_value[:8]
