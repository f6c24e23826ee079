"""
Logging setup for the cart package.

Usage:
    from gomarketplace.logging import get_logger
    logger = get_logger(__name__)

Levels: CART_LOG_LEVEL overrides LOG_LEVEL for the gomarketplace
loggers only, so an app can keep its own root level and still debug
persistence.
"""

import logging
import os
import sys
from functools import cache

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_FORMAT_SIMPLE = "%(levelname)s - %(name)s - %(message)s"

PACKAGE_LOGGER = "gomarketplace"

# Snapshots can be large and carry catalog text; only a prefix is logged
SNAPSHOT_EXCERPT_LENGTH = 80
ID_LOG_LENGTH = 8


def _level_from_env(var: str, default: str = "INFO") -> int:
    level_name = os.environ.get(var, default).upper()
    return getattr(logging, level_name, logging.INFO)


def _configure_logging() -> None:
    """Attach a stdout handler to the root logger unless the host app did."""
    root = logging.getLogger()
    if not root.handlers:
        root.setLevel(_level_from_env("LOG_LEVEL"))
        handler = logging.StreamHandler(sys.stdout)
        is_production = os.environ.get("APP_ENV", "").lower() == "production"
        handler.setFormatter(logging.Formatter(LOG_FORMAT_SIMPLE if is_production else LOG_FORMAT))
        root.addHandler(handler)

        # Upstash client logs every REST call through httpx
        logging.getLogger("httpx").setLevel(logging.WARNING)

    if os.environ.get("CART_LOG_LEVEL"):
        logging.getLogger(PACKAGE_LOGGER).setLevel(_level_from_env("CART_LOG_LEVEL"))


_configure_logging()


@cache
def get_logger(name: str) -> logging.Logger:
    """Get a logger under the gomarketplace hierarchy."""
    return logging.getLogger(name)


def _escape(value: str) -> str:
    """Escape newlines and control characters (CWE-117)."""
    return (
        value.replace("\n", "\\n")
        .replace("\r", "\\r")
        .replace("\t", "\\t")
        .replace("\x00", "")
    )


def sanitize_id_for_logging(id_value: str | None) -> str:
    """Escaped, truncated product id or storage key; "N/A" if empty."""
    if not id_value:
        return "N/A"
    return _escape(str(id_value))[:ID_LOG_LENGTH]


def snapshot_excerpt(raw: str | bytes | None) -> str:
    """
    Printable prefix of a stored cart snapshot, with its total size.

    Used when a snapshot fails to decode, so the log shows what was
    stored without dumping the whole payload.
    """
    if raw is None:
        return "<none>"
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8", errors="replace")
    text = _escape(str(raw))
    if len(text) <= SNAPSHOT_EXCERPT_LENGTH:
        return repr(text)
    return f"{text[:SNAPSHOT_EXCERPT_LENGTH]!r}... ({len(raw)} chars)"


__all__ = [
    "get_logger",
    "sanitize_id_for_logging",
    "snapshot_excerpt",
]
