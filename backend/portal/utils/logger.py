"""
Logging setup shared by every module.
"""
import logging
import sys
from typing import Optional

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"

_configured = False


def setup_logging(level: str = "INFO") -> None:
    """
    Configure the root logger once.

    Safe to call repeatedly (app startup, tests); only the first call
    installs the handler.
    """
    global _configured
    if _configured:
        logging.getLogger().setLevel(level.upper())
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    root = logging.getLogger()
    root.addHandler(handler)
    root.setLevel(level.upper())

    # httpx logs every request at INFO, including URLs with tokens
    logging.getLogger("httpx").setLevel(logging.WARNING)
    _configured = True


def get_logger(name: str) -> logging.Logger:
    """Get a named logger."""
    return logging.getLogger(name)


def mask_token(token: Optional[str]) -> str:
    """Shorten a bearer token for log output."""
    if not token:
        return "<none>"
    return f"{token[:6]}..."
