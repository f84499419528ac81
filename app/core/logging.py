"""
Logging utilities for the FastAPI application and the ``check_env`` tool.

Provides a consistent logging format and configuration.
"""

import logging
import sys

_NOISY_LOGGERS = ("httpx", "httpcore", "google.auth")


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging and quiet chatty HTTP client loggers."""
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        stream=sys.stdout,
    )
    # httpx logs full request URLs at INFO, which include device tokens.
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


__all__ = ["configure_logging"]
