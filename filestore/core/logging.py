"""Logging configuration."""

import logging
import os


def setup_logging() -> None:
    """Configure application logging."""
    level = os.getenv("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    # The Azure SDK logs every HTTP request/response at INFO
    logging.getLogger("azure").setLevel(max(logging.getLevelName(level), logging.WARNING))
