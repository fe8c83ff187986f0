"""
Logging setup shared by the API and scripts.
"""

import logging

from core.config import LOG_LEVEL


def setup_logging(level: str = LOG_LEVEL) -> logging.Logger:
    """Configure root logging once and return the package logger."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    return logging.getLogger("calendar_export")
