"""
connector/logging_config.py
Logging setup for Connect.

Streamlit re-executes page scripts on every interaction, so configure_logging()
is safe to call repeatedly: handlers are attached to the package logger once.
"""

import logging
import sys

from connector.db import get_secret

LOGGER_NAME = "connector"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str | None = None) -> logging.Logger:
    """
    Configure the package logger with a single console handler.

    The level comes from the argument, else the LOG_LEVEL secret, else INFO.
    Unknown level names fall back to INFO.
    """
    level_name = (level or get_secret("LOG_LEVEL") or "INFO").upper()
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, level_name, logging.INFO))

    if not any(getattr(h, "_connector_handler", False) for h in logger.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._connector_handler = True
        logger.addHandler(handler)

    logger.propagate = False
    return logger
