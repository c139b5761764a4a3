# app/utils/my_logging.py
"""Logging configuration with per-request correlation ids"""
import logging
import sys
from contextvars import ContextVar

from app.config.settings import get_settings

# Set by the correlation id middleware for the duration of a request
correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="-")

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(correlation_id)s] %(message)s"

# Libraries that log every statement or connection at INFO
NOISY_LOGGERS = ["sqlalchemy.engine", "sqlalchemy.pool", "redis", "uvicorn.access"]


class CorrelationIdFilter(logging.Filter):
    """Stamp each record with the current request's correlation id"""

    def filter(self, record: logging.LogRecord) -> bool:
        if not getattr(record, "correlation_id", None):
            record.correlation_id = correlation_id_var.get()
        return True


def setup_logging(verbose=True):
    """Configure application logging

    verbose=False keeps booking logs at WARNING and drops library chatter
    to ERROR, which is what the test suite and batch scripts want.
    """
    settings = get_settings()

    if verbose:
        level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
    else:
        level = logging.WARNING

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(CorrelationIdFilter())
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    logging.basicConfig(level=level, handlers=[handler], force=True)

    library_level = logging.WARNING if verbose else logging.ERROR
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(library_level)
