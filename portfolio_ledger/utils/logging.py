"""Process-wide logging for the ledger.

Everything under ``portfolio_ledger`` logs through module loggers obtained with
``get_logger(__name__)``. Hosts call ``setup_logging`` once, usually from the
levels in the ``logging`` section of the configuration file.
"""

import logging
import sys
from typing import Any


DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _to_level(level: str) -> int:
    return getattr(logging, str(level).upper(), logging.INFO)


def setup_logging(
    level: str = "INFO",
    log_format: str | None = None,
    logger_levels: dict[str, str] | None = None,
) -> None:
    """Route ledger logs to stdout at the configured levels.

    Replaces any handlers already on the root logger. Unknown level names
    fall back to INFO.

    Args:
        level: Root level name, case-insensitive
        log_format: Record format; DEFAULT_FORMAT when omitted
        logger_levels: Per-logger level names, e.g. to quiet the storage layer

    Example:
        >>> setup_logging("INFO", logger_levels={"portfolio_ledger.data": "WARNING"})
    """
    logging.basicConfig(
        level=_to_level(level),
        format=log_format or DEFAULT_FORMAT,
        stream=sys.stdout,
        force=True,
    )

    for name, logger_level in (logger_levels or {}).items():
        logging.getLogger(name).setLevel(_to_level(logger_level))


def get_logger(name: str) -> logging.Logger:
    """Return the logger for a ledger module (pass ``__name__``)."""
    return logging.getLogger(name)


def log_with_context(
    logger: logging.Logger,
    level: str,
    message: str,
    **context: Any,
) -> None:
    """Log message followed by ``| key=value ...`` for each context field.

    Fields keep their keyword order. Nothing is formatted when the level is
    disabled for the logger.

    Example:
        >>> log_with_context(logger, "info", "Portfolio rebalanced",
        ...                  portfolio_id=3, height=412)
        # "Portfolio rebalanced | portfolio_id=3 height=412"
    """
    numeric_level = _to_level(level)
    if not logger.isEnabledFor(numeric_level):
        return

    if context:
        fields = " ".join(f"{key}={value}" for key, value in context.items())
        message = f"{message} | {fields}"
    logger.log(numeric_level, message)
