"""Structured ledger event log with rotation.

This module records every ledger mutation (and every rejected mutation) as a
JSON line in a rotating log file, so the bookkeeping history of a deployment
can be audited independently of the record store.
"""

import json
import logging
import logging.handlers
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Optional


class LedgerEventType(Enum):
    """Types of ledger events to log."""

    PORTFOLIO_CREATED = "portfolio_created"
    ALLOCATION_UPDATED = "allocation_updated"
    PORTFOLIO_REBALANCED = "portfolio_rebalanced"
    PROTOCOL_OWNER_CHANGED = "protocol_owner_changed"
    OPERATION_REJECTED = "operation_rejected"


class LedgerEventLogger:
    """Rotating JSON-lines logger for ledger events.

    Successful mutations go to ``events.log``; rejected operations are
    written to ``rejections.log`` at WARNING level.

    Example:
        >>> events = LedgerEventLogger(log_dir="logs", enable_console=False)
        >>> events.log_event(
        ...     LedgerEventType.PORTFOLIO_CREATED,
        ...     portfolio_id=1, owner="alice", height=10,
        ... )
    """

    def __init__(
        self,
        log_dir: str | Path = "logs",
        max_bytes: int = 10 * 1024 * 1024,  # 10 MB
        backup_count: int = 30,
        enable_console: bool = False,
    ):
        """Initialize the event logger.

        Args:
            log_dir: Directory for log files
            max_bytes: Maximum size per log file (default 10 MB)
            backup_count: Number of rotated files to keep (default 30)
            enable_console: Also echo events to the console (default False)
        """
        self.log_dir = Path(log_dir)
        self.log_dir.mkdir(parents=True, exist_ok=True)

        self.max_bytes = max_bytes
        self.backup_count = backup_count
        self.enable_console = enable_console

        self.event_logger = self._create_rotating_logger("events")
        self.rejection_logger = self._create_rotating_logger(
            "rejections", level=logging.WARNING
        )

    def _create_rotating_logger(
        self,
        name: str,
        level: int = logging.INFO,
    ) -> logging.Logger:
        logger = logging.getLogger(f"ledger.{name}")
        logger.setLevel(level)
        logger.propagate = False

        for handler in list(logger.handlers):
            handler.close()
        logger.handlers = []

        file_handler = logging.handlers.RotatingFileHandler(
            filename=self.log_dir / f"{name}.log",
            maxBytes=self.max_bytes,
            backupCount=self.backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        # Message is already a JSON object; emit it as the whole line
        file_handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(file_handler)

        if self.enable_console:
            console_handler = logging.StreamHandler()
            console_handler.setLevel(level)
            console_handler.setFormatter(
                logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
            )
            logger.addHandler(console_handler)

        return logger

    def _write(
        self,
        logger: logging.Logger,
        event_type: LedgerEventType,
        level: str,
        data: dict[str, Any],
    ) -> None:
        event = {
            "event_type": event_type.value,
            "timestamp": datetime.now().isoformat(),
            **data,
        }
        getattr(logger, level)(json.dumps(event, default=str))

    def log_event(self, event_type: LedgerEventType, **data: Any) -> None:
        """Log a successful ledger mutation.

        Args:
            event_type: Type of ledger event
            **data: Event fields (portfolio_id, owner, height, ...)
        """
        self._write(self.event_logger, event_type, "info", data)

    def log_rejection(
        self,
        operation: str,
        error: Exception,
        **data: Any,
    ) -> None:
        """Log a rejected operation with its error kind and code.

        Args:
            operation: Name of the rejected operation
            error: Exception that rejected it
            **data: Request fields (caller, portfolio_id, ...)
        """
        kind = getattr(error, "kind", None)
        payload = {
            "operation": operation,
            "error": str(error),
            "error_kind": kind.name if kind is not None else type(error).__name__,
        }
        if kind is not None:
            payload["error_code"] = kind.value
        payload.update(data)

        self._write(
            self.rejection_logger,
            LedgerEventType.OPERATION_REJECTED,
            "warning",
            payload,
        )

    def close(self) -> None:
        """Close file handlers so log files can be removed or rotated externally."""
        for logger in (self.event_logger, self.rejection_logger):
            for handler in list(logger.handlers):
                handler.close()
            logger.handlers = []


_event_logger: Optional[LedgerEventLogger] = None


def get_event_logger(log_dir: str | Path = "logs") -> LedgerEventLogger:
    """Get or create the global ledger event logger instance."""
    global _event_logger

    if _event_logger is None:
        _event_logger = LedgerEventLogger(log_dir=log_dir)

    return _event_logger
