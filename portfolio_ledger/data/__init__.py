"""Data Layer: execution context and record storage."""

from portfolio_ledger.data.base import ExecutionContext, RecordStore
from portfolio_ledger.data.context import StaticContext

__all__ = ["ExecutionContext", "RecordStore", "StaticContext"]
