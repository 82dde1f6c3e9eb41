"""Public API layer.

Components:
- LedgerAPI: ledger operations bound to an execution context
"""

from portfolio_ledger.api.ledger_api import LedgerAPI

__all__ = ["LedgerAPI"]
