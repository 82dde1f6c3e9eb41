"""Read-only projections over stored ledger records.

Absence is a normal outcome here: lookups return None or an empty sequence,
never an error, and nothing in this module writes to the store.
"""

from typing import List, Optional

import pandas as pd

from portfolio_ledger.data.base import RecordStore
from portfolio_ledger.portfolio.base import (
    BASIS_POINTS_TOTAL,
    STATE_PORTFOLIO_COUNTER,
    STATE_PROTOCOL_FEE,
    STATE_PROTOCOL_OWNER,
    Portfolio,
    PortfolioAsset,
)

ALLOCATION_COLUMNS = [
    "slot",
    "asset_address",
    "target_percentage",
    "target_weight",
    "current_amount",
]


class PortfolioQueries:
    """Query layer over a RecordStore.

    Example:
        >>> queries = PortfolioQueries(store)
        >>> queries.get_portfolio(1)
        Portfolio(portfolio_id=1, owner='alice', ...)
        >>> queries.get_owner_portfolios("nobody")
        []
    """

    def __init__(self, store: RecordStore):
        self.store = store

    def get_portfolio(self, portfolio_id: int) -> Optional[Portfolio]:
        return self.store.get_portfolio(portfolio_id)

    def get_portfolio_asset(
        self, portfolio_id: int, slot: int
    ) -> Optional[PortfolioAsset]:
        return self.store.get_asset(portfolio_id, slot)

    def get_portfolio_assets(self, portfolio_id: int) -> List[PortfolioAsset]:
        return self.store.get_assets(portfolio_id)

    def get_owner_portfolios(self, owner: str) -> List[int]:
        return list(self.store.get_owner_index(owner))

    def get_allocation_table(self, portfolio_id: int) -> pd.DataFrame:
        """Return a portfolio's assets as a table with fractional weights.

        Returns:
            DataFrame with columns slot, asset_address, target_percentage,
            target_weight, current_amount; empty (with those columns) if the
            portfolio does not exist
        """
        frame = self.store.load_assets_frame(portfolio_id)
        if frame.empty:
            return pd.DataFrame(columns=ALLOCATION_COLUMNS)

        frame["target_weight"] = frame["target_percentage"] / BASIS_POINTS_TOTAL
        return frame[ALLOCATION_COLUMNS]

    def get_portfolio_count(self) -> int:
        return int(self.store.get_state(STATE_PORTFOLIO_COUNTER) or 0)

    def get_protocol_fee(self) -> int:
        return int(self.store.get_state(STATE_PROTOCOL_FEE) or 0)

    def get_protocol_owner(self) -> Optional[str]:
        return self.store.get_state(STATE_PROTOCOL_OWNER)
