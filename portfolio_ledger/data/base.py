"""Abstract interfaces for the ledger's external collaborators.

The portfolio core depends on two collaborators it does not implement itself:

- ExecutionContext: who the current actor is and the current logical height
- RecordStore: transactional key-value storage for portfolio records

Concrete implementations live in portfolio_ledger.data.context and
portfolio_ledger.data.storage.database.
"""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from typing import List, Optional

import pandas as pd

from portfolio_ledger.portfolio.base import Portfolio, PortfolioAsset


class ExecutionContext(ABC):
    """Source of the caller identity and the monotonically increasing height.

    Authentication of the caller is the host's concern; the ledger trusts
    whatever identity the context reports.
    """

    @property
    @abstractmethod
    def caller(self) -> str:
        """Identity of the actor issuing the current operation."""
        pass

    @property
    @abstractmethod
    def height(self) -> int:
        """Current logical height used for created_at and cooldown timing."""
        pass


class RecordStore(ABC):
    """Abstract transactional store for portfolio records.

    Layout:
        - portfolios by portfolio_id
        - portfolio assets by (portfolio_id, slot)
        - owner index by owner identity (ordered portfolio IDs)
        - ledger state scalars by key

    All writes issued inside ``transaction()`` commit together or not at all,
    and reads inside it observe the transaction's own writes.

    Example:
        >>> with store.transaction():
        ...     store.save_portfolio(portfolio)
        ...     store.save_asset(asset)
    """

    @abstractmethod
    def transaction(self) -> AbstractContextManager:
        """Open an all-or-nothing unit of work.

        Raises:
            StorageError: If the transaction cannot be started or committed
        """
        pass

    @abstractmethod
    def get_portfolio(self, portfolio_id: int) -> Optional[Portfolio]:
        """Return the portfolio stored under portfolio_id, or None."""
        pass

    @abstractmethod
    def save_portfolio(self, portfolio: Portfolio) -> None:
        """Insert or replace a portfolio record."""
        pass

    @abstractmethod
    def get_asset(self, portfolio_id: int, slot: int) -> Optional[PortfolioAsset]:
        """Return the asset at (portfolio_id, slot), or None."""
        pass

    @abstractmethod
    def get_assets(self, portfolio_id: int) -> List[PortfolioAsset]:
        """Return all assets of a portfolio ordered by slot."""
        pass

    @abstractmethod
    def save_asset(self, asset: PortfolioAsset) -> None:
        """Insert or replace an asset record."""
        pass

    @abstractmethod
    def load_assets_frame(self, portfolio_id: int) -> pd.DataFrame:
        """Return a portfolio's assets as a DataFrame ordered by slot.

        Returns:
            DataFrame with columns slot, asset_address, target_percentage,
            current_amount (empty if the portfolio has no assets)
        """
        pass

    @abstractmethod
    def get_owner_index(self, owner: str) -> List[int]:
        """Return the owner's portfolio IDs in insertion order (may be empty)."""
        pass

    @abstractmethod
    def append_owner_index(self, owner: str, portfolio_id: int) -> None:
        """Append a portfolio ID to the end of the owner's index."""
        pass

    @abstractmethod
    def get_state(self, key: str) -> Optional[str]:
        """Return a ledger state scalar, or None if unset."""
        pass

    @abstractmethod
    def set_state(self, key: str, value: str) -> None:
        """Set a ledger state scalar."""
        pass
