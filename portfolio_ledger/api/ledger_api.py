"""User-friendly Ledger API.

This module provides the public interface of the ledger: every operation reads
the caller identity and current height from the bound ExecutionContext and
delegates to the lifecycle manager or the query layer.
"""

from pathlib import Path
from typing import List, Optional, Sequence

import pandas as pd

from portfolio_ledger.data.base import ExecutionContext, RecordStore
from portfolio_ledger.data.storage.database import DatabaseManager
from portfolio_ledger.portfolio.base import (
    BASIS_POINTS_TOTAL,
    Portfolio,
    PortfolioAsset,
    RebalanceStatus,
)
from portfolio_ledger.portfolio.lifecycle import PortfolioLifecycleManager
from portfolio_ledger.portfolio.queries import PortfolioQueries
from portfolio_ledger.utils.config import LedgerSettings, load_config, load_ledger_settings
from portfolio_ledger.utils.exceptions import LengthMismatchError
from portfolio_ledger.utils.logging import get_logger
from portfolio_ledger.utils.logging_enhanced import LedgerEventLogger

logger = get_logger(__name__)


class LedgerAPI:
    """High-level API for the portfolio ledger.

    Example:
        >>> from portfolio_ledger.api.ledger_api import LedgerAPI
        >>> from portfolio_ledger.data.context import StaticContext
        >>>
        >>> ctx = StaticContext(caller="alice", height=1)
        >>> api = LedgerAPI(context=ctx, settings=LedgerSettings(db_path="ledger.db"))
        >>> pid = api.create_portfolio(["BTC", "ETH"], [6000, 4000])
        >>> api.get_user_portfolios("alice")
        [1]
        >>> ctx.advance(145)
        >>> api.calculate_rebalance_amounts(pid).needs_rebalance
        True
    """

    def __init__(
        self,
        context: ExecutionContext,
        settings: Optional[LedgerSettings] = None,
        store: Optional[RecordStore] = None,
        event_logger: Optional[LedgerEventLogger] = None,
    ):
        """Initialize LedgerAPI.

        Args:
            context: Source of caller identity and height
            settings: Ledger settings (defaults to LedgerSettings())
            store: RecordStore (defaults to a DatabaseManager on settings.db_path)
            event_logger: Optional JSON event log; created from
                settings.event_log_dir when omitted and that is set
        """
        self.context = context
        self.settings = settings or LedgerSettings()
        self.store = store or DatabaseManager(self.settings.db_path)

        if event_logger is None and self.settings.event_log_dir:
            event_logger = LedgerEventLogger(log_dir=self.settings.event_log_dir)
        self.event_logger = event_logger

        self.lifecycle = PortfolioLifecycleManager(
            store=self.store,
            clock=context,
            rebalance_cooldown=self.settings.rebalance_cooldown,
            event_logger=event_logger,
        )
        self.queries = PortfolioQueries(self.store)
        self.lifecycle.bootstrap(
            protocol_owner=self.settings.protocol_owner,
            protocol_fee_bps=self.settings.protocol_fee_bps,
        )

        logger.debug("LedgerAPI initialized with %s", type(self.store).__name__)

    @classmethod
    def from_config(
        cls,
        context: ExecutionContext,
        config_path: str | Path | None = None,
    ) -> "LedgerAPI":
        """Build an API from a YAML configuration file (and .env overrides)."""
        settings = load_ledger_settings(load_config(config_path))
        return cls(context=context, settings=settings)

    # --- Administration ---

    def initialize(self, new_owner: str) -> None:
        """Hand protocol ownership from the caller to new_owner."""
        self.lifecycle.initialize(new_owner, self.context.caller)

    # --- Mutations ---

    def create_portfolio(
        self,
        tokens: Sequence[str],
        percentages: Sequence[int],
    ) -> int:
        """Create a portfolio owned by the caller.

        Args:
            tokens: Asset addresses, one per slot
            percentages: Target weights in basis points, aligned with tokens

        Returns:
            The new portfolio ID

        Raises:
            LengthMismatchError: tokens and percentages differ in length
            InvalidTokenCountError, InvalidTokenError, InvalidPercentageError,
            UserStorageFullError: see PortfolioLifecycleManager.create_portfolio
        """
        tokens = list(tokens)
        percentages = list(percentages)
        if len(tokens) != len(percentages):
            error = LengthMismatchError(
                f"Got {len(tokens)} tokens but {len(percentages)} percentages"
            )
            self.lifecycle.record_rejection(
                "create_portfolio", error, caller=self.context.caller
            )
            raise error

        return self.lifecycle.create_portfolio(
            zip(tokens, percentages), self.context.caller
        )

    def update_portfolio_allocation(
        self,
        portfolio_id: int,
        slot: int,
        new_percentage: int,
    ) -> None:
        self.lifecycle.update_portfolio_allocation(
            portfolio_id, slot, new_percentage, self.context.caller
        )

    def rebalance_portfolio(self, portfolio_id: int) -> None:
        self.lifecycle.rebalance_portfolio(portfolio_id, self.context.caller)

    # --- Queries ---

    def get_portfolio(self, portfolio_id: int) -> Optional[Portfolio]:
        return self.queries.get_portfolio(portfolio_id)

    def get_portfolio_asset(
        self, portfolio_id: int, slot: int
    ) -> Optional[PortfolioAsset]:
        return self.queries.get_portfolio_asset(portfolio_id, slot)

    def get_user_portfolios(self, owner: str) -> List[int]:
        return self.queries.get_owner_portfolios(owner)

    def calculate_rebalance_amounts(self, portfolio_id: int) -> RebalanceStatus:
        """Rebalance eligibility at the current height (no amounts are computed)."""
        return self.lifecycle.calculate_rebalance_eligibility(portfolio_id)

    def get_allocation_table(self, portfolio_id: int) -> pd.DataFrame:
        return self.queries.get_allocation_table(portfolio_id)

    def get_portfolio_count(self) -> int:
        return self.queries.get_portfolio_count()

    def get_protocol_fee(self) -> int:
        return self.queries.get_protocol_fee()

    def get_protocol_owner(self) -> Optional[str]:
        return self.queries.get_protocol_owner()

    def format_portfolio(self, portfolio_id: int) -> str:
        """Format a portfolio and its allocation as readable text.

        Returns:
            Multi-line summary, or a one-line notice if the portfolio is missing
        """
        portfolio = self.get_portfolio(portfolio_id)
        if portfolio is None:
            return f"Portfolio {portfolio_id} not found"

        status = self.calculate_rebalance_amounts(portfolio_id)
        table = self.get_allocation_table(portfolio_id)
        total = int(table["target_percentage"].sum()) if not table.empty else 0

        lines = [
            "=" * 60,
            f"PORTFOLIO {portfolio.portfolio_id}",
            "=" * 60,
            f"Owner:            {portfolio.owner}",
            f"Created at:       {portfolio.created_at}",
            f"Last rebalanced:  {portfolio.last_rebalanced}",
            f"Active:           {'yes' if portfolio.active else 'no'}",
            f"Total value:      {portfolio.total_value}",
            f"Needs rebalance:  {'yes' if status.needs_rebalance else 'no'}"
            f" ({status.blocks_since_rebalance} since last)",
            "-" * 60,
        ]
        for row in table.itertuples(index=False):
            lines.append(
                f"[{row.slot}] {row.asset_address:<24s} "
                f"{row.target_percentage:>6d} bps  ({row.target_weight:>7.2%})"
            )
        lines.append("-" * 60)
        lines.append(f"Target total:     {total} / {BASIS_POINTS_TOTAL} bps")
        return "\n".join(lines)
