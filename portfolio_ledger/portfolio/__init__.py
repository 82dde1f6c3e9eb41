"""Portfolio Layer.

This layer holds the ledger's records and the rules that keep them valid.

Components:
- Portfolio, PortfolioAsset, RebalanceStatus: stored records and projections
- validation: pure percentage, token-count and slot checks
- PortfolioLifecycleManager (lifecycle): create / update / rebalance
- OwnerIndexManager (owner_index): bounded per-owner portfolio lists
- PortfolioQueries (queries): read-only lookups

Only records and validators are re-exported here; import the managers from
their modules.
"""

from portfolio_ledger.portfolio.base import (
    BASIS_POINTS_TOTAL,
    MAX_TOKENS_PER_PORTFOLIO,
    MAX_USER_PORTFOLIOS,
    MIN_TOKENS_PER_PORTFOLIO,
    REBALANCE_COOLDOWN,
    Portfolio,
    PortfolioAsset,
    RebalanceStatus,
)
from portfolio_ledger.portfolio.validation import (
    validate_percentage,
    validate_percentage_set,
    validate_token_count,
    validate_token_id,
)

__all__ = [
    "BASIS_POINTS_TOTAL",
    "MAX_TOKENS_PER_PORTFOLIO",
    "MAX_USER_PORTFOLIOS",
    "MIN_TOKENS_PER_PORTFOLIO",
    "REBALANCE_COOLDOWN",
    "Portfolio",
    "PortfolioAsset",
    "RebalanceStatus",
    "validate_percentage",
    "validate_percentage_set",
    "validate_token_count",
    "validate_token_id",
]
