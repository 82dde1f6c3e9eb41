"""Portfolio records and protocol constants.

This module defines the records the ledger persists. A portfolio is a set of
2 to 10 weighted assets owned by one identity; weights are integer basis
points that sum to exactly 10000 when the portfolio is created.

Records:
- Portfolio: metadata keyed by sequential portfolio ID
- PortfolioAsset: one weighted asset, keyed by (portfolio_id, slot)
- RebalanceStatus: read-only rebalance eligibility projection

Business rules (percentage sums, ownership, cooldown) are enforced by the
validation engine and the lifecycle manager, not by these records.
"""

from dataclasses import dataclass

from portfolio_ledger.utils.exceptions import MaxTokensExceededError

# 10000 basis points = 100%
BASIS_POINTS_TOTAL = 10000
MIN_TOKENS_PER_PORTFOLIO = 2
MAX_TOKENS_PER_PORTFOLIO = 10
MAX_USER_PORTFOLIOS = 20
REBALANCE_COOLDOWN = 144

# Ledger state scalar keys
STATE_PORTFOLIO_COUNTER = "portfolio_counter"
STATE_PROTOCOL_FEE = "protocol_fee_bps"
STATE_PROTOCOL_OWNER = "protocol_owner"


@dataclass
class Portfolio:
    """A stored portfolio.

    Attributes:
        portfolio_id: Sequential identifier, starting at 1
        owner: Identity of the creating actor (immutable)
        created_at: Height at creation (immutable)
        last_rebalanced: Height of the last successful rebalance
        total_value: Aggregate value; not computed by the ledger
        active: Whether the portfolio may be rebalanced
        token_count: Number of assets, fixed at creation
    """

    portfolio_id: int
    owner: str
    created_at: int
    last_rebalanced: int
    total_value: int = 0
    active: bool = True
    token_count: int = 0

    def __post_init__(self):
        """Validate record fields."""
        if self.portfolio_id < 1:
            raise ValueError(f"portfolio_id must be >= 1, got {self.portfolio_id}")
        if self.created_at < 0 or self.last_rebalanced < 0:
            raise ValueError("heights must be non-negative")
        if self.total_value < 0:
            raise ValueError(
                f"total_value must be non-negative, got {self.total_value}"
            )
        self.active = bool(self.active)


@dataclass
class PortfolioAsset:
    """One weighted asset within a portfolio.

    Attributes:
        portfolio_id: Owning portfolio
        slot: Zero-based position, fixed at creation
        asset_address: External identifier of the asset/token
        target_percentage: Target weight in basis points
        current_amount: Held quantity; not mutated by the ledger
    """

    portfolio_id: int
    slot: int
    asset_address: str
    target_percentage: int
    current_amount: int = 0

    def __post_init__(self):
        """Validate record fields."""
        if self.slot < 0:
            raise ValueError(f"slot must be non-negative, got {self.slot}")
        if self.slot >= MAX_TOKENS_PER_PORTFOLIO:
            raise MaxTokensExceededError(
                f"slot {self.slot} exceeds the {MAX_TOKENS_PER_PORTFOLIO}-asset maximum"
            )
        if self.current_amount < 0:
            raise ValueError(
                f"current_amount must be non-negative, got {self.current_amount}"
            )

    @property
    def target_weight(self) -> float:
        """Target percentage as a fraction of 1.0."""
        return self.target_percentage / BASIS_POINTS_TOTAL


@dataclass(frozen=True)
class RebalanceStatus:
    """Rebalance eligibility of a portfolio at a given height.

    Attributes:
        portfolio_id: Portfolio the status refers to
        total_value: Stored aggregate value
        needs_rebalance: True when more than the cooldown has elapsed
        blocks_since_rebalance: Heights elapsed since the last rebalance
    """

    portfolio_id: int
    total_value: int
    needs_rebalance: bool
    blocks_since_rebalance: int = 0
