"""Portfolio lifecycle manager.

This module orchestrates every state transition of the ledger:

1. create_portfolio: validate the asset set, then write the portfolio, its
   assets, the owner index entry and the new counter in one transaction
2. update_portfolio_allocation: owner-only change of one asset's weight
3. rebalance_portfolio: owner-only timestamp of a rebalance
4. initialize: protocol owner handoff

Every precondition failure raises a PortfolioError subclass before anything
is written, or inside the store transaction so the transaction rolls back.
No trade execution happens here; rebalancing only records that it occurred.
"""

from typing import Iterable, Optional, Tuple

from portfolio_ledger.data.base import ExecutionContext, RecordStore
from portfolio_ledger.portfolio.base import (
    BASIS_POINTS_TOTAL,
    REBALANCE_COOLDOWN,
    STATE_PORTFOLIO_COUNTER,
    STATE_PROTOCOL_FEE,
    STATE_PROTOCOL_OWNER,
    Portfolio,
    PortfolioAsset,
    RebalanceStatus,
)
from portfolio_ledger.portfolio.owner_index import OwnerIndexManager
from portfolio_ledger.portfolio.validation import (
    validate_percentage,
    validate_percentage_set,
    validate_token_count,
    validate_token_id,
)
from portfolio_ledger.utils.exceptions import (
    InactivePortfolioError,
    InvalidPercentageError,
    InvalidTokenCountError,
    InvalidTokenError,
    InvalidTokenIdError,
    LengthMismatchError,
    NotAuthorizedError,
    PortfolioError,
    PortfolioNotFoundError,
)
from portfolio_ledger.utils.logging import get_logger, log_with_context
from portfolio_ledger.utils.logging_enhanced import LedgerEventLogger, LedgerEventType

logger = get_logger(__name__)


class PortfolioLifecycleManager:
    """Validates and applies portfolio state transitions.

    The caller identity is passed explicitly to every mutating operation; the
    current height is read from the clock.

    Example:
        >>> manager = PortfolioLifecycleManager(store, clock)
        >>> manager.bootstrap(protocol_owner="deployer", protocol_fee_bps=25)
        >>> pid = manager.create_portfolio([("BTC", 6000), ("ETH", 4000)], "alice")
        >>> manager.rebalance_portfolio(pid, "alice")
    """

    def __init__(
        self,
        store: RecordStore,
        clock: ExecutionContext,
        owner_index: Optional[OwnerIndexManager] = None,
        rebalance_cooldown: int = REBALANCE_COOLDOWN,
        event_logger: Optional[LedgerEventLogger] = None,
    ):
        self.store = store
        self.clock = clock
        self.owner_index = owner_index or OwnerIndexManager(store)
        self.rebalance_cooldown = rebalance_cooldown
        self.event_logger = event_logger

    # --- Protocol state ---

    def bootstrap(self, protocol_owner: str, protocol_fee_bps: int) -> None:
        """Seed ledger state on first start.

        The counter and protocol owner are written only if unset, so an
        existing deployment keeps its owner. The fee is a static configuration
        value and is always overwritten.
        """
        with self.store.transaction():
            if self.store.get_state(STATE_PORTFOLIO_COUNTER) is None:
                self.store.set_state(STATE_PORTFOLIO_COUNTER, "0")
            if self.store.get_state(STATE_PROTOCOL_OWNER) is None:
                self.store.set_state(STATE_PROTOCOL_OWNER, protocol_owner)
                logger.info("Protocol owner seeded: %s", protocol_owner)
            self.store.set_state(STATE_PROTOCOL_FEE, str(protocol_fee_bps))

    def _portfolio_counter(self) -> int:
        return int(self.store.get_state(STATE_PORTFOLIO_COUNTER) or 0)

    def initialize(self, new_owner: str, caller: str) -> None:
        """Hand protocol ownership to a different identity.

        Args:
            new_owner: Identity to become protocol owner
            caller: Current actor; must be the protocol owner

        Raises:
            NotAuthorizedError: If caller is not the protocol owner, or
                new_owner is the caller
        """
        try:
            with self.store.transaction():
                current = self.store.get_state(STATE_PROTOCOL_OWNER)
                if caller != current:
                    raise NotAuthorizedError(
                        f"{caller} is not the protocol owner"
                    )
                if new_owner == caller:
                    raise NotAuthorizedError(
                        "New protocol owner must differ from the current owner"
                    )
                self.store.set_state(STATE_PROTOCOL_OWNER, new_owner)
        except PortfolioError as e:
            self.record_rejection("initialize", e, caller=caller, new_owner=new_owner)
            raise

        log_with_context(
            logger, "info", "Protocol owner changed",
            previous=caller, new_owner=new_owner,
        )
        self._event(
            LedgerEventType.PROTOCOL_OWNER_CHANGED,
            previous_owner=caller,
            new_owner=new_owner,
        )

    # --- Mutations ---

    def create_portfolio(
        self,
        assets: Iterable[Tuple[str, int]],
        caller: str,
    ) -> int:
        """Create a portfolio from (asset_address, target_percentage) pairs.

        Args:
            assets: 2 to 10 pairs whose percentages sum to exactly 10000
            caller: Identity that will own the portfolio

        Returns:
            The new portfolio ID

        Raises:
            InvalidTokenCountError: Fewer than 2 or more than 10 assets
            LengthMismatchError: An entry is not an (address, percentage) pair
            InvalidTokenError: An asset address is empty
            InvalidPercentageError: A percentage is out of bounds or the
                percentages do not sum to 10000
            UserStorageFullError: The caller already owns 20 portfolios
        """
        try:
            pairs = self._unpack_assets(assets)
            portfolio_id = self._create(pairs, caller)
        except PortfolioError as e:
            self.record_rejection("create_portfolio", e, caller=caller)
            raise

        log_with_context(
            logger, "info", "Portfolio created",
            portfolio_id=portfolio_id, owner=caller, token_count=len(pairs),
        )
        self._event(
            LedgerEventType.PORTFOLIO_CREATED,
            portfolio_id=portfolio_id,
            owner=caller,
            height=self.clock.height,
            assets=[{"asset": a, "target_percentage": p} for a, p in pairs],
        )
        return portfolio_id

    def _unpack_assets(self, assets: Iterable[Tuple[str, int]]) -> list:
        pairs = []
        for entry in assets:
            try:
                address, percentage = entry
            except (TypeError, ValueError) as e:
                raise LengthMismatchError(
                    f"Expected (asset_address, percentage) pair, got {entry!r}"
                ) from e
            pairs.append((address, percentage))

        if not validate_token_count(len(pairs)):
            raise InvalidTokenCountError(
                f"Portfolio must hold 2 to 10 assets, got {len(pairs)}"
            )

        for address, _ in pairs:
            if not isinstance(address, str) or not address.strip():
                raise InvalidTokenError(f"Invalid asset address: {address!r}")

        percentages = [p for _, p in pairs]
        if not validate_percentage_set(percentages, len(pairs)):
            raise InvalidPercentageError(
                f"Percentages must each be in [0, {BASIS_POINTS_TOTAL}] "
                f"and sum to {BASIS_POINTS_TOTAL}, got {percentages}"
            )
        return [(address, int(percentage)) for address, percentage in pairs]

    def _create(self, pairs: list, caller: str) -> int:
        height = self.clock.height
        with self.store.transaction():
            portfolio_id = self._portfolio_counter() + 1

            self.store.save_portfolio(
                Portfolio(
                    portfolio_id=portfolio_id,
                    owner=caller,
                    created_at=height,
                    last_rebalanced=height,
                    total_value=0,
                    active=True,
                    token_count=len(pairs),
                )
            )
            for slot, (address, percentage) in enumerate(pairs):
                self.store.save_asset(
                    PortfolioAsset(
                        portfolio_id=portfolio_id,
                        slot=slot,
                        asset_address=address,
                        target_percentage=percentage,
                        current_amount=0,
                    )
                )

            # Raises UserStorageFull at capacity, rolling back the writes above
            self.owner_index.add_to_owner_index(caller, portfolio_id)
            self.store.set_state(STATE_PORTFOLIO_COUNTER, str(portfolio_id))

        return portfolio_id

    def update_portfolio_allocation(
        self,
        portfolio_id: int,
        slot: int,
        new_percentage: int,
        caller: str,
    ) -> None:
        """Replace the target percentage of one asset.

        Only the new value's own bounds are checked; the portfolio total is
        not re-validated against 10000.

        Raises:
            PortfolioNotFoundError: No portfolio under portfolio_id
            NotAuthorizedError: caller is not the portfolio owner
            InvalidPercentageError: new_percentage outside [0, 10000]
            InvalidTokenIdError: slot does not hold an asset
        """
        try:
            with self.store.transaction():
                portfolio = self._require_owned(portfolio_id, caller)

                if not validate_percentage(new_percentage):
                    raise InvalidPercentageError(
                        f"Percentage must be in [0, {BASIS_POINTS_TOTAL}], "
                        f"got {new_percentage}"
                    )
                if not validate_token_id(portfolio, slot):
                    raise InvalidTokenIdError(
                        f"Slot {slot} is not valid for portfolio {portfolio_id} "
                        f"({portfolio.token_count} assets)"
                    )

                asset = self.store.get_asset(portfolio_id, slot)
                if asset is None:
                    raise InvalidTokenIdError(
                        f"No asset at slot {slot} of portfolio {portfolio_id}"
                    )

                previous = asset.target_percentage
                asset.target_percentage = int(new_percentage)
                self.store.save_asset(asset)

                total = sum(
                    a.target_percentage for a in self.store.get_assets(portfolio_id)
                )
        except PortfolioError as e:
            self.record_rejection(
                "update_portfolio_allocation", e,
                caller=caller, portfolio_id=portfolio_id, slot=slot,
                new_percentage=new_percentage,
            )
            raise

        if total != BASIS_POINTS_TOTAL:
            logger.debug(
                "Portfolio %d target total is now %d bps", portfolio_id, total
            )
        log_with_context(
            logger, "info", "Allocation updated",
            portfolio_id=portfolio_id, slot=slot,
            previous=previous, new=new_percentage,
        )
        self._event(
            LedgerEventType.ALLOCATION_UPDATED,
            portfolio_id=portfolio_id,
            slot=slot,
            previous_percentage=previous,
            new_percentage=new_percentage,
            caller=caller,
        )

    def rebalance_portfolio(self, portfolio_id: int, caller: str) -> None:
        """Record that the owner rebalanced the portfolio at the current height.

        Raises:
            PortfolioNotFoundError: No portfolio under portfolio_id
            NotAuthorizedError: caller is not the portfolio owner
            InactivePortfolioError: The portfolio is not active
        """
        height = self.clock.height
        try:
            with self.store.transaction():
                portfolio = self._require_owned(portfolio_id, caller)
                if not portfolio.active:
                    raise InactivePortfolioError(
                        f"Portfolio {portfolio_id} is not active"
                    )

                previous = portfolio.last_rebalanced
                portfolio.last_rebalanced = height
                self.store.save_portfolio(portfolio)
        except PortfolioError as e:
            self.record_rejection(
                "rebalance_portfolio", e,
                caller=caller, portfolio_id=portfolio_id,
            )
            raise

        log_with_context(
            logger, "info", "Portfolio rebalanced",
            portfolio_id=portfolio_id, height=height, previous=previous,
        )
        self._event(
            LedgerEventType.PORTFOLIO_REBALANCED,
            portfolio_id=portfolio_id,
            height=height,
            previous_rebalance=previous,
        )

    # --- Read-only ---

    def calculate_rebalance_eligibility(self, portfolio_id: int) -> RebalanceStatus:
        """Report whether more than the cooldown has elapsed since the last rebalance.

        Raises:
            PortfolioNotFoundError: No portfolio under portfolio_id
        """
        portfolio = self.store.get_portfolio(portfolio_id)
        if portfolio is None:
            raise PortfolioNotFoundError(f"Portfolio {portfolio_id} not found")

        elapsed = self.clock.height - portfolio.last_rebalanced
        return RebalanceStatus(
            portfolio_id=portfolio_id,
            total_value=portfolio.total_value,
            needs_rebalance=elapsed > self.rebalance_cooldown,
            blocks_since_rebalance=elapsed,
        )

    # --- Helpers ---

    def _require_owned(self, portfolio_id: int, caller: str) -> Portfolio:
        portfolio = self.store.get_portfolio(portfolio_id)
        if portfolio is None:
            raise PortfolioNotFoundError(f"Portfolio {portfolio_id} not found")
        if caller != portfolio.owner:
            raise NotAuthorizedError(
                f"{caller} does not own portfolio {portfolio_id}"
            )
        return portfolio

    def record_rejection(self, operation: str, error: PortfolioError, **data) -> None:
        """Log a rejected operation to the module log and the event log."""
        logger.warning(
            "%s rejected: %s (%s)", operation, error, error.kind.name
        )
        if self.event_logger is not None:
            self.event_logger.log_rejection(operation, error, **data)

    def _event(self, event_type: LedgerEventType, **data) -> None:
        if self.event_logger is not None:
            self.event_logger.log_event(event_type, **data)
