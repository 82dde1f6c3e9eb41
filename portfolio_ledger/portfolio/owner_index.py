"""Owner index: the bounded, ordered list of portfolio IDs per owner."""

from typing import List

from portfolio_ledger.data.base import RecordStore
from portfolio_ledger.portfolio.base import MAX_USER_PORTFOLIOS
from portfolio_ledger.utils.exceptions import IndexCapacityExceededError
from portfolio_ledger.utils.logging import get_logger

logger = get_logger(__name__)


class OwnerIndexManager:
    """Maintains owner -> portfolio ID lists, capped at MAX_USER_PORTFOLIOS.

    Entries are only ever appended; insertion order is preserved and there is
    no removal.
    """

    def __init__(self, store: RecordStore, capacity: int = MAX_USER_PORTFOLIOS):
        self.store = store
        self.capacity = capacity

    def get_owner_index(self, owner: str) -> List[int]:
        return self.store.get_owner_index(owner)

    def has_capacity(self, owner: str) -> bool:
        return len(self.store.get_owner_index(owner)) < self.capacity

    def add_to_owner_index(self, owner: str, portfolio_id: int) -> None:
        """Append a portfolio ID to the owner's index.

        Args:
            owner: Owner identity
            portfolio_id: Newly created portfolio ID

        Raises:
            IndexCapacityExceededError: If the owner already holds
                ``capacity`` entries
        """
        current = self.store.get_owner_index(owner)
        if len(current) >= self.capacity:
            raise IndexCapacityExceededError(
                f"Owner {owner} already holds {len(current)} portfolios "
                f"(max {self.capacity})"
            )

        self.store.append_owner_index(owner, portfolio_id)
        logger.debug(
            "Indexed portfolio %d for %s (%d/%d)",
            portfolio_id,
            owner,
            len(current) + 1,
            self.capacity,
        )
