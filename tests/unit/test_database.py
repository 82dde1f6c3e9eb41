"""Unit tests for DatabaseManager."""

import threading
from pathlib import Path

import pandas as pd
import pytest

from portfolio_ledger.data.storage.database import DatabaseManager
from portfolio_ledger.portfolio.base import Portfolio, PortfolioAsset
from portfolio_ledger.utils.exceptions import StorageError


class TestDatabaseManager:
    """Test cases for DatabaseManager."""

    @pytest.fixture
    def db_manager(self, tmp_path: Path) -> DatabaseManager:
        """Create DatabaseManager instance with temp DB."""
        manager = DatabaseManager(str(tmp_path / "data" / "ledger.db"))
        yield manager
        manager.close()

    @pytest.fixture
    def portfolio(self) -> Portfolio:
        return Portfolio(
            portfolio_id=1, owner="alice", created_at=10, last_rebalanced=10, token_count=2
        )

    def save_two_assets(self, db_manager: DatabaseManager) -> None:
        db_manager.save_asset(PortfolioAsset(1, 0, "BTC", 6000))
        db_manager.save_asset(PortfolioAsset(1, 1, "ETH", 4000))

    def test_database_initialization(self, db_manager: DatabaseManager, tmp_path: Path) -> None:
        """Test database file and tables are created."""
        assert Path(db_manager.db_path).exists()
        tables = {
            row["name"]
            for row in db_manager._get_connection().execute(
                "SELECT name FROM sqlite_master WHERE type='table'"
            )
        }
        assert {"portfolios", "portfolio_assets", "owner_index", "ledger_state"} <= tables

    def test_save_and_get_portfolio(
        self, db_manager: DatabaseManager, portfolio: Portfolio
    ) -> None:
        """Test a portfolio round-trips through storage."""
        db_manager.save_portfolio(portfolio)

        assert db_manager.get_portfolio(1) == portfolio

    def test_get_missing_portfolio(self, db_manager: DatabaseManager) -> None:
        """Test a missing portfolio returns None."""
        assert db_manager.get_portfolio(99) is None

    def test_save_portfolio_keeps_immutable_fields(
        self, db_manager: DatabaseManager, portfolio: Portfolio
    ) -> None:
        """Test re-saving a portfolio never rewrites owner, created_at or token_count."""
        db_manager.save_portfolio(portfolio)

        changed = Portfolio(
            portfolio_id=1, owner="mallory", created_at=99, last_rebalanced=200, token_count=5
        )
        db_manager.save_portfolio(changed)

        stored = db_manager.get_portfolio(1)
        assert stored.owner == "alice"
        assert stored.created_at == 10
        assert stored.token_count == 2
        assert stored.last_rebalanced == 200

    def test_assets_ordered_by_slot(
        self, db_manager: DatabaseManager, portfolio: Portfolio
    ) -> None:
        """Test assets are returned in slot order."""
        db_manager.save_portfolio(portfolio)
        db_manager.save_asset(PortfolioAsset(1, 1, "ETH", 4000))
        db_manager.save_asset(PortfolioAsset(1, 0, "BTC", 6000))

        assets = db_manager.get_assets(1)
        assert [a.slot for a in assets] == [0, 1]
        assert db_manager.get_asset(1, 1).asset_address == "ETH"
        assert db_manager.get_asset(1, 2) is None

    def test_load_assets_frame(
        self, db_manager: DatabaseManager, portfolio: Portfolio
    ) -> None:
        """Test assets load into a DataFrame."""
        db_manager.save_portfolio(portfolio)
        self.save_two_assets(db_manager)

        frame = db_manager.load_assets_frame(1)

        assert isinstance(frame, pd.DataFrame)
        assert list(frame.columns) == [
            "slot", "asset_address", "target_percentage", "current_amount"
        ]
        assert frame["target_percentage"].tolist() == [6000, 4000]

    def test_load_assets_frame_empty(self, db_manager: DatabaseManager) -> None:
        """Test a missing portfolio yields an empty frame."""
        assert db_manager.load_assets_frame(42).empty

    def test_owner_index_preserves_order(
        self, db_manager: DatabaseManager, portfolio: Portfolio
    ) -> None:
        """Test owner index entries keep insertion order."""
        for pid in (1, 2, 3):
            db_manager.save_portfolio(
                Portfolio(portfolio_id=pid, owner="alice", created_at=0,
                          last_rebalanced=0, token_count=2)
            )
        for pid in (3, 1, 2):
            db_manager.append_owner_index("alice", pid)

        assert db_manager.get_owner_index("alice") == [3, 1, 2]
        assert db_manager.get_owner_index("bob") == []

    def test_state_roundtrip(self, db_manager: DatabaseManager) -> None:
        """Test ledger state scalars are stored as text."""
        assert db_manager.get_state("portfolio_counter") is None

        db_manager.set_state("portfolio_counter", 3)
        db_manager.set_state("portfolio_counter", 4)

        assert db_manager.get_state("portfolio_counter") == "4"

    def test_transaction_commits(
        self, db_manager: DatabaseManager, portfolio: Portfolio
    ) -> None:
        """Test writes inside a transaction persist after it exits."""
        with db_manager.transaction():
            db_manager.save_portfolio(portfolio)
            # Read-your-writes inside the transaction
            assert db_manager.get_portfolio(1) is not None

        assert db_manager.get_portfolio(1) == portfolio

    def test_transaction_rolls_back_on_error(
        self, db_manager: DatabaseManager, portfolio: Portfolio
    ) -> None:
        """Test an exception discards every write of the transaction."""
        with pytest.raises(RuntimeError):
            with db_manager.transaction():
                db_manager.save_portfolio(portfolio)
                self.save_two_assets(db_manager)
                db_manager.set_state("portfolio_counter", 1)
                raise RuntimeError("abort")

        assert db_manager.get_portfolio(1) is None
        assert db_manager.get_assets(1) == []
        assert db_manager.get_state("portfolio_counter") is None

    def test_nested_transaction_rolls_back_outer(
        self, db_manager: DatabaseManager, portfolio: Portfolio
    ) -> None:
        """Test a failure in a nested block aborts the outer transaction."""
        with pytest.raises(RuntimeError):
            with db_manager.transaction():
                db_manager.save_portfolio(portfolio)
                with db_manager.transaction():
                    db_manager.set_state("portfolio_counter", 1)
                    raise RuntimeError("inner")

        assert db_manager.get_portfolio(1) is None
        assert db_manager.get_state("portfolio_counter") is None

    def test_integrity_error_wrapped(self, db_manager: DatabaseManager) -> None:
        """Test SQLite errors surface as StorageError."""
        # owner_index references portfolios; foreign keys are enforced
        with pytest.raises(StorageError, match="Database error"):
            db_manager.append_owner_index("alice", 999)

    def test_persists_across_instances(
        self, tmp_path: Path, portfolio: Portfolio
    ) -> None:
        """Test data survives reopening the database file."""
        path = str(tmp_path / "ledger.db")
        first = DatabaseManager(path)
        first.save_portfolio(portfolio)
        first.close()

        second = DatabaseManager(path)
        assert second.get_portfolio(1) == portfolio
        second.close()

    def test_in_memory_database(self, portfolio: Portfolio) -> None:
        """Test the store works without a file."""
        manager = DatabaseManager(":memory:")
        manager.save_portfolio(portfolio)

        assert manager.get_portfolio(1) == portfolio
        manager.close()

    def test_in_memory_database_shared_across_threads(self, portfolio: Portfolio) -> None:
        """Test a worker thread sees the tables and rows of an in-memory store."""
        manager = DatabaseManager(":memory:")
        manager.save_portfolio(portfolio)
        results = []

        def worker() -> None:
            results.append(manager.get_portfolio(1))
            results.append(manager.get_portfolio(2))
            manager.close()

        thread = threading.Thread(target=worker)
        thread.start()
        thread.join()

        assert results == [portfolio, None]
        manager.close()

    def test_separate_in_memory_stores_are_isolated(self, portfolio: Portfolio) -> None:
        """Test two in-memory stores do not share records."""
        first = DatabaseManager(":memory:")
        second = DatabaseManager(":memory:")
        first.save_portfolio(portfolio)

        assert second.get_portfolio(1) is None
        first.close()
        second.close()

    @pytest.mark.parametrize("key", [2**63, 2**64, -(2**63) - 1])
    def test_keys_outside_integer_range_not_found(
        self, db_manager: DatabaseManager, portfolio: Portfolio, key: int
    ) -> None:
        """Test lookups with keys SQLite cannot store behave as absent records."""
        db_manager.save_portfolio(portfolio)
        self.save_two_assets(db_manager)

        assert db_manager.get_portfolio(key) is None
        assert db_manager.get_asset(1, key) is None
        assert db_manager.get_asset(key, 0) is None
        assert db_manager.get_assets(key) == []
        assert db_manager.load_assets_frame(key).empty

    def test_lookup_accepts_pandas_integers(
        self, db_manager: DatabaseManager, portfolio: Portfolio
    ) -> None:
        """Test IDs and slots read back from a DataFrame work as lookup keys."""
        db_manager.save_portfolio(portfolio)
        self.save_two_assets(db_manager)
        slot = db_manager.load_assets_frame(1)["slot"].iloc[1]

        assert db_manager.get_portfolio(pd.Series([1]).iloc[0]) == portfolio
        assert db_manager.get_asset(1, slot).asset_address == "ETH"

    def test_overflow_on_write_wrapped(
        self, db_manager: DatabaseManager, portfolio: Portfolio
    ) -> None:
        """Test an out-of-range value on write surfaces as StorageError."""
        db_manager.save_portfolio(portfolio)

        with pytest.raises(StorageError, match="Database error"):
            db_manager.save_asset(PortfolioAsset(1, 0, "BTC", 6000, current_amount=2**64))
