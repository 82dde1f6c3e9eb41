"""SQLite record store implementation.

This module provides the DatabaseManager class, the SQLite-backed RecordStore
used by the ledger: connection management, table creation, transactions and
record persistence.
"""

import numbers
import sqlite3
import threading
import uuid
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional

import pandas as pd

from portfolio_ledger.data.base import RecordStore
from portfolio_ledger.portfolio.base import Portfolio, PortfolioAsset
from portfolio_ledger.utils.exceptions import StorageError
from portfolio_ledger.utils.logging import get_logger

logger = get_logger(__name__)

MEMORY_DB = ":memory:"

SQLITE_INT_MIN = -(2**63)
SQLITE_INT_MAX = 2**63 - 1


def _lookup_key(value) -> Optional[int]:
    """Return value as a plain int, or None when no stored row can match it."""
    if isinstance(value, numbers.Integral) and not isinstance(value, bool):
        value = int(value)
        if SQLITE_INT_MIN <= value <= SQLITE_INT_MAX:
            return value
    return None


class DatabaseManager(RecordStore):
    """Manages SQLite database interactions for the ledger.

    Connections are thread-local and run in autocommit mode. An in-memory
    database is opened as a named shared-cache URI so every thread sees the
    same tables. ``transaction()`` wraps a unit of work in BEGIN IMMEDIATE /
    COMMIT and rolls back on any exception. Nested ``transaction()`` blocks
    join the outermost one.

    Attributes:
        db_path: Path to the SQLite database file.
    """

    def __init__(self, db_path: str):
        """Initialize database manager.

        Args:
            db_path: Path to the SQLite database file, or ":memory:".
        """
        self.db_path = str(db_path)
        self._shared_memory = self.db_path == MEMORY_DB
        if self._shared_memory:
            self._target = f"file:ledger-{uuid.uuid4().hex}?mode=memory&cache=shared"
        else:
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
            self._target = self.db_path
        self._local = threading.local()
        self.create_tables()

    def _get_connection(self) -> sqlite3.Connection:
        """Get a thread-local database connection."""
        if not hasattr(self._local, "connection"):
            connection = sqlite3.connect(
                self._target, isolation_level=None, uri=self._shared_memory
            )
            connection.row_factory = sqlite3.Row
            connection.execute("PRAGMA foreign_keys=ON")
            self._local.connection = connection
            self._local.depth = 0
        return self._local.connection

    def create_tables(self) -> None:
        """Create necessary database tables if they don't exist."""
        schema_path = Path(__file__).parent / "schema.sql"
        try:
            with open(schema_path, "r", encoding="utf-8") as f:
                schema = f.read()

            self._get_connection().executescript(schema)
            logger.info(f"Database initialized at {self.db_path}")
        except (OSError, sqlite3.Error) as e:
            logger.error(f"Failed to create tables: {e}")
            raise StorageError(f"Database initialization failed: {e}") from e

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        conn = self._get_connection()
        if self._local.depth > 0:
            self._local.depth += 1
            try:
                yield conn
            finally:
                self._local.depth -= 1
            return

        try:
            conn.execute("BEGIN IMMEDIATE")
        except sqlite3.Error as e:
            raise StorageError(f"Failed to begin transaction: {e}") from e

        self._local.depth = 1
        try:
            yield conn
        except BaseException:
            conn.execute("ROLLBACK")
            logger.debug("Transaction rolled back")
            raise
        else:
            try:
                conn.execute("COMMIT")
            except sqlite3.Error as e:
                conn.execute("ROLLBACK")
                raise StorageError(f"Failed to commit transaction: {e}") from e
        finally:
            self._local.depth = 0

    def _execute(self, sql: str, params: tuple = ()) -> sqlite3.Cursor:
        try:
            return self._get_connection().execute(sql, params)
        except (sqlite3.Error, OverflowError) as e:
            logger.error(f"Query failed: {e}")
            raise StorageError(f"Database error: {e}") from e

    # --- Portfolios ---

    def get_portfolio(self, portfolio_id: int) -> Optional[Portfolio]:
        key = _lookup_key(portfolio_id)
        if key is None:
            return None
        row = self._execute(
            "SELECT * FROM portfolios WHERE portfolio_id = ?", (key,)
        ).fetchone()
        return Portfolio(**dict(row)) if row else None

    def save_portfolio(self, portfolio: Portfolio) -> None:
        self._execute(
            """INSERT INTO portfolios
            (portfolio_id, owner, created_at, last_rebalanced,
             total_value, active, token_count)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(portfolio_id) DO UPDATE SET
            last_rebalanced=excluded.last_rebalanced,
            total_value=excluded.total_value,
            active=excluded.active""",
            (
                portfolio.portfolio_id,
                portfolio.owner,
                portfolio.created_at,
                portfolio.last_rebalanced,
                portfolio.total_value,
                int(portfolio.active),
                portfolio.token_count,
            ),
        )

    # --- Assets ---

    def get_asset(self, portfolio_id: int, slot: int) -> Optional[PortfolioAsset]:
        keys = (_lookup_key(portfolio_id), _lookup_key(slot))
        if None in keys:
            return None
        row = self._execute(
            "SELECT * FROM portfolio_assets WHERE portfolio_id = ? AND slot = ?",
            keys,
        ).fetchone()
        return PortfolioAsset(**dict(row)) if row else None

    def get_assets(self, portfolio_id: int) -> List[PortfolioAsset]:
        key = _lookup_key(portfolio_id)
        if key is None:
            return []
        rows = self._execute(
            "SELECT * FROM portfolio_assets WHERE portfolio_id = ? ORDER BY slot",
            (key,),
        ).fetchall()
        return [PortfolioAsset(**dict(r)) for r in rows]

    def save_asset(self, asset: PortfolioAsset) -> None:
        self._execute(
            """INSERT INTO portfolio_assets
            (portfolio_id, slot, asset_address, target_percentage, current_amount)
            VALUES (?, ?, ?, ?, ?)
            ON CONFLICT(portfolio_id, slot) DO UPDATE SET
            asset_address=excluded.asset_address,
            target_percentage=excluded.target_percentage,
            current_amount=excluded.current_amount""",
            (
                asset.portfolio_id,
                asset.slot,
                asset.asset_address,
                asset.target_percentage,
                asset.current_amount,
            ),
        )

    def load_assets_frame(self, portfolio_id: int) -> pd.DataFrame:
        query = """
            SELECT slot, asset_address, target_percentage, current_amount
            FROM portfolio_assets
            WHERE portfolio_id = ?
            ORDER BY slot ASC
        """
        key = _lookup_key(portfolio_id)
        if key is None:
            return pd.DataFrame(
                columns=["slot", "asset_address", "target_percentage", "current_amount"]
            )
        try:
            return pd.read_sql_query(
                query, self._get_connection(), params=(key,)
            )
        except (sqlite3.Error, pd.errors.DatabaseError) as e:
            logger.error(f"Failed to load assets for portfolio {portfolio_id}: {e}")
            raise StorageError(f"Failed to load assets: {e}") from e

    # --- Owner index ---

    def get_owner_index(self, owner: str) -> List[int]:
        rows = self._execute(
            "SELECT portfolio_id FROM owner_index WHERE owner = ? ORDER BY position",
            (owner,),
        ).fetchall()
        return [r["portfolio_id"] for r in rows]

    def append_owner_index(self, owner: str, portfolio_id: int) -> None:
        self._execute(
            """INSERT INTO owner_index (owner, position, portfolio_id)
            VALUES (?, (SELECT COUNT(*) FROM owner_index WHERE owner = ?), ?)""",
            (owner, owner, portfolio_id),
        )

    # --- Ledger state ---

    def get_state(self, key: str) -> Optional[str]:
        row = self._execute(
            "SELECT value FROM ledger_state WHERE key = ?", (key,)
        ).fetchone()
        return row["value"] if row else None

    def set_state(self, key: str, value: str) -> None:
        self._execute(
            """INSERT INTO ledger_state (key, value) VALUES (?, ?)
            ON CONFLICT(key) DO UPDATE SET value=excluded.value""",
            (key, str(value)),
        )

    def close(self):
        """Close the thread-local connection."""
        if hasattr(self._local, "connection"):
            self._local.connection.close()
            del self._local.connection
