"""SQLite-backed coin balances and inventories."""

from __future__ import annotations

import asyncio
import logging
import sqlite3
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, List, Optional, Tuple, Union

from .errors import InsufficientFundsError
from .models import InventoryEntry, UserAccount

logger = logging.getLogger("lootbot.ledger")


class LedgerTransaction:
    """Mutation primitives bound to an open ``BEGIN IMMEDIATE`` scope.

    Only valid inside :meth:`Ledger.transaction`; the ledger lock is already
    held, so these calls are synchronous and must not await.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def ensure_user(self, user_id: str, username: Optional[str] = None) -> None:
        self._conn.execute(
            "INSERT INTO users (id, username, coins) VALUES (?, ?, 0) ON CONFLICT(id) DO NOTHING",
            (user_id, username),
        )
        if username is not None:
            self._conn.execute("UPDATE users SET username = ? WHERE id = ?", (username, user_id))

    def get_account(self, user_id: str) -> Optional[UserAccount]:
        row = self._conn.execute(
            "SELECT id, username, coins FROM users WHERE id = ?",
            (user_id,),
        ).fetchone()
        if row is None:
            return None
        return UserAccount(user_id=row[0], username=row[1], coins=row[2])

    def get_balance(self, user_id: str) -> int:
        row = self._conn.execute("SELECT coins FROM users WHERE id = ?", (user_id,)).fetchone()
        return row[0] if row else 0

    def add_coins(self, user_id: str, delta: int) -> int:
        self.ensure_user(user_id)
        if delta < 0:
            success, balance = self.try_subtract_coins(user_id, -delta)
            if not success:
                raise InsufficientFundsError(balance, -delta)
            return balance
        self._conn.execute("UPDATE users SET coins = coins + ? WHERE id = ?", (delta, user_id))
        return self.get_balance(user_id)

    def try_subtract_coins(self, user_id: str, amount: int) -> Tuple[bool, int]:
        if amount < 0:
            raise ValueError("amount must not be negative")
        cur = self._conn.execute(
            "UPDATE users SET coins = coins - ? WHERE id = ? AND coins >= ?",
            (amount, user_id, amount),
        )
        return cur.rowcount == 1, self.get_balance(user_id)

    def add_to_inventory(self, user_id: str, item_id: str, qty: int) -> None:
        if qty <= 0:
            raise ValueError("qty must be positive")
        self._conn.execute(
            """
            INSERT INTO inventory (user_id, item_id, qty) VALUES (?, ?, ?)
            ON CONFLICT(user_id, item_id) DO UPDATE SET qty = inventory.qty + excluded.qty
            """,
            (user_id, item_id, qty),
        )

    def get_item_quantity(self, user_id: str, item_id: str) -> int:
        row = self._conn.execute(
            "SELECT qty FROM inventory WHERE user_id = ? AND item_id = ?",
            (user_id, item_id),
        ).fetchone()
        return row[0] if row else 0

    def remove_from_inventory(self, user_id: str, item_id: str, qty: int) -> bool:
        if qty <= 0:
            raise ValueError("qty must be positive")
        cur = self._conn.execute(
            "UPDATE inventory SET qty = qty - ? WHERE user_id = ? AND item_id = ? AND qty >= ?",
            (qty, user_id, item_id, qty),
        )
        if cur.rowcount != 1:
            return False
        self._conn.execute(
            "DELETE FROM inventory WHERE user_id = ? AND item_id = ? AND qty <= 0",
            (user_id, item_id),
        )
        return True

    def list_inventory(self, user_id: str) -> List[InventoryEntry]:
        cur = self._conn.execute(
            """
            SELECT item_id, qty FROM inventory
            WHERE user_id = ? AND qty > 0
            ORDER BY item_id COLLATE NOCASE
            """,
            (user_id,),
        )
        return [InventoryEntry(item_id=row[0], quantity=row[1]) for row in cur.fetchall()]


class Ledger:
    """Owns the connection and serializes every access through one lock."""

    def __init__(self, db_path: Union[str, Path]) -> None:
        self._db_path = db_path
        self._conn = self._connect_db()
        self._lock = asyncio.Lock()
        self._create_tables()

    def _connect_db(self) -> sqlite3.Connection:
        if isinstance(self._db_path, Path):
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(str(self._db_path), isolation_level=None, check_same_thread=False)
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    def _create_tables(self) -> None:
        with self._conn:
            self._conn.execute(
                """
                CREATE TABLE IF NOT EXISTS users (
                    id TEXT PRIMARY KEY,
                    username TEXT,
                    coins INTEGER NOT NULL DEFAULT 0 CHECK (coins >= 0)
                )
                """
            )
            self._conn.execute(
                """
                CREATE TABLE IF NOT EXISTS inventory (
                    user_id TEXT NOT NULL,
                    item_id TEXT NOT NULL,
                    qty INTEGER NOT NULL DEFAULT 0 CHECK (qty >= 0),
                    PRIMARY KEY (user_id, item_id)
                )
                """
            )

    def close(self) -> None:
        self._conn.close()

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[LedgerTransaction]:
        """All-or-nothing scope: commit on clean exit, roll back on any error."""
        async with self._lock:
            self._conn.execute("BEGIN IMMEDIATE")
            try:
                yield LedgerTransaction(self._conn)
            except BaseException:
                if self._conn.in_transaction:
                    self._conn.execute("ROLLBACK")
                raise
            else:
                self._conn.execute("COMMIT")

    # Single-operation helpers -----------------------------------------

    async def ensure_user(self, user_id: str, username: Optional[str] = None) -> None:
        async with self.transaction() as txn:
            txn.ensure_user(user_id, username)

    async def get_account(self, user_id: str) -> Optional[UserAccount]:
        async with self._lock:
            return LedgerTransaction(self._conn).get_account(user_id)

    async def get_balance(self, user_id: str) -> int:
        async with self._lock:
            return LedgerTransaction(self._conn).get_balance(user_id)

    async def add_coins(self, user_id: str, delta: int) -> int:
        async with self.transaction() as txn:
            return txn.add_coins(user_id, delta)

    async def try_subtract_coins(self, user_id: str, amount: int) -> Tuple[bool, int]:
        async with self.transaction() as txn:
            return txn.try_subtract_coins(user_id, amount)

    async def add_to_inventory(self, user_id: str, item_id: str, qty: int) -> None:
        async with self.transaction() as txn:
            txn.add_to_inventory(user_id, item_id, qty)

    async def get_item_quantity(self, user_id: str, item_id: str) -> int:
        async with self._lock:
            return LedgerTransaction(self._conn).get_item_quantity(user_id, item_id)

    async def remove_from_inventory(self, user_id: str, item_id: str, qty: int) -> bool:
        async with self.transaction() as txn:
            return txn.remove_from_inventory(user_id, item_id, qty)

    async def list_inventory(self, user_id: str) -> List[InventoryEntry]:
        async with self._lock:
            return LedgerTransaction(self._conn).list_inventory(user_id)


__all__ = ["Ledger", "LedgerTransaction"]
