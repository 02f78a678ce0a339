"""Entry points the command layer calls: purchases, item use, balances."""

from __future__ import annotations

import logging
import random
import sqlite3
from typing import List, Optional

from .catalog import Catalog
from .effects import (
    MAX_USES_PER_COMMAND,
    ChestEffect,
    EffectRegistry,
    ItemEffectDispatcher,
)
from .errors import (
    InsufficientFundsError,
    ItemNotForSaleError,
    ItemNotFoundError,
    LedgerUnavailableError,
)
from .ledger import Ledger, LedgerTransaction
from .models import InventoryEntry, PurchaseResult, UseResult
from .transactions import with_transaction

logger = logging.getLogger("lootbot.economy")

PURCHASE_FAILED_MESSAGE = "Could not complete purchase. Please try again later."


def build_default_registry(catalog: Catalog, rng: Optional[random.Random] = None) -> EffectRegistry:
    registry = EffectRegistry()
    registry.register(ChestEffect(catalog, rng))
    return registry


class EconomyService:
    """Coordinates the ledger, the catalog, and item effects."""

    def __init__(
        self,
        ledger: Ledger,
        catalog: Catalog,
        registry: Optional[EffectRegistry] = None,
        *,
        max_uses: int = MAX_USES_PER_COMMAND,
    ) -> None:
        self.ledger = ledger
        self.catalog = catalog
        self.registry = registry or build_default_registry(catalog)
        self._dispatcher = ItemEffectDispatcher(ledger, catalog, self.registry, max_uses=max_uses)

    async def sighting(self, user_id: str, username: Optional[str]) -> None:
        """Create the account on first sight and keep its name current."""
        try:
            await self.ledger.ensure_user(user_id, username)
        except sqlite3.Error:
            logger.exception("Failed to record user %s", user_id)

    async def balance(self, user_id: str) -> int:
        try:
            return await self.ledger.get_balance(user_id)
        except sqlite3.Error as exc:
            logger.exception("Failed to read balance for user %s", user_id)
            raise LedgerUnavailableError() from exc

    async def inventory(self, user_id: str) -> List[InventoryEntry]:
        try:
            return await self.ledger.list_inventory(user_id)
        except sqlite3.Error as exc:
            logger.exception("Failed to read inventory for user %s", user_id)
            raise LedgerUnavailableError() from exc

    async def grant_coins(self, user_id: str, amount: int) -> int:
        """Credit ``amount`` coins.

        Raises :class:`ValueError` for a non-positive amount and
        :class:`LedgerUnavailableError` when the credit cannot be stored.
        """
        if amount <= 0:
            raise ValueError("amount must be positive")
        try:
            balance = await self.ledger.add_coins(user_id, amount)
        except (sqlite3.Error, OverflowError) as exc:
            logger.exception("Failed to grant %s coins to %s", amount, user_id)
            raise LedgerUnavailableError() from exc
        logger.info("Granted %s coins to %s (balance %s).", amount, user_id, balance)
        return balance

    async def purchase(self, user_id: str, query: str, username: Optional[str] = None) -> PurchaseResult:
        item = self.catalog.resolve_item(query)
        if item is None:
            return PurchaseResult(False, ItemNotFoundError(query).message)
        if item.cost <= 0:
            return PurchaseResult(False, ItemNotForSaleError(item.name).message)

        def _buy(txn: LedgerTransaction) -> int:
            txn.ensure_user(user_id, username)
            success, balance = txn.try_subtract_coins(user_id, item.cost)
            if not success:
                raise InsufficientFundsError(balance, item.cost)
            txn.add_to_inventory(user_id, item.item_id, 1)
            return balance

        outcome = await with_transaction(self.ledger, _buy, failure_message=PURCHASE_FAILED_MESSAGE)
        if not outcome.success:
            balance = outcome.error.balance if isinstance(outcome.error, InsufficientFundsError) else None
            return PurchaseResult(False, outcome.reason, balance)

        balance_after = int(outcome.value)  # type: ignore[arg-type]
        logger.info("User %s bought %s for %s.", user_id, item.item_id, item.cost)
        return PurchaseResult(
            True,
            f"Bought {item.label} for {item.cost} coins. Balance: {balance_after}.",
            balance_after,
        )

    async def use_item(self, user_id: str, query: str, quantity: object = 1) -> UseResult:
        return await self._dispatcher.use_item(user_id, query, quantity)


__all__ = ["EconomyService", "PURCHASE_FAILED_MESSAGE", "build_default_registry"]
