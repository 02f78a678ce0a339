"""Item effects and the dispatcher that applies them on ``use``."""

from __future__ import annotations

import logging
import random
import sqlite3
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from .catalog import CHEST_EFFECT, Catalog
from .errors import (
    ChestNotFoundError,
    EconomyError,
    EffectNotImplementedError,
    EmptyRewardPoolError,
    InsufficientItemsError,
    ItemNotFoundError,
)
from .ledger import Ledger, LedgerTransaction
from .models import ItemDef, PoolEntry, Reward, UseResult
from .rolls import roll_chest
from .transactions import with_transaction

logger = logging.getLogger("lootbot.effects")

MAX_USES_PER_COMMAND = 25
PROCESS_FAILED_MESSAGE = "Could not process item. Please try again later."


@dataclass(frozen=True)
class EffectResult:
    message: str
    rewards: Tuple[Reward, ...] = field(default_factory=tuple)


class ItemEffect(ABC):
    """One named effect. Subclasses are registered by :attr:`name`."""

    name: str = ""

    def validate(self, item: ItemDef) -> None:
        """Raise an :class:`EconomyError` if ``item`` cannot use this effect."""

    @abstractmethod
    def apply(self, txn: LedgerTransaction, user_id: str, item: ItemDef) -> EffectResult:
        """Apply one unit of ``item`` inside an open transaction."""


class ChestEffect(ItemEffect):
    name = CHEST_EFFECT

    def __init__(self, catalog: Catalog, rng: Optional[random.Random] = None) -> None:
        self._catalog = catalog
        self._rng = rng

    def _chest_pool(self, item: ItemDef) -> Tuple[PoolEntry, ...]:
        chest = self._catalog.get_chest(item.item_id)
        if chest is None:
            raise ChestNotFoundError(item.item_id)
        if not chest.pool:
            raise EmptyRewardPoolError(item.item_id)
        return chest.pool

    def validate(self, item: ItemDef) -> None:
        self._chest_pool(item)

    def apply(self, txn: LedgerTransaction, user_id: str, item: ItemDef) -> EffectResult:
        rewards = roll_chest(self._chest_pool(item), self._rng)
        for reward in rewards:
            txn.add_to_inventory(user_id, reward.item_id, reward.quantity)
        gained = ", ".join(
            f"{reward.quantity}x {self._catalog.item_label(reward.item_id)}" for reward in rewards
        )
        return EffectResult(f"{item.label} opened: {gained}", tuple(rewards))


class EffectRegistry:
    def __init__(self) -> None:
        self._handlers: Dict[str, ItemEffect] = {}

    def register(self, effect: ItemEffect) -> None:
        key = effect.name.strip().lower()
        if not key:
            raise ValueError("effect must have a name")
        if key in self._handlers:
            logger.warning("Replacing handler for effect %s.", key)
        self._handlers[key] = effect

    def get(self, name: Optional[str]) -> Optional[ItemEffect]:
        if not name:
            return None
        return self._handlers.get(name.strip().lower())

    def names(self) -> List[str]:
        return sorted(self._handlers)


def clamp_quantity(quantity: object, upper: int = MAX_USES_PER_COMMAND) -> int:
    try:
        value = int(quantity)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        value = 1
    return min(max(value, 1), upper)


class ItemEffectDispatcher:
    """Validates a ``use`` request and applies the item's effect N times."""

    def __init__(
        self,
        ledger: Ledger,
        catalog: Catalog,
        registry: EffectRegistry,
        *,
        max_uses: int = MAX_USES_PER_COMMAND,
    ) -> None:
        self._ledger = ledger
        self._catalog = catalog
        self._registry = registry
        self.max_uses = max(1, max_uses)

    async def use_item(self, user_id: str, query: str, quantity: object = 1) -> UseResult:
        item = self._catalog.resolve_item(query)
        if item is None:
            return UseResult(False, ItemNotFoundError(query).message)

        qty = clamp_quantity(quantity, self.max_uses)

        try:
            owned = await self._ledger.get_item_quantity(user_id, item.item_id)
        except sqlite3.Error:
            logger.exception("Failed to read %s quantity for user %s", item.item_id, user_id)
            return UseResult(False, PROCESS_FAILED_MESSAGE)
        if owned < qty:
            return UseResult(False, InsufficientItemsError(item.name, owned, qty).message)

        handler = self._registry.get(item.effect)
        if handler is None:
            return UseResult(False, EffectNotImplementedError(item.name, item.effect).message)

        try:
            handler.validate(item)
        except EconomyError as exc:
            logger.warning("Item %s is misconfigured: %s", item.item_id, exc.message)
            return UseResult(False, exc.message)

        def _apply_all(txn: LedgerTransaction) -> List[EffectResult]:
            results = [handler.apply(txn, user_id, item) for _ in range(qty)]
            if not txn.remove_from_inventory(user_id, item.item_id, qty):
                raise InsufficientItemsError(item.name, txn.get_item_quantity(user_id, item.item_id), qty)
            return results

        outcome = await with_transaction(self._ledger, _apply_all, failure_message=PROCESS_FAILED_MESSAGE)
        if not outcome.success:
            return UseResult(False, outcome.reason)

        results: List[EffectResult] = outcome.value  # type: ignore[assignment]
        lines = [result.message for result in results]
        if qty > 1:
            lines.insert(0, f"Used {qty}x {item.label}:")
        rewards = tuple(reward for result in results for reward in result.rewards)
        logger.info("User %s used %sx %s.", user_id, qty, item.item_id)
        return UseResult(True, "\n".join(lines), rewards)


__all__ = [
    "ChestEffect",
    "EffectRegistry",
    "EffectResult",
    "ItemEffect",
    "ItemEffectDispatcher",
    "MAX_USES_PER_COMMAND",
    "PROCESS_FAILED_MESSAGE",
    "clamp_quantity",
]
