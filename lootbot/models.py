"""Dataclasses and shared type definitions for lootbot."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Tuple


@dataclass(frozen=True)
class ItemDef:
    item_id: str
    name: str
    icon: str = ""
    cost: int = 0
    page: int = 1
    effect: Optional[str] = None
    aliases: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def label(self) -> str:
        return f"{self.icon} {self.name}".strip()


@dataclass(frozen=True)
class PoolEntry:
    item_id: str
    weight: float = 0.0        # raw configured value; > 1 is read as a percentage
    min_amt: int = 1
    max_amt: Optional[int] = None


@dataclass(frozen=True)
class ChestDef:
    chest_id: str
    pool: Tuple[PoolEntry, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class Reward:
    item_id: str
    quantity: int


@dataclass(frozen=True)
class UserAccount:
    user_id: str
    username: Optional[str]
    coins: int


@dataclass(frozen=True)
class InventoryEntry:
    item_id: str
    quantity: int


@dataclass(frozen=True)
class PurchaseResult:
    success: bool
    message: str
    balance_after: Optional[int] = None


@dataclass(frozen=True)
class UseResult:
    success: bool
    message: str
    rewards: Tuple[Reward, ...] = field(default_factory=tuple)


__all__ = [
    "ChestDef",
    "InventoryEntry",
    "ItemDef",
    "PoolEntry",
    "PurchaseResult",
    "Reward",
    "UseResult",
    "UserAccount",
]
