"""Exceptions raised by the economy core.

Subclasses of :class:`EconomyError` are expected, user-facing failures and
carry a message that can be shown as-is. Storage failures surface as
:class:`sqlite3.Error` and are never shown verbatim; balance, inventory
and grant calls re-raise them as :class:`LedgerUnavailableError`.
"""

from __future__ import annotations


class EconomyError(Exception):
    """Base error for expected economy failures."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InsufficientFundsError(EconomyError):
    def __init__(self, balance: int, cost: int) -> None:
        super().__init__(f"Insufficient coins: you have {balance} but need {cost}.")
        self.balance = balance
        self.cost = cost


class InsufficientItemsError(EconomyError):
    def __init__(self, item_name: str, owned: int, requested: int) -> None:
        if owned <= 0:
            message = f"You don't own any {item_name}."
        else:
            message = f"Insufficient {item_name}: you own {owned} but tried to use {requested}."
        super().__init__(message)
        self.owned = owned
        self.requested = requested


class ItemNotFoundError(EconomyError):
    def __init__(self, query: str) -> None:
        super().__init__(f"Item '{query}' not found.")
        self.query = query


class ItemNotForSaleError(EconomyError):
    def __init__(self, item_name: str) -> None:
        super().__init__(f"{item_name} is not for sale.")


class EffectNotImplementedError(EconomyError):
    def __init__(self, item_name: str, effect: object) -> None:
        super().__init__(f"{item_name} has no effect implemented.")
        self.effect = effect


class EmptyRewardPoolError(EconomyError):
    def __init__(self, chest_id: str = "") -> None:
        label = f" for '{chest_id}'" if chest_id else ""
        super().__init__(f"Empty reward pool{label}.")
        self.chest_id = chest_id


class ChestNotFoundError(EconomyError):
    def __init__(self, chest_id: str) -> None:
        super().__init__(f"No chest definition for '{chest_id}'.")
        self.chest_id = chest_id


class LedgerUnavailableError(EconomyError):
    """The ledger could not be read or written; the cause is logged, not shown."""

    def __init__(self, message: str = "Could not reach the ledger. Please try again later.") -> None:
        super().__init__(message)


class CatalogError(Exception):
    """Raised when a catalog document cannot be parsed."""


__all__ = [
    "CatalogError",
    "ChestNotFoundError",
    "EconomyError",
    "EffectNotImplementedError",
    "EmptyRewardPoolError",
    "InsufficientFundsError",
    "InsufficientItemsError",
    "ItemNotForSaleError",
    "ItemNotFoundError",
    "LedgerUnavailableError",
]
