"""lootbot package: coin ledger, shop purchases, and chest rolls for the Discord bot."""

from . import catalog, economy, effects, ledger, models, rolls, transactions, utils  # noqa: F401

__all__ = ["catalog", "economy", "effects", "ledger", "models", "rolls", "transactions", "utils"]
