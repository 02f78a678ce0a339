"""Run a ledger operation in one scope and turn failures into outcomes."""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass
from typing import Callable, Optional

from .errors import EconomyError
from .ledger import Ledger, LedgerTransaction

logger = logging.getLogger("lootbot.transactions")


@dataclass(frozen=True)
class TransactionOutcome:
    success: bool
    value: object = None
    reason: str = ""
    error: Optional[BaseException] = None


async def with_transaction(
    ledger: Ledger,
    operation: Callable[[LedgerTransaction], object],
    *,
    failure_message: str,
) -> TransactionOutcome:
    """Apply ``operation`` atomically.

    An :class:`EconomyError` raised by the operation rolls the scope back and
    becomes a failure carrying its own message. Any other exception, storage
    errors included, rolls back, is logged with its traceback, and becomes a
    failure with the generic ``failure_message``.
    """
    try:
        async with ledger.transaction() as txn:
            value = operation(txn)
    except EconomyError as exc:
        logger.info("Transaction rejected: %s", exc.message)
        return TransactionOutcome(False, reason=exc.message, error=exc)
    except sqlite3.Error as exc:
        logger.exception("Storage error, transaction rolled back: %s", exc)
        return TransactionOutcome(False, reason=failure_message, error=exc)
    except Exception as exc:
        logger.exception("Unexpected error, transaction rolled back: %s", exc)
        return TransactionOutcome(False, reason=failure_message, error=exc)
    return TransactionOutcome(True, value=value)


__all__ = ["TransactionOutcome", "with_transaction"]
