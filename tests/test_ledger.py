import asyncio
import tempfile
import unittest
from pathlib import Path

from lootbot.errors import InsufficientFundsError
from lootbot.ledger import Ledger
from lootbot.models import InventoryEntry


class LedgerTests(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.ledger = Ledger(Path(self._tmp.name) / "ledger.sqlite3")

    async def asyncTearDown(self) -> None:
        self.ledger.close()
        self._tmp.cleanup()

    async def test_ensure_user_creates_once_and_tracks_name(self) -> None:
        await self.ledger.ensure_user("1", "alice")
        await self.ledger.add_coins("1", 30)
        await self.ledger.ensure_user("1", "Alice B")
        account = await self.ledger.get_account("1")
        self.assertEqual(account.username, "Alice B")
        self.assertEqual(account.coins, 30)

    async def test_unknown_user_has_zero_balance(self) -> None:
        self.assertEqual(await self.ledger.get_balance("nobody"), 0)
        self.assertIsNone(await self.ledger.get_account("nobody"))

    async def test_try_subtract_coins(self) -> None:
        await self.ledger.add_coins("1", 50)
        self.assertEqual(await self.ledger.try_subtract_coins("1", 20), (True, 30))
        self.assertEqual(await self.ledger.try_subtract_coins("1", 31), (False, 30))
        self.assertEqual(await self.ledger.try_subtract_coins("1", 30), (True, 0))
        self.assertEqual(await self.ledger.try_subtract_coins("ghost", 1), (False, 0))

    async def test_negative_add_cannot_overdraw(self) -> None:
        await self.ledger.add_coins("1", 5)
        with self.assertRaises(InsufficientFundsError) as ctx:
            await self.ledger.add_coins("1", -6)
        self.assertEqual(ctx.exception.balance, 5)
        self.assertEqual(await self.ledger.add_coins("1", -5), 0)

    async def test_concurrent_subtractions_never_overdraw(self) -> None:
        await self.ledger.add_coins("1", 100)
        results = await asyncio.gather(*(self.ledger.try_subtract_coins("1", 15) for _ in range(20)))
        succeeded = [ok for ok, _ in results if ok]
        self.assertEqual(len(succeeded), 6)
        self.assertEqual(await self.ledger.get_balance("1"), 100 - 15 * len(succeeded))

    async def test_inventory_merge_remove_and_prune(self) -> None:
        await self.ledger.add_to_inventory("1", "gem", 2)
        await self.ledger.add_to_inventory("1", "gem", 3)
        await self.ledger.add_to_inventory("1", "cookie", 1)
        self.assertEqual(await self.ledger.get_item_quantity("1", "gem"), 5)

        self.assertFalse(await self.ledger.remove_from_inventory("1", "gem", 6))
        self.assertEqual(await self.ledger.get_item_quantity("1", "gem"), 5)

        self.assertTrue(await self.ledger.remove_from_inventory("1", "gem", 5))
        self.assertEqual(await self.ledger.get_item_quantity("1", "gem"), 0)
        self.assertEqual(await self.ledger.list_inventory("1"), [InventoryEntry("cookie", 1)])

    async def test_transaction_rolls_back_on_error(self) -> None:
        await self.ledger.add_coins("1", 10)
        with self.assertRaises(RuntimeError):
            async with self.ledger.transaction() as txn:
                txn.add_coins("1", 90)
                txn.add_to_inventory("1", "gem", 1)
                raise RuntimeError("boom")
        self.assertEqual(await self.ledger.get_balance("1"), 10)
        self.assertEqual(await self.ledger.get_item_quantity("1", "gem"), 0)

    async def test_transaction_commits_on_success(self) -> None:
        async with self.ledger.transaction() as txn:
            txn.ensure_user("1", "bob")
            txn.add_coins("1", 7)
            txn.add_to_inventory("1", "gem", 2)
        self.assertEqual(await self.ledger.get_balance("1"), 7)
        self.assertEqual(await self.ledger.get_item_quantity("1", "gem"), 2)


if __name__ == "__main__":
    unittest.main()
