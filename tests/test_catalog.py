import json
import tempfile
import unittest
from pathlib import Path

from lootbot.catalog import Catalog, load_catalog, parse_pool_entry
from lootbot.errors import CatalogError


PAYLOAD = {
    "items": {
        "gem": {"name": "Gem", "icon": "💎", "cost": 150, "aliases": ["Jewel", "gems"]},
        "cookie": {"name": "Cookie", "cost": 10, "page": 1},
        "basic_chest": {"name": "Basic Chest", "cost": 60, "page": 2, "effect": "Chest", "aliases": "chest, box"},
        "relic": {"name": "Relic"},
    },
    "chests": {
        "basic_chest": {
            "pool": [
                {"itemid": "cookie", "weight": 60, "min_amt": 1, "max_amt": 5},
                {"itemid": "gem", "weight": 0.05},
            ]
        }
    },
}


class CatalogLookupTests(unittest.TestCase):
    def setUp(self) -> None:
        self.catalog = Catalog.from_payload(PAYLOAD)

    def test_exact_id_lookup(self) -> None:
        self.assertEqual(self.catalog.resolve_item("gem").name, "Gem")

    def test_alias_lookup_is_case_insensitive(self) -> None:
        by_alias = self.catalog.resolve_item("JEWEL")
        self.assertIs(by_alias, self.catalog.resolve_item("gem"))
        self.assertEqual(self.catalog.resolve_item("  Box ").item_id, "basic_chest")
        self.assertEqual(self.catalog.resolve_item("GEM").item_id, "gem")

    def test_unknown_item_returns_none(self) -> None:
        self.assertIsNone(self.catalog.resolve_item("sword"))
        self.assertIsNone(self.catalog.resolve_item(""))

    def test_effect_names_are_lowercased(self) -> None:
        self.assertEqual(self.catalog.get_item("basic_chest").effect, "chest")

    def test_shop_lists_priced_items_by_page_then_cost(self) -> None:
        listed = [item.item_id for item in self.catalog.shop_items()]
        self.assertEqual(listed, ["cookie", "gem", "basic_chest"])
        self.assertEqual([item.item_id for item in self.catalog.shop_items(page=2)], ["basic_chest"])

    def test_valid_catalog_has_no_problems(self) -> None:
        self.assertEqual(self.catalog.validate(), [])


class PoolEntryParsingTests(unittest.TestCase):
    def test_defaults(self) -> None:
        entry = parse_pool_entry({"itemid": "gem"})
        self.assertEqual(entry.weight, 0.0)
        self.assertEqual(entry.min_amt, 1)
        self.assertEqual(entry.max_amt, 1)

    def test_max_defaults_to_min_when_not_finite(self) -> None:
        entry = parse_pool_entry({"item_id": "gem", "weight": "x", "min_amt": 3, "max_amt": float("inf")})
        self.assertEqual(entry.weight, 0.0)
        self.assertEqual(entry.max_amt, 3)

    def test_missing_item_id_is_rejected(self) -> None:
        with self.assertRaises(CatalogError):
            parse_pool_entry({"weight": 1})


class CatalogValidationTests(unittest.TestCase):
    def test_reports_broken_definitions(self) -> None:
        catalog = Catalog.from_payload(
            {
                "items": {
                    "lonely_chest": {"name": "Lonely", "effect": "chest"},
                    "cookie": {"name": "Cookie", "aliases": ["snack"]},
                    "biscuit": {"name": "Biscuit", "aliases": ["SNACK"]},
                },
                "chests": {
                    "ghost_chest": [{"itemid": "cookie", "weight": 1}],
                    "cookie": {"pool": [{"itemid": "nothing", "weight": 1}]},
                },
            }
        )
        problems = "\n".join(catalog.validate())
        self.assertIn("'ghost_chest' has no matching item", problems)
        self.assertIn("'lonely_chest' is a chest with no chest definition", problems)
        self.assertIn("unknown item 'nothing'", problems)
        self.assertIn("has a chest definition but effect None", problems)
        self.assertIn("Alias 'SNACK'", problems)

    def test_reports_amounts_too_large_for_the_ledger(self) -> None:
        catalog = Catalog.from_payload(
            {
                "items": {
                    "big": {"name": "Big", "cost": 1e19},
                    "hoard_chest": {"name": "Hoard", "effect": "chest"},
                    "cookie": {"name": "Cookie", "cost": 10},
                },
                "chests": {
                    "hoard_chest": [{"itemid": "cookie", "weight": 1, "min_amt": 1, "max_amt": 1e20}],
                },
            }
        )
        problems = catalog.validate()
        self.assertEqual(len(problems), 2)
        self.assertIn("Item 'big' costs", problems[1])
        self.assertIn("Chest 'hoard_chest' drops more 'cookie'", problems[0])


class LoadCatalogTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_loads_json(self) -> None:
        path = self.root / "catalog.json"
        path.write_text(json.dumps(PAYLOAD), encoding="utf-8")
        catalog = load_catalog(path)
        self.assertEqual(len(catalog.chests["basic_chest"].pool), 2)

    def test_loads_yaml(self) -> None:
        path = self.root / "catalog.yaml"
        path.write_text(
            "items:\n"
            "  gem:\n"
            "    name: Gem\n"
            "    cost: 5\n"
            "  box:\n"
            "    name: Box\n"
            "    effect: chest\n"
            "chests:\n"
            "  box:\n"
            "    pool:\n"
            "      - itemid: gem\n"
            "        weight: 50\n"
            "        min_amt: 2\n"
            "        max_amt: 4\n",
            encoding="utf-8",
        )
        catalog = load_catalog(path)
        entry = catalog.get_chest("box").pool[0]
        self.assertEqual((entry.item_id, entry.weight, entry.min_amt, entry.max_amt), ("gem", 50.0, 2, 4))

    def test_malformed_document_raises(self) -> None:
        path = self.root / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        with self.assertRaises(CatalogError):
            load_catalog(path)

    def test_missing_file_gives_empty_catalog(self) -> None:
        with self.assertLogs("lootbot.catalog", level="WARNING"):
            catalog = load_catalog(self.root / "absent.json")
        self.assertEqual(len(catalog.items), 0)


if __name__ == "__main__":
    unittest.main()
