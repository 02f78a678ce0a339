"""Static item and chest catalogs.

Both catalogs are loaded once at startup from a JSON or YAML document and are
read-only afterwards, so they can be shared across commands without locking.
"""

from __future__ import annotations

import json
import logging
import math
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

import yaml

from .errors import CatalogError
from .models import ChestDef, ItemDef, PoolEntry

logger = logging.getLogger("lootbot.catalog")

CHEST_EFFECT = "chest"
# Largest value a SQLite INTEGER column can hold.
SQLITE_MAX_INTEGER = 2**63 - 1


def _normalize_key(value: object) -> str:
    return str(value or "").strip().lower()


def _to_float(value: object, default: float = 0.0) -> float:
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return default
    if not math.isfinite(number):
        return default
    return number


def _to_int(value: object, default: int) -> int:
    number = _to_float(value, float("nan"))
    if math.isnan(number):
        return default
    return int(number)


def _parse_aliases(raw: object) -> Tuple[str, ...]:
    if raw is None:
        return ()
    if isinstance(raw, str):
        chunks: Iterable[object] = raw.split(",")
    elif isinstance(raw, (list, tuple)):
        chunks = raw
    else:
        return ()
    return tuple(str(chunk).strip() for chunk in chunks if str(chunk).strip())


def parse_item(item_id: str, entry: Mapping[str, object]) -> ItemDef:
    effect = entry.get("effect")
    return ItemDef(
        item_id=str(item_id),
        name=str(entry.get("name") or item_id),
        icon=str(entry.get("icon") or entry.get("emoji") or ""),
        cost=max(_to_int(entry.get("cost", entry.get("price")), 0), 0),
        page=_to_int(entry.get("page"), 1),
        effect=str(effect).strip().lower() if effect else None,
        aliases=_parse_aliases(entry.get("aliases")),
    )


def parse_pool_entry(entry: Mapping[str, object]) -> PoolEntry:
    item_id = entry.get("itemid", entry.get("item_id"))
    if not item_id:
        raise CatalogError(f"Pool entry {dict(entry)!r} is missing an item id.")
    min_amt = _to_int(entry.get("min_amt"), 1)
    max_raw = entry.get("max_amt")
    max_amt = _to_int(max_raw, min_amt) if max_raw is not None else min_amt
    return PoolEntry(
        item_id=str(item_id),
        weight=_to_float(entry.get("weight"), 0.0),
        min_amt=min_amt,
        max_amt=max_amt,
    )


def parse_chest(chest_id: str, entry: object) -> ChestDef:
    if isinstance(entry, Mapping):
        raw_pool = entry.get("pool", entry.get("items", []))
    else:
        raw_pool = entry
    if not isinstance(raw_pool, (list, tuple)):
        raise CatalogError(f"Chest '{chest_id}' pool must be a list.")
    pool = []
    for raw in raw_pool:
        if not isinstance(raw, Mapping):
            raise CatalogError(f"Chest '{chest_id}' has a malformed pool entry: {raw!r}")
        pool.append(parse_pool_entry(raw))
    return ChestDef(chest_id=str(chest_id), pool=tuple(pool))


class Catalog:
    """Read-only lookup over item and chest definitions."""

    def __init__(self, items: Iterable[ItemDef] = (), chests: Iterable[ChestDef] = ()) -> None:
        self._items: Mapping[str, ItemDef] = MappingProxyType({item.item_id: item for item in items})
        self._chests: Mapping[str, ChestDef] = MappingProxyType({chest.chest_id: chest for chest in chests})
        aliases: Dict[str, ItemDef] = {}
        for item in self._items.values():
            for key in (item.item_id, *item.aliases):
                aliases.setdefault(_normalize_key(key), item)
        self._by_alias: Mapping[str, ItemDef] = MappingProxyType(aliases)

    @classmethod
    def from_payload(cls, payload: Mapping[str, object]) -> "Catalog":
        raw_items = payload.get("items") or {}
        raw_chests = payload.get("chests") or {}
        if not isinstance(raw_items, Mapping) or not isinstance(raw_chests, Mapping):
            raise CatalogError("Catalog 'items' and 'chests' must be objects keyed by id.")
        items = []
        for item_id, entry in raw_items.items():
            if not isinstance(entry, Mapping):
                raise CatalogError(f"Item '{item_id}' must be an object.")
            items.append(parse_item(str(item_id), entry))
        chests = [parse_chest(str(chest_id), entry) for chest_id, entry in raw_chests.items()]
        return cls(items, chests)

    @property
    def items(self) -> Mapping[str, ItemDef]:
        return self._items

    @property
    def chests(self) -> Mapping[str, ChestDef]:
        return self._chests

    def get_item(self, item_id: str) -> Optional[ItemDef]:
        return self._items.get(item_id)

    def resolve_item(self, query: str) -> Optional[ItemDef]:
        """Find an item by exact id, then by case-insensitive alias."""
        if not query:
            return None
        stripped = query.strip()
        item = self._items.get(stripped)
        if item is not None:
            return item
        return self._by_alias.get(_normalize_key(stripped))

    def get_chest(self, chest_id: str) -> Optional[ChestDef]:
        return self._chests.get(chest_id)

    def item_label(self, item_id: str) -> str:
        item = self._items.get(item_id)
        return item.label if item else item_id

    def shop_items(self, page: Optional[int] = None) -> List[ItemDef]:
        listed = [item for item in self._items.values() if item.cost > 0]
        if page is not None:
            listed = [item for item in listed if item.page == page]
        return sorted(listed, key=lambda item: (item.page, item.cost, item.name.lower()))

    def validate(self) -> List[str]:
        problems: List[str] = []
        for chest_id, chest in self._chests.items():
            item = self._items.get(chest_id)
            if item is None:
                problems.append(f"Chest '{chest_id}' has no matching item.")
            elif item.effect != CHEST_EFFECT:
                problems.append(f"Item '{chest_id}' has a chest definition but effect {item.effect!r}.")
            if not chest.pool:
                problems.append(f"Chest '{chest_id}' has an empty pool.")
            for entry in chest.pool:
                if entry.item_id not in self._items:
                    problems.append(f"Chest '{chest_id}' drops unknown item '{entry.item_id}'.")
                if max(abs(entry.min_amt), abs(entry.max_amt)) > SQLITE_MAX_INTEGER:
                    problems.append(f"Chest '{chest_id}' drops more '{entry.item_id}' than the ledger can store.")
        for item in self._items.values():
            if item.effect == CHEST_EFFECT and item.item_id not in self._chests:
                problems.append(f"Item '{item.item_id}' is a chest with no chest definition.")
            if item.cost > SQLITE_MAX_INTEGER:
                problems.append(f"Item '{item.item_id}' costs {item.cost}, more than the ledger can store.")
        seen: Dict[str, str] = {}
        for item in self._items.values():
            for alias in item.aliases:
                key = _normalize_key(alias)
                owner = seen.setdefault(key, item.item_id)
                if owner != item.item_id:
                    problems.append(f"Alias '{alias}' is shared by '{owner}' and '{item.item_id}'.")
        return problems


def _read_payload(path: Path) -> object:
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() in {".yaml", ".yml"}:
        try:
            return yaml.safe_load(text) or {}
        except yaml.YAMLError as exc:
            raise CatalogError(f"Failed to parse catalog {path}: {exc}") from exc
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise CatalogError(f"Failed to parse catalog {path}: {exc}") from exc


def load_catalog(path: Optional[Path]) -> Catalog:
    """Load a catalog document; a missing file yields an empty catalog."""
    if path is None or not path.exists():
        logger.warning("Catalog %s not found; the shop will be empty.", path)
        return Catalog()
    payload = _read_payload(path)
    if not isinstance(payload, Mapping):
        raise CatalogError(f"Catalog {path} must be an object with 'items' and 'chests'.")
    catalog = Catalog.from_payload(payload)
    for problem in catalog.validate():
        logger.warning("Catalog %s: %s", path, problem)
    logger.info("Loaded %d items and %d chests from %s.", len(catalog.items), len(catalog.chests), path)
    return catalog


__all__ = [
    "CHEST_EFFECT",
    "SQLITE_MAX_INTEGER",
    "Catalog",
    "load_catalog",
    "parse_chest",
    "parse_item",
    "parse_pool_entry",
]
