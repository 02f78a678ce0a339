"""Check an economy catalog for broken chests, unknown drops, and alias clashes.

Usage:
    python scripts/validate_catalog.py [catalog_file]
"""

import argparse
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parent.parent
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from lootbot.catalog import load_catalog  # noqa: E402
from lootbot.errors import CatalogError  # noqa: E402
from lootbot.rolls import normalize_weight  # noqa: E402


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("catalog", nargs="?", default="economy_catalog.json")
    args = parser.parse_args()

    path = Path(args.catalog)
    if not path.exists():
        raise SystemExit(f"{path} not found.")
    try:
        catalog = load_catalog(path)
    except CatalogError as exc:
        raise SystemExit(str(exc))

    print(f"{len(catalog.items)} items, {len(catalog.chests)} chests")
    for chest_id, chest in sorted(catalog.chests.items()):
        odds = ", ".join(f"{entry.item_id} {normalize_weight(entry.weight):.0%}" for entry in chest.pool)
        print(f"  {chest_id}: {odds or '(empty)'}")

    problems = catalog.validate()
    if problems:
        print("Problems:")
        for problem in problems:
            print(f"  - {problem}")
        sys.exit(1)
    print("Catalog OK")


if __name__ == "__main__":
    main()
