"""Runtime settings read from the environment."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from .effects import MAX_USES_PER_COMMAND
from .utils import int_from_env, path_from_env

logger = logging.getLogger("lootbot.config")


@dataclass(frozen=True)
class Settings:
    token: str
    db_path: Path
    catalog_path: Path
    max_uses: int = MAX_USES_PER_COMMAND
    command_prefix: str = "!"
    channel_id: int = 0
    log_level: str = "INFO"


def _resolve(path: Path) -> Path:
    return path if path.is_absolute() else Path.cwd() / path


def load_settings() -> Settings:
    max_uses = int_from_env("LOOTBOT_MAX_USES", MAX_USES_PER_COMMAND)
    if max_uses < 1:
        logger.warning("LOOTBOT_MAX_USES must be at least 1; using %s.", MAX_USES_PER_COMMAND)
        max_uses = MAX_USES_PER_COMMAND
    return Settings(
        token=os.getenv("DISCORD_TOKEN", "").strip(),
        db_path=_resolve(path_from_env("LOOTBOT_DB_PATH") or Path("lootbot.sqlite3")),
        catalog_path=_resolve(path_from_env("LOOTBOT_CATALOG") or Path("economy_catalog.json")),
        max_uses=max_uses,
        command_prefix=os.getenv("LOOTBOT_COMMAND_PREFIX", "!") or "!",
        channel_id=int_from_env("LOOTBOT_CHANNEL_ID", 0),
        log_level=os.getenv("LOOTBOT_LOG_LEVEL", "INFO").upper(),
    )


__all__ = ["Settings", "load_settings"]
