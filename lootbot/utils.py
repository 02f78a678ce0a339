"""Utility helpers for lootbot."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterable, Optional

import discord

logger = logging.getLogger("lootbot.utils")


def int_from_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Invalid integer for %s=%s. Falling back to %s.", name, raw, default)
        return default


def path_from_env(name: str) -> Optional[Path]:
    value = os.getenv(name, "").strip()
    if not value:
        return None
    return Path(value).expanduser()


def is_admin(member: discord.abc.User) -> bool:
    if isinstance(member, discord.Member):
        if member.guild_permissions.administrator:
            return True
        roles: Iterable[discord.Role] = getattr(member, "roles", [])
        return any(role.name.lower() == "admin" for role in roles)
    return False


def member_display_name(member: discord.abc.User) -> str:
    """Return the server nickname if present, else the global or account name."""
    nick = getattr(member, "nick", None)
    if isinstance(nick, str) and nick.strip():
        return nick.strip()
    global_name = getattr(member, "global_name", None)
    if isinstance(global_name, str) and global_name.strip():
        return global_name.strip()
    return member.name


def plural(count: int, word: str) -> str:
    return f"{count} {word}{'' if count == 1 else 's'}"


__all__ = [
    "int_from_env",
    "is_admin",
    "member_display_name",
    "path_from_env",
    "plural",
]
