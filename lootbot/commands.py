"""Prefix commands that forward to :class:`EconomyService`."""

from __future__ import annotations

import logging
from typing import Optional, Tuple

import discord
from discord.ext import commands

from .catalog import load_catalog
from .config import Settings
from .economy import EconomyService
from .errors import LedgerUnavailableError
from .ledger import Ledger
from .utils import is_admin, member_display_name, plural

logger = logging.getLogger("lootbot.commands")


def split_quantity(text: str) -> Tuple[str, int]:
    """Split 'Basic Chest 3' into ('Basic Chest', 3); the quantity defaults to 1."""
    parts = text.split()
    if len(parts) > 1:
        try:
            return " ".join(parts[:-1]), int(parts[-1])
        except ValueError:
            pass
    return " ".join(parts), 1


class EconomyCommands:
    def __init__(self, *, bot: commands.Bot, service: EconomyService, channel_id: int = 0) -> None:
        self.bot = bot
        self.service = service
        self.channel_id = channel_id

    def _in_allowed_channel(self, ctx: commands.Context) -> bool:
        return self.channel_id == 0 or getattr(ctx.channel, "id", None) == self.channel_id

    async def _seen(self, ctx: commands.Context) -> str:
        user_id = str(ctx.author.id)
        await self.service.sighting(user_id, member_display_name(ctx.author))
        return user_id

    def _register_command(self, command: commands.Command) -> None:
        existing = self.bot.get_command(command.name)
        if existing:
            self.bot.remove_command(existing.name)
        self.bot.add_command(command)

    def register_commands(self) -> None:
        @commands.command(name="balance", aliases=["bal"])
        async def economy_balance(ctx: commands.Context) -> None:
            await self.command_balance(ctx)

        @commands.command(name="shop")
        async def economy_shop(ctx: commands.Context, page: Optional[int] = None) -> None:
            await self.command_shop(ctx, page)

        @commands.command(name="buy")
        async def economy_buy(ctx: commands.Context, *, item: str = "") -> None:
            await self.command_buy(ctx, item.strip())

        @commands.command(name="use")
        async def economy_use(ctx: commands.Context, *, args: str = "") -> None:
            item, quantity = split_quantity(args)
            await self.command_use(ctx, item, quantity)

        @commands.command(name="inventory", aliases=["inv"])
        async def economy_inventory(ctx: commands.Context) -> None:
            await self.command_inventory(ctx)

        @commands.command(name="givecoins")
        async def economy_givecoins(
            ctx: commands.Context,
            member: Optional[discord.Member] = None,
            amount: Optional[int] = None,
        ) -> None:
            await self.command_give_coins(ctx, member, amount)

        for command in (
            economy_balance,
            economy_shop,
            economy_buy,
            economy_use,
            economy_inventory,
            economy_givecoins,
        ):
            self._register_command(command)

    async def command_balance(self, ctx: commands.Context) -> None:
        if not self._in_allowed_channel(ctx):
            return
        user_id = await self._seen(ctx)
        try:
            coins = await self.service.balance(user_id)
        except LedgerUnavailableError as exc:
            await ctx.reply(exc.message, mention_author=False)
            return
        await ctx.reply(f"You have {plural(coins, 'coin')}.", mention_author=False)

    async def command_shop(self, ctx: commands.Context, page: Optional[int]) -> None:
        if not self._in_allowed_channel(ctx):
            return
        items = self.service.catalog.shop_items(page)
        if not items:
            await ctx.reply("Nothing for sale here.", mention_author=False)
            return
        lines = [f"{item.label} (`{item.item_id}`): {item.cost} coins" for item in items]
        await ctx.reply("\n".join(lines), mention_author=False)

    async def command_buy(self, ctx: commands.Context, item: str) -> None:
        if not self._in_allowed_channel(ctx):
            return
        if not item:
            await ctx.reply("Usage: `!buy <item>`", mention_author=False)
            return
        user_id = await self._seen(ctx)
        result = await self.service.purchase(user_id, item, member_display_name(ctx.author))
        await ctx.reply(result.message, mention_author=False)

    async def command_use(self, ctx: commands.Context, item: str, quantity: int) -> None:
        if not self._in_allowed_channel(ctx):
            return
        if not item:
            await ctx.reply("Usage: `!use <item> [quantity]`", mention_author=False)
            return
        user_id = await self._seen(ctx)
        result = await self.service.use_item(user_id, item, quantity)
        await ctx.reply(result.message, mention_author=False)

    async def command_inventory(self, ctx: commands.Context) -> None:
        if not self._in_allowed_channel(ctx):
            return
        user_id = await self._seen(ctx)
        try:
            entries = await self.service.inventory(user_id)
        except LedgerUnavailableError as exc:
            await ctx.reply(exc.message, mention_author=False)
            return
        if not entries:
            await ctx.reply("Your inventory is empty.", mention_author=False)
            return
        lines = [f"{entry.quantity}x {self.service.catalog.item_label(entry.item_id)}" for entry in entries]
        await ctx.reply("\n".join(lines), mention_author=False)

    async def command_give_coins(
        self,
        ctx: commands.Context,
        member: Optional[discord.Member],
        amount: Optional[int],
    ) -> None:
        if ctx.guild is None:
            await ctx.reply("Run this command inside the server.", mention_author=False)
            return
        if member is None or amount is None:
            await ctx.reply("Usage: `!givecoins @user <amount>`", mention_author=False)
            return
        invoker = ctx.author if isinstance(ctx.author, discord.Member) else None
        if invoker is None or not is_admin(invoker):
            await ctx.reply("Only a server administrator can give coins.", mention_author=False)
            return
        if member.bot:
            await ctx.reply("Bots don't need coins.", mention_author=False)
            return
        if amount <= 0:
            await ctx.reply("The coin amount must be a positive number.", mention_author=False)
            return

        user_id = str(member.id)
        await self.service.sighting(user_id, member_display_name(member))
        try:
            balance = await self.service.grant_coins(user_id, amount)
        except LedgerUnavailableError as exc:
            await ctx.reply(exc.message, mention_author=False)
            return
        await ctx.reply(
            f"Granted {plural(amount, 'coin')} to {member.mention}. New balance: {balance}.",
            mention_author=False,
        )


def setup_economy(bot: commands.Bot, settings: Settings) -> EconomyCommands:
    """Factory used by bot.py to wire the economy into the bot."""
    catalog = load_catalog(settings.catalog_path)
    ledger = Ledger(settings.db_path)
    service = EconomyService(ledger, catalog, max_uses=settings.max_uses)
    manager = EconomyCommands(bot=bot, service=service, channel_id=settings.channel_id)
    manager.register_commands()
    logger.info("Economy ready (db=%s, effects=%s).", settings.db_path, ", ".join(service.registry.names()))
    return manager


__all__ = ["EconomyCommands", "setup_economy", "split_quantity"]
