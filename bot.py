import logging
import os

import discord
from discord.ext import commands
from dotenv import load_dotenv

load_dotenv()

logging.basicConfig(
    level=os.getenv("LOOTBOT_LOG_LEVEL", "INFO"),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger("lootbot")

from lootbot.commands import setup_economy  # noqa: E402
from lootbot.config import load_settings  # noqa: E402

SETTINGS = load_settings()

intents = discord.Intents.default()
intents.message_content = True
intents.members = True

bot = commands.Bot(command_prefix=SETTINGS.command_prefix, intents=intents)
ECONOMY = setup_economy(bot, SETTINGS)


@bot.event
async def on_ready() -> None:
    logger.info("Logged in as %s (%s).", bot.user, getattr(bot.user, "id", "?"))


@bot.event
async def on_message(message: discord.Message) -> None:
    if message.author.bot:
        return
    if message.guild is not None:
        await ECONOMY.service.sighting(str(message.author.id), message.author.display_name)
    await bot.process_commands(message)


def main() -> None:
    if not SETTINGS.token:
        raise SystemExit("Missing DISCORD_TOKEN in environment.")
    bot.run(SETTINGS.token, log_handler=None)


if __name__ == "__main__":
    main()
