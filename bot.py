import logging
import os

import aiohttp
import discord
from discord.ext import commands
from dotenv import load_dotenv
from typing import Optional

from ocsubmit.config import OCConfig
from ocsubmit.errors import ConfigError

log = logging.getLogger("ocbot")

MODULES_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "modules")


class OCBot(commands.Bot):
    def __init__(self, config: Optional[OCConfig] = None):
        # Load environment variables
        if config is None:
            load_dotenv()
            config = OCConfig.from_env()
        self.config = config
        self.token = config.token

        # Initialize intents: message content for submissions, members for role grants
        intents = discord.Intents.default()
        intents.message_content = True
        intents.members = True

        # Call parent constructor
        super().__init__(
            command_prefix=config.command_prefix,
            help_command=None,
            intents=intents,
            description="OC registrar bot"
        )

        self.session: Optional[aiohttp.ClientSession] = None


    async def setup_hook(self) -> None:
        """
        Create the shared HTTP session and load extensions.
        """
        self.session = aiohttp.ClientSession()
        await self.load_cogs()


    async def load_cogs(self) -> None:
        """
        Load all cogs from the modules directory.
        """
        loaded_cogs = 0
        for folder in sorted(os.listdir(MODULES_DIR)):
            folder_path = os.path.join(MODULES_DIR, folder)
            if not os.path.isdir(folder_path):
                continue

            for file in sorted(os.listdir(folder_path)):
                if file.startswith("cog") and file.endswith(".py"):
                    try:
                        await self.load_extension(f"modules.{folder}.{file[:-3]}")
                        loaded_cogs += 1
                    except Exception:
                        log.exception("Failed to load extension %s", file)

        log.info("Successfully loaded %d cogs", loaded_cogs)


    async def close(self):
        """
        Clean up resources on bot shutdown.
        """
        if self.session:
            await self.session.close()
        await super().close()


    async def on_ready(self) -> None:
        log.info("Logged in as %s (ID: %s)", self.user, self.user.id)


def main():
    """
    Main entry point for the bot.
    """
    try:
        bot = OCBot()
    except ConfigError as e:
        log.error("Failed to start bot: %s", e)
        raise SystemExit(1)
    # bot.run installs discord.py's default log handler
    bot.run(bot.token)


if __name__ == "__main__":
    main()
