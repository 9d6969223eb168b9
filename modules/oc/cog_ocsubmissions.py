"""
OCSubmissions cog: the discord.py seam for the OC submission system.

- on_ready: preload the roster once
- on_message: hand every message to SubmissionPipeline (it does the scope gate)
- role/channel delete + rename listeners: keep ProvisioningEngine's creation memo honest
- oc.roster: moderator command to refresh the roster and report its size
"""

from __future__ import annotations

import logging

import discord
from discord.ext import commands

from ocsubmit.gsheets import PublishedSheetFetcher
from ocsubmit.pipeline import SubmissionPipeline
from ocsubmit.provisioning import ProvisioningEngine
from ocsubmit.roster import RosterCache

log = logging.getLogger(__name__)


class OCSubmissions(commands.Cog):
    def __init__(self, bot: commands.Bot):
        self.bot = bot
        self.config = bot.config

        self.fetcher = PublishedSheetFetcher(bot.session)
        self.roster = RosterCache(
            self.fetcher.fetch_csv,
            self.config.roster_url,
            on_fetch_failure=self.config.on_fetch_failure,
        )
        self.engine = ProvisioningEngine(self.resolve_guild, self.config)
        self.pipeline = SubmissionPipeline(self.config, self.roster, self.engine)

        self._roster_preloaded = False

    async def resolve_guild(self) -> discord.Guild:
        guild = self.bot.get_guild(self.config.guild_id)
        if guild is None:
            raise RuntimeError(f"Guild {self.config.guild_id} is not available to the bot")
        return guild

    @commands.Cog.listener()
    async def on_ready(self):
        """Preload existing OC names on startup."""
        if self._roster_preloaded:
            return
        self._roster_preloaded = True
        try:
            names = await self.roster.refresh()
            log.info("Loaded %d existing OCs from sheet", len(names))
        except Exception:
            log.exception("Failed to preload OC roster")

    @commands.Cog.listener()
    async def on_message(self, msg: discord.Message):
        await self.pipeline.handle(msg)

    @commands.Cog.listener()
    async def on_guild_role_delete(self, role: discord.Role):
        self.engine.forget_role(role.id)

    @commands.Cog.listener()
    async def on_guild_channel_delete(self, channel: discord.abc.GuildChannel):
        self.engine.forget_channel(channel.id)

    @commands.Cog.listener()
    async def on_guild_role_update(self, before: discord.Role, after: discord.Role):
        if before.name != after.name:
            self.engine.forget_role(after.id)

    @commands.Cog.listener()
    async def on_guild_channel_update(self, before: discord.abc.GuildChannel, after: discord.abc.GuildChannel):
        if before.name != after.name:
            self.engine.forget_channel(after.id)

    @commands.command(name="roster")
    async def roster_command(self, ctx: commands.Context):
        if discord.utils.get(getattr(ctx.author, "roles", []), id=self.config.mod_role_id) is None:
            await ctx.reply("[MOD ROLE REQUIRED]")
            return
        try:
            names = await self.roster.refresh()
        except Exception as e:
            log.exception("Manual roster refresh failed")
            await ctx.reply(f"Roster refresh failed: {e}")
            return
        await ctx.reply(f"Roster refreshed: {len(names)} registered OCs.")


async def setup(bot: commands.Bot):
    await bot.add_cog(OCSubmissions(bot))
