"""
ProvisioningEngine: creates (or reuses) the role + private channel for an OC.

Steps, each a resume point if a later one fails:
1) Role: case-insensitive lookup by first name, create if missing
2) Channel: exact lookup of "oc-<slug>", create under the OC category with
   the permission overwrites below, then welcome + mirror the submission embed
3) Give the role to the submitting member
4) Post to the audit channel (if configured)

Notes:
- Two characters sharing a first name share one role. The first submitter
  names it; later ones reuse it.
- Lookup-then-create is serialized with in-process locks: per role name,
  then per channel name (different names can slugify to the same channel).
- discord.py only adds a created role/channel to the guild cache once the
  gateway echoes the create event, so anything created here is also kept in
  a memo that is consulted on a cache miss. A memo entry whose id shows up
  in the cache under another name (renamed) is dropped.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, Optional

import discord

from ocsubmit.config import OCConfig
from ocsubmit.models import ProvisionResult, Submission
from ocsubmit.processing import channel_name_for, role_name_for

log = logging.getLogger(__name__)


WELCOME_TEMPLATE = (
    "A new Prodigy has been reborn!\n"
    "This is your private OC channel for **{name}**.\n"
    "Use this space to organise character details, jutsu lists, and updates.\n"
    "Only you, moderators, and game masters can view this channel."
)

AUDIT_TEMPLATE = (
    "OC created: **{name}**\n"
    "Role: <@&{role_id}> (ID: {role_id})\n"
    "Channel: <#{channel_id}> (ID: {channel_id})\n"
    "By: <@{author_id}>"
)


def character_overwrite() -> discord.PermissionOverwrite:
    return discord.PermissionOverwrite(
        view_channel=True,
        send_messages=True,
        read_message_history=True,
        attach_files=True,
        embed_links=True,
        add_reactions=True,
    )

def staff_overwrite() -> discord.PermissionOverwrite:
    return discord.PermissionOverwrite(
        view_channel=True,
        send_messages=True,
        read_message_history=True,
        manage_messages=True,
        manage_channels=True,
    )

def _role_target(guild: discord.Guild, role_id: int):
    return guild.get_role(role_id) or discord.Object(id=role_id, type=discord.Role)

def build_overwrites(guild: discord.Guild, role: discord.Role, config: OCConfig) -> Dict:
    """
    Fixed order: @everyone, character role, moderators, game masters (optional).
    """
    overwrites = {
        guild.default_role: discord.PermissionOverwrite(view_channel=False),
        role: character_overwrite(),
        _role_target(guild, config.mod_role_id): staff_overwrite(),
    }
    if config.gm_role_id:
        overwrites[_role_target(guild, config.gm_role_id)] = staff_overwrite()
    return overwrites


class KeyedLocks:
    """
    One asyncio.Lock per key; entries are dropped once nobody holds or waits.
    """
    def __init__(self):
        self._locks: Dict[str, asyncio.Lock] = {}
        self._users: Dict[str, int] = {}

    def __len__(self) -> int:
        return len(self._locks)

    def hold(self, key: str) -> "_Held":
        return _Held(self, key)


class _Held:
    def __init__(self, owner: KeyedLocks, key: str):
        self.owner = owner
        self.key = key

    async def __aenter__(self):
        lock = self.owner._locks.setdefault(self.key, asyncio.Lock())
        self.owner._users[self.key] = self.owner._users.get(self.key, 0) + 1
        try:
            await lock.acquire()
        except BaseException:
            self._release_user()
            raise
        return lock

    async def __aexit__(self, exc_type, exc, tb):
        self.owner._locks[self.key].release()
        self._release_user()

    def _release_user(self):
        self.owner._users[self.key] -= 1
        if self.owner._users[self.key] == 0:
            del self.owner._users[self.key]
            del self.owner._locks[self.key]


class ProvisioningEngine:
    def __init__(self, guild_resolver, config: OCConfig):
        """
        guild_resolver: async () -> discord.Guild for the configured guild.
        """
        self.guild_resolver = guild_resolver
        self.config = config
        self.locks = KeyedLocks()

        # created here but maybe not yet in the guild cache
        self._recent_roles: Dict[str, discord.Role] = {}
        self._recent_channels: Dict[str, discord.TextChannel] = {}

    # -----------------------------
    # Memo upkeep
    # -----------------------------

    def forget_role(self, role_id: int) -> None:
        for key, role in list(self._recent_roles.items()):
            if role.id == role_id:
                del self._recent_roles[key]

    def forget_channel(self, channel_id: int) -> None:
        for key, ch in list(self._recent_channels.items()):
            if ch.id == channel_id:
                del self._recent_channels[key]

    # -----------------------------
    # Lookups
    # -----------------------------

    def find_role(self, guild: discord.Guild, role_name: str) -> Optional[discord.Role]:
        key = role_name.lower()
        role = discord.utils.find(lambda r: r.name.lower() == key, guild.roles)
        if role is not None:
            self._recent_roles.pop(key, None)
            return role
        role = self._recent_roles.get(key)
        if role is not None and guild.get_role(role.id) is not None:
            # cached under another name: renamed since we created it
            del self._recent_roles[key]
            return None
        return role

    def find_channel(self, guild: discord.Guild, channel_name: str) -> Optional[discord.TextChannel]:
        ch = discord.utils.get(guild.text_channels, name=channel_name)
        if ch is not None:
            self._recent_channels.pop(channel_name, None)
            return ch
        ch = self._recent_channels.get(channel_name)
        if ch is not None and guild.get_channel(ch.id) is not None:
            del self._recent_channels[channel_name]
            return None
        return ch

    # -----------------------------
    # Steps
    # -----------------------------

    async def ensure_role(self, guild: discord.Guild, role_name: str, full_name: str) -> tuple[discord.Role, bool]:
        role = self.find_role(guild, role_name)
        if role is not None:
            return role, False

        role = await guild.create_role(name=role_name, reason=f"Created OC role for {full_name}")
        self._recent_roles[role_name.lower()] = role
        log.info("Created OC role %r (%s) for %s", role_name, role.id, full_name)
        return role, True

    async def ensure_channel(self, guild: discord.Guild, role: discord.Role, full_name: str,
                             submission: Submission) -> tuple[discord.TextChannel, bool]:
        channel_name = channel_name_for(full_name)
        channel = self.find_channel(guild, channel_name)
        if channel is not None:
            return channel, False

        category = None
        if self.config.category_id:
            category = guild.get_channel(self.config.category_id)
            if category is None:
                log.warning("OC category %s not found; creating %s without a parent",
                            self.config.category_id, channel_name)

        channel = await guild.create_text_channel(
            channel_name,
            category=category,
            overwrites=build_overwrites(guild, role, self.config),
            reason=f"Created OC channel for {full_name}",
        )
        self._recent_channels[channel_name] = channel
        log.info("Created OC channel #%s (%s) for %s", channel_name, channel.id, full_name)

        await channel.send(WELCOME_TEMPLATE.format(name=full_name))
        await self.mirror_embed(channel, submission)
        return channel, True

    async def mirror_embed(self, channel: discord.TextChannel, submission: Submission) -> bool:
        """
        Re-post the submission's first embed so the player sees their sheet.
        Best-effort: failures are logged, never raised.
        """
        if not submission.embeds:
            return False
        try:
            await channel.send(embed=submission.embeds[0])
            return True
        except Exception as e:
            log.warning("Failed to copy embed to #%s: %s", getattr(channel, "name", channel.id), e)
            return False

    async def assign_role(self, role: discord.Role, full_name: str, submission: Submission) -> bool:
        member = submission.member
        if member is None:
            log.warning("Submitter %s for %s is not a guild member; role not assigned",
                        submission.author_id, full_name)
            return False
        if any(r.id == role.id for r in member.roles):
            return False
        await member.add_roles(role, reason=f"OC submission: {full_name}")
        return True

    async def post_audit(self, guild: discord.Guild, full_name: str, role: discord.Role,
                         channel: discord.TextChannel, submission: Submission) -> bool:
        if not self.config.log_channel_id:
            return False
        log_channel = guild.get_channel(self.config.log_channel_id)
        if log_channel is None or not hasattr(log_channel, "send"):
            log.warning("Audit channel %s not found or not text-based", self.config.log_channel_id)
            return False
        await log_channel.send(AUDIT_TEMPLATE.format(
            name=full_name,
            role_id=role.id,
            channel_id=channel.id,
            author_id=submission.author_id,
        ))
        return True

    # -----------------------------
    # Entry point
    # -----------------------------

    async def provision(self, full_name: str, submission: Submission) -> ProvisionResult:
        role_name = role_name_for(full_name)
        if not role_name:
            raise ValueError("Cannot provision an empty name")

        guild = await self.guild_resolver()

        # always role lock, then channel lock; distinct names can share a slug
        async with self.locks.hold(f"role:{role_name.lower()}"):
            role, role_created = await self.ensure_role(guild, role_name, full_name)
            async with self.locks.hold(f"channel:{channel_name_for(full_name)}"):
                channel, channel_created = await self.ensure_channel(guild, role, full_name, submission)

        role_assigned = await self.assign_role(role, full_name, submission)
        await self.post_audit(guild, full_name, role, channel, submission)

        return ProvisionResult(
            role=role,
            channel=channel,
            role_created=role_created,
            channel_created=channel_created,
            role_assigned=role_assigned,
        )
