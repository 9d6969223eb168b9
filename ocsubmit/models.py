from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, List, Optional

import discord


@dataclass
class Submission:
    author_id: int
    content: str
    embed_title: Optional[str]
    channel_id: int
    guild_id: Optional[int]
    embeds: List[discord.Embed] = field(default_factory=list)
    member: Optional[discord.Member] = None
    message: Any = None

    @classmethod
    def from_message(cls, msg: discord.Message) -> "Submission":
        embeds = list(getattr(msg, "embeds", []) or [])
        title = None
        if embeds and getattr(embeds[0], "title", None):
            title = str(embeds[0].title)

        guild = getattr(msg, "guild", None)
        author = msg.author
        member = author if isinstance(author, discord.Member) else None
        if member is None and guild is not None:
            # webhook relays arrive as plain users
            member = guild.get_member(author.id)

        return cls(
            author_id=author.id,
            content=msg.content or "",
            embed_title=title,
            channel_id=msg.channel.id,
            guild_id=guild.id if guild else None,
            embeds=embeds,
            member=member,
            message=msg,
        )


@dataclass
class ProvisionResult:
    role: discord.Role
    channel: discord.TextChannel
    role_created: bool
    channel_created: bool
    role_assigned: bool
