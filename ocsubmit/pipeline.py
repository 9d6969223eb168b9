"""
SubmissionPipeline: per-message orchestration for OC submissions.

Flow (first early return wins):
1) scope gate: right guild + submissions channel; bots only via webhook relays
2) extract name (embed title first, then text); nothing found -> ignore
3) refresh the roster
4) duplicate check against the roster -> reply + stop
5) first + last name required -> reply + stop
6) hand off to ProvisioningEngine

Any failure is logged here and never escapes to the event dispatcher.
"""

from __future__ import annotations

import logging
from enum import Enum

import discord

from ocsubmit.config import OCConfig
from ocsubmit.models import Submission
from ocsubmit.processing import extract_name, split_name
from ocsubmit.provisioning import ProvisioningEngine
from ocsubmit.roster import RosterCache

log = logging.getLogger(__name__)


DUPLICATE_REPLY = (
    "An OC named **{name}** already exists in the roster.\n"
    "If you believe this is an error or you wish to update your existing character, "
    "please contact a moderator."
)

FORMAT_HELP_REPLY = (
    'Please include both first and last name when submitting an OC (e.g., "OC: Mito Uzumaki").'
)


class Outcome(str, Enum):
    IGNORED = "ignored"
    DUPLICATE = "duplicate"
    MALFORMED = "malformed"
    PROVISIONED = "provisioned"
    FAILED = "failed"


class SubmissionPipeline:
    def __init__(self, config: OCConfig, roster: RosterCache, engine: ProvisioningEngine):
        self.config = config
        self.roster = roster
        self.engine = engine

    def in_scope(self, msg: discord.Message) -> bool:
        if msg.author.bot and msg.webhook_id is None:
            return False
        if msg.guild is None or msg.guild.id != self.config.guild_id:
            return False
        return msg.channel.id == self.config.submissions_channel_id

    async def handle(self, msg: discord.Message) -> Outcome:
        full_name = None
        try:
            if not self.in_scope(msg):
                return Outcome.IGNORED

            submission = Submission.from_message(msg)
            full_name = extract_name(submission.content, submission.embed_title)
            if not full_name:
                return Outcome.IGNORED

            await self.roster.refresh()

            if self.roster.contains(full_name):
                await msg.reply(DUPLICATE_REPLY.format(name=full_name))
                return Outcome.DUPLICATE

            if split_name(full_name) is None:
                await msg.reply(FORMAT_HELP_REPLY)
                return Outcome.MALFORMED

            result = await self.engine.provision(full_name, submission)
            log.info(
                "Provisioned OC %r for %s (role %s%s, channel %s%s)",
                full_name, submission.author_id,
                result.role.id, " new" if result.role_created else "",
                result.channel.id, " new" if result.channel_created else "",
            )
            return Outcome.PROVISIONED

        except Exception:
            log.exception("Error handling OC submission %r (message %s)", full_name, getattr(msg, "id", None))
            return Outcome.FAILED
