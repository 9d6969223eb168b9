"""
Environment-backed configuration for the OC submission system.

Responsibilities:
- Read the bot settings from the process environment (after load_dotenv):
    - DISCORD_TOKEN, GUILD_ID, SUBMISSIONS_CHANNEL_ID, MOD_ROLE_ID (required)
    - OC_CATEGORY_ID, GM_ROLE_ID, LOG_CHANNEL_ID (optional; absent disables the feature)
    - PUBLISHED_SHEET_KEY, FORM_RESPONSES_GID (roster sheet location)
    - ROSTER_ON_FETCH_FAILURE: what a failed roster fetch means for dedup
    - COMMAND_PREFIX
- Validate ids up front so a typo fails at startup, not on the first submission.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Optional

from ocsubmit.errors import ConfigError


DEFAULTS = {
    "FORM_RESPONSES_GID": "693027147",
    "ROSTER_ON_FETCH_FAILURE": "treat_as_empty",
    "COMMAND_PREFIX": "oc.",
}

SHEET_CSV_URL = "https://docs.google.com/spreadsheets/d/e/{key}/pub?output=csv&gid={gid}"


class RosterFailurePolicy(str, Enum):
    TREAT_AS_EMPTY = "treat_as_empty"   # fail open: nobody is a duplicate
    RAISE = "raise"


@dataclass(frozen=True)
class OCConfig:
    token: str
    guild_id: int
    submissions_channel_id: int
    mod_role_id: int
    category_id: Optional[int] = None
    gm_role_id: Optional[int] = None
    log_channel_id: Optional[int] = None
    sheet_key: Optional[str] = None
    sheet_gid: str = DEFAULTS["FORM_RESPONSES_GID"]
    on_fetch_failure: RosterFailurePolicy = RosterFailurePolicy.TREAT_AS_EMPTY
    command_prefix: str = DEFAULTS["COMMAND_PREFIX"]

    @property
    def roster_url(self) -> Optional[str]:
        if not self.sheet_key:
            return None
        return SHEET_CSV_URL.format(key=self.sheet_key, gid=self.sheet_gid)

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "OCConfig":
        env = os.environ if env is None else env

        def _str(name: str) -> Optional[str]:
            value = (env.get(name) or "").strip()
            return value or None

        def _required(name: str) -> str:
            value = _str(name)
            if value is None:
                raise ConfigError(f"{name} not found in environment variables")
            return value

        def _id(name: str, required: bool = False) -> Optional[int]:
            raw = _required(name) if required else _str(name)
            if raw is None:
                return None
            try:
                return int(raw)
            except ValueError:
                raise ConfigError(f"{name} must be a numeric Discord id, got {raw!r}") from None

        policy_raw = (_str("ROSTER_ON_FETCH_FAILURE") or DEFAULTS["ROSTER_ON_FETCH_FAILURE"]).lower()
        try:
            policy = RosterFailurePolicy(policy_raw)
        except ValueError:
            allowed = ", ".join(p.value for p in RosterFailurePolicy)
            raise ConfigError(f"ROSTER_ON_FETCH_FAILURE must be one of: {allowed}") from None

        return cls(
            token=_required("DISCORD_TOKEN"),
            guild_id=_id("GUILD_ID", required=True),
            submissions_channel_id=_id("SUBMISSIONS_CHANNEL_ID", required=True),
            mod_role_id=_id("MOD_ROLE_ID", required=True),
            category_id=_id("OC_CATEGORY_ID"),
            gm_role_id=_id("GM_ROLE_ID"),
            log_channel_id=_id("LOG_CHANNEL_ID"),
            sheet_key=_str("PUBLISHED_SHEET_KEY"),
            sheet_gid=_str("FORM_RESPONSES_GID") or DEFAULTS["FORM_RESPONSES_GID"],
            on_fetch_failure=policy,
            command_prefix=_str("COMMAND_PREFIX") or DEFAULTS["COMMAND_PREFIX"],
        )
