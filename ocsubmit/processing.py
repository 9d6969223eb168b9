"""
Text utilities for OC submissions.

Responsibilities:
- Extract the candidate full name from a submission:
    - embed title "OC: <name>" wins (submission-form webhooks post embeds)
    - otherwise "OC: <name>" / "Name: <name>" prefixes in the message text
    - otherwise the whole trimmed text
- Split a full name into first / last name.
- Slugify a name into a Discord-safe channel token.

This module is pure (no Discord state, no network).
"""

from __future__ import annotations

import re
import unicodedata
from typing import Optional, Tuple


# -----------------------------
# Name extraction
# -----------------------------

EMBED_TITLE_RE = re.compile(r"OC\s*:\s*(.+)", re.IGNORECASE)

TEXT_PREFIX_RES = (
    re.compile(r"^\s*oc\s*:\s*(.+)$", re.IGNORECASE),
    re.compile(r"^\s*name\s*:\s*(.+)$", re.IGNORECASE),
)

def name_from_embed_title(title: Optional[str]) -> str:
    m = EMBED_TITLE_RE.search(title or "")
    return m.group(1).strip() if m else ""

def name_from_text(content: Optional[str]) -> str:
    trimmed = (content or "").strip()
    for pattern in TEXT_PREFIX_RES:
        m = pattern.match(trimmed)
        if m:
            return m.group(1).strip()
    return trimmed

def extract_name(content: Optional[str], embed_title: Optional[str] = None) -> str:
    """
    Returns the candidate full name, or "" when the message carries none.
    """
    return name_from_embed_title(embed_title) or name_from_text(content)


# -----------------------------
# Name shape
# -----------------------------

def name_parts(full_name: str) -> list[str]:
    return (full_name or "").split()

def split_name(full_name: str) -> Optional[Tuple[str, str]]:
    """
    (first_name, last_name) with the remaining parts hyphen-joined,
    or None if the name has fewer than two parts.
    """
    parts = name_parts(full_name)
    if len(parts) < 2:
        return None
    return parts[0], "-".join(parts[1:])

def role_name_for(full_name: str) -> str:
    parts = name_parts(full_name)
    return parts[0] if parts else ""


# -----------------------------
# Slugs
# -----------------------------

MAX_CHANNEL_NAME = 90
NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")

def slugify(text: str) -> str:
    text = unicodedata.normalize("NFKD", text or "")
    text = "".join(ch for ch in text if not unicodedata.combining(ch))
    text = NON_ALNUM_RE.sub("-", text.lower()).strip("-")
    # truncation can expose a hyphen at the cut
    return text[:MAX_CHANNEL_NAME].rstrip("-")

def channel_name_for(full_name: str) -> str:
    return f"oc-{slugify(full_name)}"
