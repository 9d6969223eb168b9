"""
Roster cache: the set of OC full names already registered in the ranking sheet.

The snapshot is replaced wholesale on every refresh, never patched. Names are
stored lowercased so membership checks are case-insensitive.

Sheet layout (form responses tab):
- row 0 is the header
- column B (index 1) holds the character's full name
"""

from __future__ import annotations

import csv
import io
import logging
from typing import Awaitable, Callable, FrozenSet, Optional

from ocsubmit.config import RosterFailurePolicy
from ocsubmit.errors import RosterFetchError

log = logging.getLogger(__name__)

NAME_COLUMN_INDEX = 1

FetchText = Callable[[str], Awaitable[str]]


def parse_roster_csv(text: str) -> FrozenSet[str]:
    rows = [row for row in csv.reader(io.StringIO(text or "")) if any(cell.strip() for cell in row)]
    names = set()
    for row in rows[1:]:
        raw = row[NAME_COLUMN_INDEX].strip() if len(row) > NAME_COLUMN_INDEX else ""
        if raw:
            names.add(raw.lower())
    return frozenset(names)


class RosterCache:
    def __init__(
        self,
        fetch: FetchText,
        url: Optional[str],
        on_fetch_failure: RosterFailurePolicy = RosterFailurePolicy.TREAT_AS_EMPTY,
    ):
        self.fetch = fetch
        self.url = url
        self.on_fetch_failure = on_fetch_failure
        self._names: FrozenSet[str] = frozenset()

    @property
    def snapshot(self) -> FrozenSet[str]:
        return self._names

    def __len__(self) -> int:
        return len(self._names)

    def contains(self, full_name: str) -> bool:
        return (full_name or "").strip().lower() in self._names

    async def refresh(self) -> FrozenSet[str]:
        if not self.url:
            log.warning("No roster sheet configured (PUBLISHED_SHEET_KEY); duplicate check is disabled")
            self._names = frozenset()
            return self._names

        try:
            text = await self.fetch(self.url)
            names = parse_roster_csv(text)
        except Exception as e:
            if self.on_fetch_failure is RosterFailurePolicy.RAISE:
                if isinstance(e, RosterFetchError):
                    raise
                raise RosterFetchError(f"Unable to load roster: {e}") from e
            log.warning("Unable to load existing OCs from sheet: %s", e)
            names = frozenset()

        self._names = names
        return names
