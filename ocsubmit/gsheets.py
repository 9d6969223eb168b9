"""
Published Google Sheets fetcher for the OC roster.

Fetches a sheet tab that has been "published to the web" as CSV:
  https://docs.google.com/spreadsheets/d/e/{key}/pub?output=csv&gid={gid}

Notes:
- This is NOT authenticated; it works only for sheets published to the web.
- Uses the bot-wide aiohttp session (bot.session).
"""

from __future__ import annotations

import aiohttp

from ocsubmit.errors import RosterFetchError


class PublishedSheetFetcher:
    def __init__(self, session: aiohttp.ClientSession, timeout_s: int = 20):
        self.session = session
        self.timeout_s = timeout_s

    async def fetch_csv(self, url: str) -> str:
        try:
            async with self.session.get(
                url,
                timeout=aiohttp.ClientTimeout(total=self.timeout_s),
                headers={
                    "User-Agent": "oc-registrar-bot/1.0",
                    "Accept": "text/csv,text/plain;q=0.9,*/*;q=0.1",
                },
                allow_redirects=True,
            ) as resp:
                body = await resp.text(errors="replace")
        except aiohttp.ClientError as e:
            raise RosterFetchError(f"Network error fetching roster sheet: {e}") from e

        if resp.status != 200:
            snippet = (body[:200] + "...") if len(body) > 200 else body
            raise RosterFetchError(f"HTTP {resp.status} fetching roster sheet. Snippet: {snippet}")

        # Unpublished sheets redirect to a sign-in page instead of failing
        lower = body.lower()
        if "<html" in lower and ("accounts.google.com" in lower or "sign in" in lower):
            raise RosterFetchError("Roster export returned an HTML sign-in page. Is the sheet published?")

        return body
