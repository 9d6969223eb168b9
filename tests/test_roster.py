import asyncio

import pytest

from ocsubmit.config import RosterFailurePolicy
from ocsubmit.errors import RosterFetchError
from ocsubmit.roster import RosterCache, parse_roster_csv
from tests.fakes import fixed_roster

URL = "https://docs.google.com/spreadsheets/d/e/KEY/pub?output=csv&gid=1"


def test_parse_skips_header_and_blank_names():
    text = (
        "Timestamp,Full Name,Clan\r\n"
        "\r\n"
        "2024-01-01,Sakura Haruno,Leaf\r\n"
        "2024-01-02,,Sand\r\n"
        "2024-01-03,  MITO Uzumaki ,Whirlpool\r\n"
        "2024-01-04\r\n"
    )
    assert parse_roster_csv(text) == {"sakura haruno", "mito uzumaki"}


def test_parse_header_only_row_is_skipped_even_if_it_looks_like_a_name():
    assert parse_roster_csv("x,Sakura Haruno\n") == frozenset()


def test_parse_handles_quoted_commas():
    text = 'ts,name\n1,"Uchiha, Itachi",x\n'
    assert parse_roster_csv(text) == {"uchiha, itachi"}


def test_refresh_replaces_snapshot_and_matches_case_insensitively():
    fetch = fixed_roster("Sakura Haruno")
    cache = RosterCache(fetch, URL)

    names = asyncio.run(cache.refresh())

    assert names == {"sakura haruno"}
    assert cache.snapshot == names
    assert len(cache) == 1
    assert cache.contains("SAKURA HARUNO")
    assert cache.contains("  sakura haruno ")
    assert not cache.contains("Mito Uzumaki")
    assert fetch.calls == [URL]


def test_fetch_failure_is_treated_as_empty_roster(caplog):
    async def broken(url):
        raise ConnectionError("network down")

    cache = RosterCache(fixed_roster("Sakura Haruno"), URL)
    asyncio.run(cache.refresh())
    cache.fetch = broken

    with caplog.at_level("WARNING"):
        names = asyncio.run(cache.refresh())

    assert names == frozenset()
    assert not cache.contains("Sakura Haruno")
    assert "network down" in caplog.text


def test_raise_policy_propagates_and_keeps_previous_snapshot():
    cache = RosterCache(fixed_roster("Sakura Haruno"), URL, on_fetch_failure=RosterFailurePolicy.RAISE)
    asyncio.run(cache.refresh())

    async def broken(url):
        raise ConnectionError("network down")

    cache.fetch = broken
    with pytest.raises(RosterFetchError):
        asyncio.run(cache.refresh())
    assert cache.contains("sakura haruno")


def test_missing_url_means_empty_roster():
    fetch = fixed_roster("Sakura Haruno")
    cache = RosterCache(fetch, None)

    assert asyncio.run(cache.refresh()) == frozenset()
    assert fetch.calls == []
