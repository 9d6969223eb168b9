import re

import pytest

from ocsubmit.processing import (
    channel_name_for,
    extract_name,
    name_from_embed_title,
    role_name_for,
    slugify,
    split_name,
)


@pytest.mark.parametrize(
    "content, expected",
    [
        ("OC: Mito Uzumaki", "Mito Uzumaki"),
        ("  oc :   Mito Uzumaki  ", "Mito Uzumaki"),
        ("Name: Sakura Haruno", "Sakura Haruno"),
        ("NAME:Sakura Haruno", "Sakura Haruno"),
        ("Sakura Haruno", "Sakura Haruno"),
        ("   ", ""),
        ("", ""),
    ],
)
def test_extract_name_from_text(content, expected):
    assert extract_name(content) == expected


def test_multiline_prefix_falls_back_to_whole_text():
    content = "OC: Mito Uzumaki\nClan: Uzumaki"
    assert extract_name(content) == content


def test_embed_title_wins_over_text():
    assert extract_name("random chatter", "New submission - OC: Hashirama Senju") == "Hashirama Senju"


def test_embed_title_without_marker_falls_back_to_text():
    assert name_from_embed_title("Character Sheet") == ""
    assert extract_name("Name: Tobirama Senju", "Character Sheet") == "Tobirama Senju"


def test_embed_title_match_is_case_insensitive():
    assert extract_name("", "oc:  Kushina Uzumaki ") == "Kushina Uzumaki"


def test_split_name_joins_remainder_with_hyphens():
    assert split_name("Mito Uzumaki") == ("Mito", "Uzumaki")
    assert split_name("Hatake  Kakashi  the   Sixth") == ("Hatake", "Kakashi-the-Sixth")
    assert split_name("Gaara") is None
    assert split_name("") is None


@pytest.mark.parametrize("name", ["Mito Uzumaki", "mito   uzumaki-senju", "Mito\tUzumaki of the Whirlpool"])
def test_role_name_is_first_token(name):
    first, _ = split_name(name)
    assert role_name_for(name) == first == name.split()[0]


@pytest.mark.parametrize(
    "text, expected",
    [
        ("Mito Uzumaki", "mito-uzumaki"),
        ("  Éclair  D'Arc!! ", "eclair-d-arc"),
        ("Zoë---Ñandú", "zoe-nandu"),
        ("???", ""),
        ("", ""),
    ],
)
def test_slugify(text, expected):
    assert slugify(text) == expected


@pytest.mark.parametrize(
    "text",
    ["Mito Uzumaki", "--A  b--", "Ünïcødé Nâmé ✦ 2", "x" * 89 + " y" * 5, "a-" * 60, "日本 Name"],
)
def test_slugify_properties(text):
    slug = slugify(text)
    assert re.fullmatch(r"[a-z0-9-]*", slug)
    assert not slug.startswith("-") and not slug.endswith("-")
    assert len(slug) <= 90
    assert slugify(slug) == slug


def test_channel_name():
    assert channel_name_for("Mito Uzumaki") == "oc-mito-uzumaki"
