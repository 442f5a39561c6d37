from __future__ import annotations

import pytest

from gamecat.domain.normalization import (
    arabic_to_roman,
    normalize_name,
    normalize_slug,
    roman_token_to_arabic,
    slug_variants,
    tokenize,
)

TITLES = [
    "METAL GEAR SOLID Δ: SNAKE EATER",
    "Pokémon™ Legends: Arceus",
    "FINAL FANTASY Ⅶ REMAKE",
    "배틀그라운드",
    "ファイナルファンタジー",
    "  --The   Witcher 3 -- Wild Hunt--  ",
    "Baldur's Gate 3",
    "Half-Life… Alyx®",
]


@pytest.mark.parametrize("title", TITLES)
def test_normalize_slug_is_idempotent(title: str) -> None:
    once = normalize_slug(title)
    assert normalize_slug(once) == once


def test_greek_letters_fold_to_their_latin_names() -> None:
    expected = "metal-gear-solid-delta-snake-eater"
    assert normalize_slug("METAL GEAR SOLID Δ: SNAKE EATER") == expected
    assert normalize_slug("Metal Gear Solid Delta: Snake Eater") == expected


def test_roman_numeral_glyphs_become_digits() -> None:
    assert normalize_slug("FINAL FANTASY Ⅶ REMAKE") == "final-fantasy-7-remake"
    assert normalize_slug("Ⅻ") == "12"


def test_trademark_and_diacritics_are_removed() -> None:
    assert normalize_slug("Pokémon™ Legends: Arceus") == "pokemon-legends-arceus"
    assert normalize_slug("Half-Life… Alyx®") == "half-life-alyx"


def test_cjk_hangul_and_kana_are_preserved() -> None:
    assert normalize_slug("배틀그라운드") == "배틀그라운드"
    assert normalize_slug("ファイナルファンタジー") == "ファイナルファンタジー"
    assert normalize_slug("原神 Genshin") == "原神-genshin"


def test_whitespace_and_hyphens_collapse() -> None:
    slug = normalize_slug("  --The   Witcher 3 -- Wild Hunt--  ")
    assert slug == "the-witcher-3-wild-hunt"


@pytest.mark.parametrize("value", [None, "", "   ", "™®©", "!!! ???"])
def test_empty_or_symbol_only_input_yields_empty_slug(value: str | None) -> None:
    assert normalize_slug(value) == ""


def test_slug_is_capped_without_trailing_hyphen() -> None:
    slug = normalize_slug("word " * 40)
    assert len(slug) <= 100
    assert not slug.endswith("-")


def test_normalize_name_builds_comparable_forms() -> None:
    normalized = normalize_name("The Witcher III: Wild Hunt")

    assert normalized.lowercase == "the witcher 3: wild hunt"
    assert normalized.tokens == ("witcher", "3", "wild", "hunt")
    assert normalized.compact == "thewitcher3wildhunt"
    assert normalized.slug == "the-witcher-iii-wild-hunt"


def test_tokenize_drops_stopwords_and_single_letters() -> None:
    assert tokenize("the legend of zelda a link") == ("legend", "zelda", "link")


def test_roman_tokens_only_convert_when_canonical() -> None:
    assert roman_token_to_arabic("IV") == "4"
    assert roman_token_to_arabic("IIII") is None
    assert roman_token_to_arabic("hello") is None
    assert arabic_to_roman(14) == "XIV"


def test_slug_variants_cover_both_numeral_styles() -> None:
    assert slug_variants("Final Fantasy VII") == ("final-fantasy-7",)
    assert slug_variants("Final Fantasy 7") == ("final-fantasy-vii",)
    assert slug_variants("Celeste") == ()
