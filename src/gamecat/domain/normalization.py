"""Title normalization: comparable token sets and URL-safe slugs.

Folding is deliberately narrow. Only Greek letters, Unicode Roman numeral glyphs,
trademark and punctuation glyphs and Latin diacritics are rewritten; CJK, Hangul and
kana pass through unchanged.
"""

from __future__ import annotations

import re
import unicodedata
from dataclasses import dataclass
from typing import Final

MAX_SLUG_LENGTH: Final[int] = 100

_GREEK_LOWER: Final[dict[str, str]] = {
    "α": "alpha",
    "β": "beta",
    "γ": "gamma",
    "δ": "delta",
    "ε": "epsilon",
    "ζ": "zeta",
    "η": "eta",
    "θ": "theta",
    "ι": "iota",
    "κ": "kappa",
    "λ": "lambda",
    "μ": "mu",
    "ν": "nu",
    "ξ": "xi",
    "ο": "omicron",
    "π": "pi",
    "ρ": "rho",
    "σ": "sigma",
    "ς": "sigma",
    "τ": "tau",
    "υ": "upsilon",
    "φ": "phi",
    "χ": "chi",
    "ψ": "psi",
    "ω": "omega",
}
GREEK_LETTERS: Final[dict[str, str]] = {
    **_GREEK_LOWER,
    **{letter.upper(): name for letter, name in _GREEK_LOWER.items() if letter != "ς"},
}

ROMAN_NUMERAL_GLYPHS: Final[dict[str, str]] = {
    **{chr(0x2160 + offset): str(offset + 1) for offset in range(12)},
    **{chr(0x2170 + offset): str(offset + 1) for offset in range(12)},
}

SPECIAL_CHARACTERS: Final[dict[str, str]] = {
    "™": "",
    "®": "",
    "©": "",
    "•": "",
    "·": "",
    "…": "",
    "–": "-",
    "—": "-",
    "‘": "",
    "’": "",
    "“": "",
    "”": "",
    "：": ":",
    "；": ";",
    "№": "no",
}

STOPWORDS: Final[frozenset[str]] = frozenset(
    {"the", "a", "an", "and", "or", "of", "for", "edition", "definitive", "remastered", "hd"}
)

_SLUG_DISALLOWED = re.compile(
    r"[^a-z0-9\uac00-\ud7a3\u3041-\u3093\u30a1-\u30f6\u30fc\u4e00-\u9fff\s-]"
)
_WHITESPACE = re.compile(r"\s+")
_HYPHENS = re.compile(r"-+")
_NON_WORD = re.compile(r"[\W_]+")
_ROMAN_WORD = re.compile(r"\b[ivxlcdm]+\b")
_YEAR_TOKEN = re.compile(r"^(19|20)\d{2}$")

_ROMAN_VALUES: Final[tuple[tuple[int, str], ...]] = (
    (1000, "M"),
    (900, "CM"),
    (500, "D"),
    (400, "CD"),
    (100, "C"),
    (90, "XC"),
    (50, "L"),
    (40, "XL"),
    (10, "X"),
    (9, "IX"),
    (5, "V"),
    (4, "IV"),
    (1, "I"),
)
_ROMAN_DIGITS: Final[dict[str, int]] = {
    "I": 1,
    "V": 5,
    "X": 10,
    "L": 50,
    "C": 100,
    "D": 500,
    "M": 1000,
}


@dataclass(frozen=True, slots=True)
class NormalizedName:
    original: str
    lowercase: str
    tokens: tuple[str, ...]
    compact: str
    slug: str


# Roman numerals ----------------------------------------------------------------------


def roman_to_arabic(value: str) -> int | None:
    upper = value.upper()
    if not upper or any(char not in _ROMAN_DIGITS for char in upper):
        return None
    total = 0
    for index, char in enumerate(upper):
        current = _ROMAN_DIGITS[char]
        following = _ROMAN_DIGITS[upper[index + 1]] if index + 1 < len(upper) else 0
        total += -current if current < following else current
    return total


def arabic_to_roman(value: int) -> str:
    if not 0 < value < 4000:
        raise ValueError(f"Roman numerals cover 1..3999, got {value}")
    parts: list[str] = []
    remaining = value
    for amount, numeral in _ROMAN_VALUES:
        count, remaining = divmod(remaining, amount)
        parts.append(numeral * count)
    return "".join(parts)


def roman_token_to_arabic(token: str) -> str | None:
    """Return the Arabic form of a canonical Roman numeral token, else ``None``.

    Non-canonical spellings (``IIII``, ``VX``) are not numerals and stay untouched.
    """
    value = roman_to_arabic(token)
    if value is None or not 0 < value < 4000:
        return None
    if arabic_to_roman(value) != token.upper():
        return None
    return str(value)


# Slugs -------------------------------------------------------------------------------


def _replace_all(value: str, table: dict[str, str]) -> str:
    if not any(char in value for char in table):
        return value
    return "".join(table.get(char, char) for char in value)


def _fold_latin_diacritics(value: str) -> str:
    decomposed = unicodedata.normalize("NFKD", value)
    kept: list[str] = []
    for char in decomposed:
        # combining marks are dropped only after ASCII letters so kana voicing marks survive
        if unicodedata.combining(char) and kept and kept[-1].isascii():
            continue
        kept.append(char)
    return unicodedata.normalize("NFC", "".join(kept))


def normalize_slug(value: str | None, *, max_length: int = MAX_SLUG_LENGTH) -> str:
    """Turn a game title into a hyphenated slug; empty or symbol-only input yields ``""``."""
    if not value:
        return ""
    text = value.strip().lower()
    if not text:
        return ""
    text = _replace_all(text, GREEK_LETTERS)
    text = _replace_all(text, ROMAN_NUMERAL_GLYPHS)
    text = _replace_all(text, SPECIAL_CHARACTERS)
    text = _fold_latin_diacritics(text).lower()
    text = _SLUG_DISALLOWED.sub("", text)
    text = _WHITESPACE.sub("-", text)
    text = _HYPHENS.sub("-", text)
    return text.strip("-")[:max_length].rstrip("-")


def slug_variants(name: str | None) -> tuple[str, ...]:
    """Slugs of ``name`` with Roman numerals spelled as digits and small digits as numerals."""
    if not name:
        return ()
    base = normalize_slug(name)
    parts = re.split(r"(\s+|[^\w]+)", name)
    to_arabic: list[str] = []
    to_roman: list[str] = []
    for part in parts:
        stripped = part.strip()
        converted = roman_token_to_arabic(stripped) if stripped else None
        to_arabic.append(converted if converted is not None else part)
        if stripped.isdigit() and 0 < int(stripped) <= 20:
            to_roman.append(arabic_to_roman(int(stripped)))
        else:
            to_roman.append(part)
    variants: list[str] = []
    for candidate in (normalize_slug("".join(to_arabic)), normalize_slug("".join(to_roman))):
        if candidate and candidate != base and candidate not in variants:
            variants.append(candidate)
    return tuple(variants)


# Names -------------------------------------------------------------------------------


def fold_text(value: str) -> str:
    """Lowercase, strip Latin diacritics; used for company and genre keys as well."""
    return _fold_latin_diacritics(value).lower()


def _convert_roman_words(value: str) -> str:
    def convert(match: re.Match[str]) -> str:
        return roman_token_to_arabic(match.group(0)) or match.group(0)

    return _ROMAN_WORD.sub(convert, value)


def tokenize(value: str) -> tuple[str, ...]:
    tokens: list[str] = []
    for raw in _NON_WORD.split(value):
        token = raw.strip()
        if len(token) < 2 and not token.isdigit():
            continue
        token = roman_token_to_arabic(token) or token
        if token in STOPWORDS:
            continue
        tokens.append(token)
    return tuple(tokens)


def is_year_token(token: str) -> bool:
    return bool(_YEAR_TOKEN.match(token))


def normalize_name(raw: str | None) -> NormalizedName:
    original = raw or ""
    folded = _replace_all(original.lower(), GREEK_LETTERS)
    folded = _replace_all(folded, ROMAN_NUMERAL_GLYPHS)
    folded = _replace_all(folded, SPECIAL_CHARACTERS)
    lowercase = _convert_roman_words(fold_text(folded)).strip()
    return NormalizedName(
        original=original,
        lowercase=lowercase,
        tokens=tokenize(lowercase),
        compact=_NON_WORD.sub("", lowercase),
        slug=normalize_slug(original),
    )
