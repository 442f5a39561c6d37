"""Pairwise similarity signals between an incoming record and a stored game.

Every comparison here is symmetric in its two arguments.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from itertools import product
from typing import TYPE_CHECKING, Final

from gamecat.domain.normalization import fold_text

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence
    from datetime import date

    from gamecat.domain.normalization import NormalizedName

NAME_PREFIX_SCORE: Final[float] = 0.9
NAME_SUBSTRING_SCORE: Final[float] = 0.8
SLUG_MATCH_FLOOR: Final[float] = 0.92
SLUG_PREFIX_SCORE: Final[float] = 0.85
SLUG_SUBSTRING_SCORE: Final[float] = 0.75
# substrings shorter than this say nothing about identity ("go" in "gothic")
MIN_BAND_LENGTH: Final[int] = 4

COMPANY_STOPWORDS: Final[frozenset[str]] = frozenset(
    {
        "inc",
        "ltd",
        "co",
        "corp",
        "corporation",
        "limited",
        "studios",
        "studio",
        "games",
        "game",
        "entertainment",
        "interactive",
    }
)

# (max days apart, score), checked in order
DATE_BANDS: Final[tuple[tuple[int, float], ...]] = (
    (0, 1.0),
    (1, 0.95),
    (3, 0.9),
    (7, 0.8),
    (14, 0.7),
    (30, 0.6),
    (90, 0.5),
    (180, 0.4),
    (365, 0.3),
    (730, 0.2),
    (1825, 0.1),
)

_WORD_SPLIT = re.compile(r"[\W_]+")


def _trigrams(value: str) -> set[str]:
    padded = f"  {value} "
    return {padded[index : index + 3] for index in range(len(padded) - 2)}


def trigram_similarity(left: str, right: str) -> float:
    """Jaccard similarity of padded character trigrams (pg_trgm style)."""
    if not left or not right:
        return 0.0
    if left == right:
        return 1.0
    left_grams = _trigrams(left)
    right_grams = _trigrams(right)
    union = left_grams | right_grams
    if not union:
        return 0.0
    return len(left_grams & right_grams) / len(union)


def token_overlap(left: Iterable[str], right: Iterable[str]) -> float:
    left_set = set(left)
    right_set = set(right)
    if not left_set or not right_set:
        return 0.0
    return len(left_set & right_set) / max(len(left_set), len(right_set))


def _containment_band(left: str, right: str, *, prefix: float, substring: float) -> float:
    shorter, longer = sorted((left, right), key=len)
    if len(shorter) < MIN_BAND_LENGTH:
        return 0.0
    if longer.startswith(shorter):
        return prefix
    if shorter in longer:
        return substring
    return 0.0


# Names -------------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class NameSimilarity:
    score: float
    continuous: float
    exact: bool

    @classmethod
    def empty(cls) -> NameSimilarity:
        return cls(score=0.0, continuous=0.0, exact=False)


def compare_names(left: NormalizedName, right: NormalizedName) -> NameSimilarity:
    if not left.lowercase or not right.lowercase:
        return NameSimilarity.empty()
    continuous = (
        token_overlap(left.tokens, right.tokens) * 0.5
        + trigram_similarity(left.lowercase, right.lowercase) * 0.3
        + trigram_similarity(left.compact, right.compact) * 0.2
    )
    continuous = round(min(continuous, 1.0), 4)
    exact = left.lowercase == right.lowercase
    if exact:
        return NameSimilarity(score=1.0, continuous=1.0, exact=True)
    band = _containment_band(
        left.lowercase,
        right.lowercase,
        prefix=NAME_PREFIX_SCORE,
        substring=NAME_SUBSTRING_SCORE,
    )
    return NameSimilarity(score=max(band, continuous), continuous=continuous, exact=False)


def best_name_similarity(
    left: Sequence[NormalizedName],
    right: Sequence[NormalizedName],
) -> NameSimilarity:
    """Best pairing of display and canonical names from each side."""
    best = NameSimilarity.empty()
    for left_name, right_name in product(left, right):
        candidate = compare_names(left_name, right_name)
        if (candidate.score, candidate.continuous, candidate.exact) > (
            best.score,
            best.continuous,
            best.exact,
        ):
            best = candidate
    return best


# Slugs -------------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class SlugSimilarity:
    score: float
    match: bool


def compare_slugs(left: Iterable[str], right: Iterable[str]) -> SlugSimilarity:
    left_set = {slug.lower() for slug in left if slug}
    right_set = {slug.lower() for slug in right if slug}
    if not left_set or not right_set:
        return SlugSimilarity(score=0.0, match=False)
    if left_set & right_set:
        return SlugSimilarity(score=1.0, match=True)
    best = 0.0
    for left_slug, right_slug in product(left_set, right_set):
        band = _containment_band(
            left_slug,
            right_slug,
            prefix=SLUG_PREFIX_SCORE,
            substring=SLUG_SUBSTRING_SCORE,
        )
        best = max(best, band, trigram_similarity(left_slug, right_slug))
    return SlugSimilarity(score=round(best, 4), match=False)


# Release dates -----------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class DateSimilarity:
    score: float
    diff_days: int | None


def compare_release_dates(left: date | None, right: date | None) -> DateSimilarity:
    if left is None or right is None:
        return DateSimilarity(score=0.0, diff_days=None)
    diff_days = abs((left - right).days)
    for limit, score in DATE_BANDS:
        if diff_days <= limit:
            return DateSimilarity(score=score, diff_days=diff_days)
    return DateSimilarity(score=0.0, diff_days=diff_days)


# Companies and genres ----------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Overlap:
    score: float
    overlap: tuple[str, ...]

    @property
    def any(self) -> bool:
        return bool(self.overlap)


def company_name_key(name: str) -> str:
    """Comparable company key with legal-form and industry noise words removed."""
    tokens = [
        token
        for token in _WORD_SPLIT.split(fold_text(name))
        if len(token) >= 2 and token not in COMPANY_STOPWORDS
    ]
    return " ".join(tokens)


def _company_keys(companies: Iterable[tuple[str | None, str | None]]) -> set[str]:
    keys: set[str] = set()
    for name, slug in companies:
        if slug and slug.strip():
            keys.add(f"slug:{slug.strip().lower()}")
        name_key = company_name_key(name or "")
        if name_key:
            keys.add(f"name:{name_key}")
    return keys


def company_overlap(
    left: Iterable[tuple[str | None, str | None]],
    right: Iterable[tuple[str | None, str | None]],
) -> Overlap:
    """Overlap of ``(name, slug)`` pairs; slugs and normalized names are keyed separately."""
    left_keys = _company_keys(left)
    right_keys = _company_keys(right)
    shared = sorted(left_keys & right_keys)
    if not shared:
        return Overlap(score=0.0, overlap=())
    values = tuple(dict.fromkeys(key.split(":", 1)[1] for key in shared))
    denominator = max(len(left_keys), len(right_keys), 1)
    return Overlap(score=round(len(shared) / denominator, 4), overlap=values)


def genre_overlap(left: Iterable[str], right: Iterable[str]) -> Overlap:
    left_set = {fold_text(genre).strip() for genre in left if genre and genre.strip()}
    right_set = {fold_text(genre).strip() for genre in right if genre and genre.strip()}
    overlap = tuple(sorted(left_set & right_set))
    if not overlap:
        return Overlap(score=0.0, overlap=())
    return Overlap(
        score=round(len(overlap) / max(len(left_set), len(right_set)), 4),
        overlap=overlap,
    )
