"""Cross-source entity resolution between RAWG records and Steam-sourced games."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from gamecat.config.matching import MatchingConfig, MatchingThresholds, MatchingWeights
from gamecat.domain.matching.similarity import (
    SLUG_MATCH_FLOOR,
    NameSimilarity,
    best_name_similarity,
    company_overlap,
    compare_release_dates,
    compare_slugs,
    genre_overlap,
)
from gamecat.domain.model import MatchingDecision, MatchReason, MatchStatus
from gamecat.domain.normalization import (
    NormalizedName,
    is_year_token,
    normalize_name,
    normalize_slug,
    slug_variants,
)
from gamecat.domain.ports import CandidateQuery

if TYPE_CHECKING:
    from datetime import date

    from gamecat.domain.matching.report import MatchAuditLog
    from gamecat.domain.model import Game, GameRecord
    from gamecat.domain.ports import CatalogRepositories

log = logging.getLogger(__name__)

REQUIRED_TOKEN_COUNT = 3
STRONG_DATE_DIFF_DAYS = 365

type CompanyRef = tuple[str | None, str | None]


@dataclass(frozen=True, slots=True)
class MatchSubject:
    """Side-agnostic view of what is compared: a record or a stored game."""

    names: tuple[NormalizedName, ...]
    slugs: tuple[str, ...] = ()
    release_date: date | None = None
    companies: tuple[CompanyRef, ...] = ()
    genres: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class SubScores:
    """Unweighted sub-scores, each in [0, 1]."""

    name: float = 0.0
    slug: float = 0.0
    release_date: float = 0.0
    company: float = 0.0
    genre: float = 0.0


@dataclass(frozen=True, slots=True)
class MatchSignals:
    slug_match: bool = False
    name_exact: bool = False
    release_date_diff_days: int | None = None
    company_overlap: tuple[str, ...] = ()
    genre_overlap: tuple[str, ...] = ()

    @property
    def date_close(self) -> bool:
        return (
            self.release_date_diff_days is not None
            and self.release_date_diff_days <= STRONG_DATE_DIFF_DAYS
        )

    @property
    def strong_count(self) -> int:
        return sum((self.slug_match, self.name_exact, self.date_close, bool(self.company_overlap)))


@dataclass(frozen=True, slots=True)
class MatchScore:
    total: float
    sub_scores: SubScores
    weighted: SubScores
    signals: MatchSignals
    name_similarity: float

    def as_dict(self) -> dict[str, Any]:
        weighted = self.weighted
        signals = self.signals
        return {
            "total": self.total,
            "name_similarity": self.name_similarity,
            "breakdown": {
                "name": weighted.name,
                "slug": weighted.slug,
                "release_date": weighted.release_date,
                "company": weighted.company,
                "genre": weighted.genre,
            },
            "signals": {
                "slug_match": signals.slug_match,
                "name_exact": signals.name_exact,
                "release_date_diff_days": signals.release_date_diff_days,
                "company_overlap": list(signals.company_overlap),
                "genre_overlap": list(signals.genre_overlap),
            },
        }


@dataclass(frozen=True, slots=True)
class CandidateEvaluation:
    game_id: int
    steam_id: int | None
    score: MatchScore
    accepted: bool

    def as_dict(self) -> dict[str, Any]:
        return {
            "game_id": self.game_id,
            "steam_id": self.steam_id,
            "accepted": self.accepted,
            **self.score.as_dict(),
        }


@dataclass(frozen=True, slots=True)
class MatchResult:
    status: MatchStatus
    reason: MatchReason
    game: Game | None = None
    score: float | None = None
    evaluations: tuple[CandidateEvaluation, ...] = field(default_factory=tuple)

    @property
    def matched(self) -> bool:
        return self.status is MatchStatus.MATCHED and self.game is not None


def weigh(sub_scores: SubScores, weights: MatchingWeights) -> SubScores:
    return SubScores(
        name=round(sub_scores.name * weights.name, 4),
        slug=round(sub_scores.slug * weights.slug, 4),
        release_date=round(sub_scores.release_date * weights.release_date, 4),
        company=round(sub_scores.company * weights.company, 4),
        genre=round(sub_scores.genre * weights.genre, 4),
    )


def combine(sub_scores: SubScores, weights: MatchingWeights) -> float:
    """Weighted total, capped at 1. Non-decreasing in every sub-score."""
    total = (
        sub_scores.name * weights.name
        + sub_scores.slug * weights.slug
        + sub_scores.release_date * weights.release_date
        + sub_scores.company * weights.company
        + sub_scores.genre * weights.genre
    )
    return round(min(total, 1.0), 4)


def status_for_score(
    total: float,
    thresholds: MatchingThresholds,
) -> tuple[MatchStatus, MatchReason]:
    if total >= thresholds.auto_match:
        return MatchStatus.MATCHED, MatchReason.AUTO_MATCH
    if total >= thresholds.pending:
        return MatchStatus.PENDING, MatchReason.SCORE_THRESHOLD_PENDING
    return MatchStatus.REJECTED, MatchReason.SCORE_REJECTED


def passes_gate(score: MatchScore, thresholds: MatchingThresholds) -> bool:
    required = 1 if score.name_similarity >= thresholds.name_gate else 2
    return score.signals.strong_count >= required


def score_subjects(
    left: MatchSubject,
    right: MatchSubject,
    weights: MatchingWeights | None = None,
) -> MatchScore:
    """Score two subjects against each other; argument order does not matter."""
    weights = weights or MatchingWeights()
    names: NameSimilarity = best_name_similarity(left.names, right.names)
    slugs = compare_slugs(left.slugs, right.slugs)
    dates = compare_release_dates(left.release_date, right.release_date)
    companies = company_overlap(left.companies, right.companies)
    genres = genre_overlap(left.genres, right.genres)

    name_score = names.score
    if slugs.match:
        name_score = max(name_score, SLUG_MATCH_FLOOR)
    sub_scores = SubScores(
        name=name_score,
        slug=slugs.score,
        release_date=dates.score,
        company=companies.score,
        genre=genres.score,
    )
    return MatchScore(
        total=combine(sub_scores, weights),
        sub_scores=sub_scores,
        weighted=weigh(sub_scores, weights),
        signals=MatchSignals(
            slug_match=slugs.match,
            name_exact=names.exact,
            release_date_diff_days=dates.diff_days,
            company_overlap=companies.overlap,
            genre_overlap=genres.overlap,
        ),
        name_similarity=names.continuous,
    )


def _unique(values: list[str]) -> tuple[str, ...]:
    return tuple(dict.fromkeys(value.lower() for value in values if value))


class MatchingEngine:
    """Decide whether a RAWG-only record describes a game already stored from Steam.

    Evaluation states: ``no_candidate`` (not applicable) and then ``matched``,
    ``pending`` (held for review) or ``rejected``. The decision is written back onto
    the record and, when an audit log is attached, appended to it.
    """

    def __init__(
        self,
        config: MatchingConfig | None = None,
        *,
        audit_log: MatchAuditLog | None = None,
    ) -> None:
        self.config = config or MatchingConfig()
        self.audit_log = audit_log

    @staticmethod
    def applies_to(record: GameRecord) -> bool:
        return record.steam_id is None and record.rawg_id is not None

    def evaluate(self, record: GameRecord, repositories: CatalogRepositories) -> MatchResult:
        if not self.applies_to(record):
            return MatchResult(status=MatchStatus.NO_CANDIDATE, reason=MatchReason.NOT_APPLICABLE)

        subject = self.subject_for_record(record)
        query = self.candidate_query(record, subject)
        candidates = repositories.games.find_match_candidates(query)
        if not candidates:
            result = MatchResult(status=MatchStatus.REJECTED, reason=MatchReason.NO_CANDIDATE)
            return self._finish(record, result)

        evaluations: list[tuple[Game, CandidateEvaluation]] = []
        for game in candidates:
            if game.id is None:
                continue
            score = score_subjects(
                subject,
                self.subject_for_game(game, repositories),
                self.config.weights,
            )
            evaluation = CandidateEvaluation(
                game_id=game.id,
                steam_id=game.steam_id,
                score=score,
                accepted=passes_gate(score, self.config.thresholds),
            )
            evaluations.append((game, evaluation))
        evaluations.sort(key=lambda pair: (-pair[1].score.total, pair[1].game_id))
        ordered = tuple(evaluation for _, evaluation in evaluations)

        accepted = [(game, evaluation) for game, evaluation in evaluations if evaluation.accepted]
        if not accepted:
            result = MatchResult(
                status=MatchStatus.REJECTED,
                reason=MatchReason.INSUFFICIENT_SIGNALS,
                evaluations=ordered,
            )
            return self._finish(record, result)

        best_game, best = accepted[0]
        if self._conflicts(record, best_game):
            log.warning(
                "Identifier conflict for %s: candidate game %s carries steam_id=%s rawg_id=%s",
                record.identity,
                best_game.id,
                best_game.steam_id,
                best_game.rawg_id,
            )
            result = MatchResult(
                status=MatchStatus.REJECTED,
                reason=MatchReason.IDENTIFIER_CONFLICT,
                game=best_game,
                score=best.score.total,
                evaluations=ordered,
            )
            return self._finish(record, result)

        status, reason = status_for_score(best.score.total, self.config.thresholds)
        result = MatchResult(
            status=status,
            reason=reason,
            game=best_game,
            score=best.score.total,
            evaluations=ordered,
        )
        return self._finish(record, result)

    # subjects ------------------------------------------------------------------------

    def subject_for_record(self, record: GameRecord) -> MatchSubject:
        context = record.matching_context
        names = [normalize_name(record.name)]
        if record.og_name and record.og_name != record.name:
            names.append(normalize_name(record.og_name))

        companies: tuple[CompanyRef, ...] = tuple(
            (company.name, company.slug) for company in record.companies
        )
        if not companies and context is not None:
            companies = tuple((None, slug) for slug in context.company_slugs)

        genres: tuple[str, ...] = tuple(record.detail.genres) if record.detail else ()
        if not genres and context is not None:
            genres = context.genre_tokens

        release_date = record.release_date
        if context is not None and context.release_date is not None:
            release_date = context.release_date

        return MatchSubject(
            names=tuple(names),
            slugs=self._record_slugs(record),
            release_date=release_date,
            companies=companies,
            genres=genres,
        )

    @staticmethod
    def subject_for_game(game: Game, repositories: CatalogRepositories) -> MatchSubject:
        names = [normalize_name(game.name)]
        if game.og_name and game.og_name != game.name:
            names.append(normalize_name(game.og_name))
        companies: tuple[CompanyRef, ...] = ()
        genres: tuple[str, ...] = ()
        if game.id is not None:
            companies = tuple(
                (company.name, company.slug)
                for company, _role in repositories.companies.roles_for_game(game.id)
            )
            detail = repositories.details.get_for_game(game.id)
            if detail is not None:
                genres = tuple(detail.genres)
        return MatchSubject(
            names=tuple(names),
            slugs=_unique([game.slug, game.og_slug]),
            release_date=game.release_date,
            companies=companies,
            genres=genres,
        )

    @staticmethod
    def _record_slugs(record: GameRecord) -> tuple[str, ...]:
        context = record.matching_context
        slugs: list[str] = [
            record.og_slug or "",
            normalize_slug(record.og_name),
            record.slug or "",
            normalize_slug(record.name),
        ]
        if context is not None:
            slugs.extend(context.candidate_slugs)
        slugs.extend(slug_variants(record.og_name or record.name))
        return _unique(slugs)

    def candidate_query(self, record: GameRecord, subject: MatchSubject) -> CandidateQuery:
        context = record.matching_context
        tokens: tuple[str, ...] = ()
        if context is not None and context.tokens:
            tokens = context.tokens
        else:
            tokens = normalize_name(record.og_name or record.name).tokens
        required = tuple(dict.fromkeys(token for token in tokens if not is_year_token(token)))
        return CandidateQuery(
            slugs=subject.slugs,
            required_tokens=required[:REQUIRED_TOKEN_COUNT],
            release_date=subject.release_date,
            window_days=self.config.date_window_days,
            steam_ids=context.candidate_steam_ids if context is not None else (),
            limit=self.config.candidate_limit,
        )

    @staticmethod
    def _conflicts(record: GameRecord, game: Game) -> bool:
        if record.steam_id is not None and game.steam_id not in (None, record.steam_id):
            return True
        return game.rawg_id is not None and game.rawg_id != record.rawg_id

    def _finish(self, record: GameRecord, result: MatchResult) -> MatchResult:
        log_path = None
        if self.audit_log is not None:
            log_path = str(self.audit_log.append(record, result))
        record.matching_decision = MatchingDecision(
            status=result.status,
            reason=result.reason,
            matched_game_id=result.game.id if result.matched and result.game else None,
            score=result.score,
            log_path=log_path,
        )
        if result.matched:
            log.info(
                "Matched %s to game %s (score=%.4f)",
                record.identity,
                result.game.id if result.game else None,
                result.score or 0.0,
            )
        else:
            log.debug("No automatic match for %s: %s", record.identity, result.reason)
        return result
