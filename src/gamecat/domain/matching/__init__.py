"""Cross-source matching: similarity signals, decision engine and audit log."""

from __future__ import annotations

from .engine import (
    CandidateEvaluation,
    MatchingEngine,
    MatchResult,
    MatchScore,
    MatchSignals,
    MatchSubject,
    SubScores,
    combine,
    passes_gate,
    score_subjects,
    status_for_score,
)
from .report import MatchAuditLog, MatchingSummary

__all__ = [
    "CandidateEvaluation",
    "MatchAuditLog",
    "MatchResult",
    "MatchScore",
    "MatchSignals",
    "MatchSubject",
    "MatchingEngine",
    "MatchingSummary",
    "SubScores",
    "combine",
    "passes_gate",
    "score_subjects",
    "status_for_score",
]
