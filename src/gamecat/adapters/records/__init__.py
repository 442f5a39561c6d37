"""Processed-record input adapter (collector JSON -> domain records)."""

from __future__ import annotations

from .loader import load_records
from .schema import GameRecordInput, GameRecordPayload
from .translator import parse_game_record, parse_release_date

__all__ = [
    "GameRecordInput",
    "GameRecordPayload",
    "load_records",
    "parse_game_record",
    "parse_release_date",
]
