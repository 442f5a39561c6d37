"""Read processed records from JSON Lines (or a JSON array) files."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from gamecat.domain.errors import RecordValidationError

from .translator import parse_game_record

if TYPE_CHECKING:
    from pathlib import Path

    from gamecat.domain.model import GameRecord

log = logging.getLogger(__name__)


def _parse(payload: Any, location: str) -> GameRecord:
    try:
        return parse_game_record(payload)
    except ValidationError as exc:
        raise RecordValidationError(f"{location}: {exc}") from exc


def load_records(path: Path) -> list[GameRecord]:
    """Load records from ``path``; ``.json`` files hold an array, anything else is JSONL."""
    text = path.read_text(encoding="utf-8")
    records: list[GameRecord] = []
    if path.suffix == ".json":
        payloads = json.loads(text)
        if not isinstance(payloads, list):
            raise RecordValidationError(f"{path}: expected a JSON array of records")
        for index, payload in enumerate(payloads):
            records.append(_parse(payload, f"{path}[{index}]"))
    else:
        for lineno, line in enumerate(text.splitlines(), start=1):
            if not line.strip():
                continue
            try:
                payload = json.loads(line)
            except json.JSONDecodeError as exc:
                raise RecordValidationError(f"{path}:{lineno}: invalid JSON ({exc})") from exc
            records.append(_parse(payload, f"{path}:{lineno}"))
    log.info("Loaded %d record(s) from %s", len(records), path)
    return records
