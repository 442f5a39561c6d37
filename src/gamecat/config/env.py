"""Environment variable loaders for configuration."""

from __future__ import annotations

import os

from .errors import InvalidConfigurationError


def int_from_env(name: str, default: int, *, minimum: int | None = None) -> int:
    """Read an integer variable, falling back to ``default`` when unset or blank.

    Values below ``minimum`` are clamped rather than rejected; unparsable values raise.
    """

    raw = os.getenv(name)
    if raw is None or not raw.strip():
        value = default
    else:
        try:
            value = int(raw.strip())
        except ValueError as exc:
            raise InvalidConfigurationError(f"{name} must be an integer, got {raw!r}") from exc
    if minimum is not None and value < minimum:
        return minimum
    return value
