from __future__ import annotations

import pytest

from gamecat.config import InvalidConfigurationError, int_from_env


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        (None, 7),
        ("", 7),
        (" 12 ", 12),
        ("-3", 1),
    ],
)
def test_int_from_env(monkeypatch: pytest.MonkeyPatch, raw: str | None, expected: int) -> None:
    if raw is None:
        monkeypatch.delenv("EXAMPLE_INT", raising=False)
    else:
        monkeypatch.setenv("EXAMPLE_INT", raw)

    assert int_from_env("EXAMPLE_INT", 7, minimum=1) == expected


def test_int_from_env_rejects_garbage(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_INT", "five")

    with pytest.raises(InvalidConfigurationError, match="EXAMPLE_INT"):
        int_from_env("EXAMPLE_INT", 7)
