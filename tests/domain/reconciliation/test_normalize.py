from __future__ import annotations

import pytest

from slabsync.domain.reconciliation import cells_match, normalize_grade, parse_quoted_value


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("$1,234.50", 1234.5),
        ("151", 151.0),
        (151, 151.0),
        (" 99.9 ", 99.9),
        ("No comps", None),
        ("", None),
        (None, None),
    ],
)
def test_parse_quoted_value(raw: object, expected: float | None) -> None:
    assert parse_quoted_value(raw) == expected


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("GEM MT 10", "10"),
        ("Near Mint 8.5", "8.5"),
        ("g10", "10"),
        ("10.0", "10"),
        (9, "9"),
        ("AUTHENTIC", "AUTHENTIC"),
        ("  ", None),
        (None, None),
    ],
)
def test_normalize_grade(raw: object, expected: str | None) -> None:
    assert normalize_grade(raw) == expected


def test_cells_match_numerically_or_as_trimmed_text() -> None:
    assert cells_match("151", 151)
    assert cells_match("151.0", 151)
    assert cells_match(" Charizard ", "Charizard")
    assert cells_match(None, "")
    assert not cells_match("150", 151)
    assert not cells_match("charizard", "Charizard")
