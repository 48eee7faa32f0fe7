"""Normalisation helpers for comparing store cells with acquired values."""

from __future__ import annotations

import math
import re

_NON_NUMERIC = re.compile(r"[^0-9.]")
_NUMBER = re.compile(r"\d+(?:\.\d+)?")


def parse_quoted_value(value: object) -> float | None:
    """Parse a locale-formatted quote such as ``"$1,234.50"``.

    Every character except digits and ``.`` is dropped first; ``None`` means the
    cell holds no parseable number.
    """

    if value is None:
        return None
    if isinstance(value, int | float):
        return float(value) if math.isfinite(value) else None
    cleaned = _NON_NUMERIC.sub("", str(value))
    try:
        return float(cleaned)
    except ValueError:
        return None


def normalize_grade(value: object) -> str | None:
    """Reduce a grade label to its number: ``"GEM MT 10"`` and ``"g10"`` become ``"10"``.

    Labels without a number (``"AUTHENTIC"``) are returned trimmed.
    """

    if value is None:
        return None
    if isinstance(value, int | float):
        return _format_number(float(value))
    text = str(value).strip()
    if not text:
        return None
    numbers = _NUMBER.findall(text)
    if not numbers:
        return text
    return _format_number(float(numbers[-1]))


def _format_number(number: float) -> str:
    if number.is_integer():
        return str(int(number))
    return str(number)


def _as_number(value: object) -> float | None:
    if isinstance(value, int | float):
        return float(value)
    try:
        return float(str(value).strip())
    except ValueError:
        return None


def cells_match(actual: object, expected: object) -> bool:
    """Compare numerically when both sides are numbers, else as trimmed strings."""

    actual_number = None if actual is None else _as_number(actual)
    expected_number = None if expected is None else _as_number(expected)
    if actual_number is not None and expected_number is not None:
        return math.isclose(actual_number, expected_number)
    actual_text = "" if actual is None else str(actual).strip()
    expected_text = "" if expected is None else str(expected).strip()
    return actual_text == expected_text


__all__ = ["cells_match", "normalize_grade", "parse_quoted_value"]
