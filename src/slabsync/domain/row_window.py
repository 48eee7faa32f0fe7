"""Utilities for constraining a run to a range of store rows."""

from __future__ import annotations

from dataclasses import dataclass


def column_letter(index: int) -> str | None:
    """Return the spreadsheet column letter for a 0-based ``index`` (``0 -> "A"``)."""

    if index < 0:
        return None
    letters = ""
    while index >= 0:
        letters = chr(index % 26 + ord("A")) + letters
        index = index // 26 - 1
    return letters


@dataclass(frozen=True)
class RowWindow:
    """Describe the human-facing (1-based, header-inclusive) rows a run covers."""

    start: int | None = None
    end: int | None = None

    def resolve(self, rows: range) -> range:
        """Clamp the window to the store's data ``rows``.

        A start before the first data row falls back to the first data row; an end past
        the last row, or before the start, falls back to the last row.
        """

        if not rows:
            return rows
        first, last = rows[0], rows[-1]
        start = self.start if self.start is not None and self.start >= first else first
        end = last
        if self.end is not None and self.end >= start:
            end = min(self.end, last)
        return range(start, end + 1)

    def describe(self, rows: range) -> str:
        resolved = self.resolve(rows)
        if not resolved:
            return "no rows"
        end = "End" if not rows or resolved[-1] == rows[-1] else f"Row {resolved[-1]}"
        return f"Row {resolved[0]} to {end} ({len(resolved)} rows)"


__all__ = ["RowWindow", "column_letter"]
