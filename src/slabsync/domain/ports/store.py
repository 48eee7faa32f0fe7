"""Ports for the tabular record store."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from collections.abc import Sequence

    from slabsync.domain.model import CellValue


@dataclass(frozen=True, slots=True, order=True)
class CellLocation:
    """A single cell, addressed by row number and column header."""

    row: int
    column: str

    def __str__(self) -> str:
        return f"row {self.row} [{self.column}]"


@dataclass(frozen=True, slots=True)
class CellWrite:
    """Pending write for one cell.

    ``value=None`` with ``flag_error=True`` only marks the cell as failed.
    """

    location: CellLocation
    value: CellValue | None
    flag_error: bool = False


class TabularStore(Protocol):
    """Destination store for reconciled records.

    Implementations raise ``slabsync.domain.errors.StoreError`` subclasses; a
    ``StoreTimeoutError`` from ``commit`` means the outcome is unknown.
    """

    async def header(self) -> tuple[str, ...]: ...

    async def data_rows(self) -> range: ...

    async def load_fields(self, locations: Sequence[CellLocation]) -> list[str | None]: ...

    async def commit(self, writes: Sequence[CellWrite]) -> None: ...

    async def verify_locations(self, locations: Sequence[CellLocation]) -> list[str | None]: ...


__all__ = ["CellLocation", "CellWrite", "TabularStore"]
