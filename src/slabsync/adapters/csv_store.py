"""CSV file implementation of the ``TabularStore`` port.

The input file may carry free-form lines above the header (export banners, blank
lines); the header is the first record containing the id column and everything above
it is written back unchanged. Row numbers count CSV records from 1, so the first data
row under a header on the first line is row 2, as in a spreadsheet.

Every commit rewrites the whole output file through a temporary file and an atomic
replace, so an interrupted run leaves the last committed state on disk.
"""

from __future__ import annotations

import asyncio
import csv
import os
import tempfile
from logging import getLogger
from pathlib import Path
from typing import TYPE_CHECKING

from slabsync.config.errors import ConfigurationError
from slabsync.domain.errors import HardStoreError
from slabsync.domain.row_window import column_letter

if TYPE_CHECKING:
    from collections.abc import Sequence

    from slabsync.domain.ports.store import CellLocation, CellWrite, TabularStore

log = getLogger(__name__)

DEFAULT_ID_HEADER = "Certification Number"
OUTPUT_SUFFIX = "_filled"


def default_output_path(input_path: Path) -> Path:
    """``cards.csv`` becomes ``cards_filled.csv`` next to the input."""

    return input_path.with_name(f"{input_path.stem}{OUTPUT_SUFFIX}{input_path.suffix or '.csv'}")


def _read_records(path: Path, encoding: str) -> list[list[str]]:
    with path.open(newline="", encoding=encoding) as handle:
        return [list(record) for record in csv.reader(handle)]


class CsvTabularStore:
    def __init__(
        self,
        input_path: Path,
        output_path: Path | None = None,
        *,
        id_header: str = DEFAULT_ID_HEADER,
        encoding: str = "utf-8-sig",
    ) -> None:
        self.input_path = input_path
        self.output_path = output_path or default_output_path(input_path)
        self._encoding = encoding
        try:
            records = _read_records(input_path, encoding)
        except FileNotFoundError:
            raise ConfigurationError(f"Input file not found: {input_path}") from None

        header_index = next(
            (
                index
                for index, record in enumerate(records)
                if id_header in (cell.strip() for cell in record)
            ),
            None,
        )
        if header_index is None:
            raise ConfigurationError(f'Could not find header "{id_header}" in {input_path}')

        self._preamble = records[:header_index]
        self._header_record = records[header_index]
        self._header = tuple(cell.strip() for cell in self._header_record)
        self._columns: dict[str, int] = {}
        for index, name in enumerate(self._header):
            if name:
                self._columns.setdefault(name, index)
        self._records = records[header_index + 1 :]
        self._first_row = header_index + 2
        self.flagged: set[CellLocation] = set()
        log.info("Headers found on row %s: %s", header_index + 1, ", ".join(self._header))

    async def header(self) -> tuple[str, ...]:
        return self._header

    async def data_rows(self) -> range:
        return range(self._first_row, self._first_row + len(self._records))

    async def load_fields(self, locations: Sequence[CellLocation]) -> list[str | None]:
        return [self._cell(self._records, location) for location in locations]

    async def commit(self, writes: Sequence[CellWrite]) -> None:
        for write in writes:
            record = self._record(write.location)
            column = self._column(write.location)
            if write.value is not None:
                record.extend("" for _ in range(column + 1 - len(record)))
                record[column] = str(write.value)
            if write.flag_error:
                self.flagged.add(write.location)
                log.warning("Flagged %s (%s)", write.location, self.a1(write.location))
        try:
            await asyncio.to_thread(self._write_output)
        except OSError as exc:
            raise HardStoreError(f"Could not write {self.output_path}: {exc}") from exc
        log.info("Saved %s cells to %s", len(writes), self.output_path)

    async def verify_locations(self, locations: Sequence[CellLocation]) -> list[str | None]:
        try:
            records = await asyncio.to_thread(_read_records, self.output_path, self._encoding)
        except OSError as exc:
            raise HardStoreError(f"Could not read {self.output_path}: {exc}") from exc
        data = records[len(self._preamble) + 1 :]
        return [self._cell(data, location) for location in locations]

    def a1(self, location: CellLocation) -> str:
        """Spreadsheet-style reference such as ``C7`` for log messages."""

        letter = column_letter(self._columns.get(location.column, -1)) or "?"
        return f"{letter}{location.row}"

    def _write_output(self) -> None:
        self.output_path.parent.mkdir(parents=True, exist_ok=True)
        descriptor, temp_name = tempfile.mkstemp(
            prefix=f".{self.output_path.name}.",
            suffix=".tmp",
            dir=self.output_path.parent,
        )
        try:
            with os.fdopen(descriptor, "w", newline="", encoding="utf-8") as handle:
                writer = csv.writer(handle)
                writer.writerows(self._preamble)
                writer.writerow(self._header_record)
                writer.writerows(self._records)
            Path(temp_name).replace(self.output_path)
        except BaseException:
            Path(temp_name).unlink(missing_ok=True)
            raise

    def _column(self, location: CellLocation) -> int:
        try:
            return self._columns[location.column]
        except KeyError:
            raise HardStoreError(f"Unknown column {location.column!r}") from None

    def _record(self, location: CellLocation) -> list[str]:
        index = location.row - self._first_row
        if not 0 <= index < len(self._records):
            raise HardStoreError(f"Row {location.row} is outside the data range")
        return self._records[index]

    def _cell(self, records: list[list[str]], location: CellLocation) -> str | None:
        index = location.row - self._first_row
        if not 0 <= index < len(records):
            return None
        record = records[index]
        column = self._column(location)
        if column >= len(record):
            return None
        value = record[column]
        return value if value.strip() else None


if TYPE_CHECKING:

    def _store_check(path: Path) -> TabularStore:
        return CsvTabularStore(path)
