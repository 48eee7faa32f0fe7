from __future__ import annotations

import asyncio
import csv
from pathlib import Path  # noqa: TC003

import pytest

from slabsync.adapters.csv_store import CsvTabularStore, default_output_path
from slabsync.config.errors import ConfigurationError
from slabsync.domain.errors import HardStoreError
from slabsync.domain.ports.store import CellLocation, CellWrite

CONTENT = (
    "Collection export,,\n"
    "\n"
    "Certification Number,Card Name, CL Market Value \n"
    "1001,Charizard,\n"
    "1002,,45\n"
)


def _write_input(tmp_path: Path, content: str = CONTENT) -> Path:
    path = tmp_path / "cards.csv"
    path.write_text(content, encoding="utf-8")
    return path


def _read(path: Path) -> list[list[str]]:
    with path.open(newline="", encoding="utf-8") as handle:
        return list(csv.reader(handle))


def test_default_output_path_appends_suffix(tmp_path: Path) -> None:
    assert default_output_path(tmp_path / "cards.csv") == tmp_path / "cards_filled.csv"
    assert default_output_path(tmp_path / "cards") == tmp_path / "cards_filled.csv"


def test_header_is_found_below_preamble(tmp_path: Path) -> None:
    store = CsvTabularStore(_write_input(tmp_path))

    assert asyncio.run(store.header()) == ("Certification Number", "Card Name", "CL Market Value")
    assert asyncio.run(store.data_rows()) == range(4, 6)


def test_load_fields_returns_none_for_empty_cells(tmp_path: Path) -> None:
    store = CsvTabularStore(_write_input(tmp_path))
    locations = [
        CellLocation(4, "Certification Number"),
        CellLocation(4, "CL Market Value"),
        CellLocation(5, "Card Name"),
        CellLocation(5, "CL Market Value"),
    ]

    assert asyncio.run(store.load_fields(locations)) == ["1001", None, None, "45"]


def test_commit_writes_output_and_preserves_preamble(tmp_path: Path) -> None:
    input_path = _write_input(tmp_path)
    store = CsvTabularStore(input_path)

    asyncio.run(
        store.commit(
            [
                CellWrite(CellLocation(4, "CL Market Value"), 151),
                CellWrite(CellLocation(5, "Card Name"), None, flag_error=True),
            ]
        )
    )

    output = _read(tmp_path / "cards_filled.csv")
    assert output[0] == ["Collection export", "", ""]
    assert output[1] == []
    assert output[2] == ["Certification Number", "Card Name", " CL Market Value "]
    assert output[3] == ["1001", "Charizard", "151"]
    assert output[4] == ["1002", "", "45"]
    assert store.flagged == {CellLocation(5, "Card Name")}
    assert input_path.read_text(encoding="utf-8") == CONTENT


def test_commit_pads_short_records(tmp_path: Path) -> None:
    path = _write_input(tmp_path, "Certification Number,Grade\n1001\n")
    store = CsvTabularStore(path)

    asyncio.run(store.commit([CellWrite(CellLocation(2, "Grade"), "10")]))

    assert _read(store.output_path)[1] == ["1001", "10"]


def test_verify_reads_back_committed_output(tmp_path: Path) -> None:
    store = CsvTabularStore(_write_input(tmp_path))
    location = CellLocation(4, "CL Market Value")

    asyncio.run(store.commit([CellWrite(location, 151)]))

    assert asyncio.run(store.verify_locations([location])) == ["151"]


def test_verify_without_output_is_a_store_error(tmp_path: Path) -> None:
    store = CsvTabularStore(_write_input(tmp_path))

    with pytest.raises(HardStoreError):
        asyncio.run(store.verify_locations([CellLocation(4, "CL Market Value")]))


def test_unknown_column_is_a_store_error(tmp_path: Path) -> None:
    store = CsvTabularStore(_write_input(tmp_path))

    with pytest.raises(HardStoreError):
        asyncio.run(store.commit([CellWrite(CellLocation(4, "Grade"), "10")]))


def test_missing_header_is_a_configuration_error(tmp_path: Path) -> None:
    path = _write_input(tmp_path, "Cert,Name\n1,Mew\n")

    with pytest.raises(ConfigurationError, match="Certification Number"):
        CsvTabularStore(path)


def test_missing_file_is_a_configuration_error(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError, match="not found"):
        CsvTabularStore(tmp_path / "missing.csv")


def test_a1_reference_uses_column_letters(tmp_path: Path) -> None:
    store = CsvTabularStore(_write_input(tmp_path))

    assert store.a1(CellLocation(4, "CL Market Value")) == "C4"
