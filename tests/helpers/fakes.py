"""In-memory fakes for the acquisition, metadata and store ports."""

from __future__ import annotations

import math
from collections import deque
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from slabsync.domain.model import AcquisitionResult, ItemMetadata

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence

    from slabsync.domain.ports.store import CellLocation, CellWrite


class RecordingSleep:
    """Awaitable stand-in for ``asyncio.sleep`` that only records the delays."""

    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


class FakeQuoteSource:
    """Scripted quote source: each ``read_primary_quote`` pops the next quote."""

    def __init__(
        self,
        quotes: Iterable[float | None | Exception],
        *,
        comparison: Sequence[float | None] | Exception = (),
        confidence: int | None | Exception = None,
        submit_result: bool | Exception = True,
    ) -> None:
        self._quotes = deque(quotes)
        self._last: float | None = None
        self.comparison = comparison
        self.confidence = confidence
        self.submit_result = submit_result
        self.queries: list[str] = []
        self.primary_reads = 0

    async def submit_query(self, item_id: str) -> bool:
        self.queries.append(item_id)
        if isinstance(self.submit_result, Exception):
            raise self.submit_result
        return self.submit_result

    async def read_primary_quote(self) -> float | None:
        self.primary_reads += 1
        if self._quotes:
            quote = self._quotes.popleft()
            if isinstance(quote, Exception):
                raise quote
            self._last = quote
        return self._last

    async def read_comparison_quotes(self) -> Sequence[float | None]:
        if isinstance(self.comparison, Exception):
            raise self.comparison
        return self.comparison

    async def read_confidence(self) -> int | None:
        if isinstance(self.confidence, Exception):
            raise self.confidence
        return self.confidence


class FakeMetadataLookup:
    def __init__(self, results: Mapping[str, ItemMetadata | None] | None = None) -> None:
        self._results = dict(results or {})
        self.calls: list[str] = []

    async def __call__(self, item_id: str) -> ItemMetadata | None:
        self.calls.append(item_id)
        return self._results.get(item_id)


@dataclass(slots=True)
class AcquireCall:
    item_id: str
    previous_raw: float | None
    skip_convergence: bool
    api_key: str | None


class FakeAcquirer:
    """Returns a fixed result per item id and records how it was asked."""

    def __init__(self, results: Mapping[str, AcquisitionResult | None] | None = None) -> None:
        self._results = dict(results or {})
        self.calls: list[AcquireCall] = []

    async def acquire(
        self,
        item_id: str,
        previous_raw: float | None,
        skip_convergence: bool,
        api_key: str | None = None,
    ) -> AcquisitionResult | None:
        self.calls.append(AcquireCall(item_id, previous_raw, skip_convergence, api_key))
        return self._results.get(item_id)


class FakeValueApi:
    def __init__(self, result: AcquisitionResult | Exception) -> None:
        self._result = result
        self.calls: list[tuple[str, str]] = []

    async def fetch_estimate(self, item_id: str, *, api_key: str) -> AcquisitionResult:
        self.calls.append((item_id, api_key))
        if isinstance(self._result, Exception):
            raise self._result
        return self._result


@dataclass(slots=True)
class FakeStore:
    """Dictionary-backed ``TabularStore`` with scripted failures.

    ``commit_errors`` and ``read_errors`` are consumed one per call; ``None`` entries
    mean the call succeeds. A commit that raises ``StoreTimeoutError`` can still apply
    its writes when ``apply_on_timeout`` is set, like a store that saved late.
    """

    columns: tuple[str, ...]
    rows: dict[int, dict[str, str | None]]
    first_row: int = 2
    commit_errors: deque[Exception | None] = field(default_factory=deque)
    read_errors: deque[Exception | None] = field(default_factory=deque)
    apply_on_timeout: bool = False
    commits: list[list[CellWrite]] = field(default_factory=list)
    flagged: list[CellLocation] = field(default_factory=list)
    reads: int = 0

    async def header(self) -> tuple[str, ...]:
        return self.columns

    async def data_rows(self) -> range:
        return range(self.first_row, self.first_row + len(self.rows))

    async def load_fields(self, locations: Sequence[CellLocation]) -> list[str | None]:
        self.reads += 1
        if self.read_errors:
            error = self.read_errors.popleft()
            if error is not None:
                raise error
        return [self.rows.get(location.row, {}).get(location.column) for location in locations]

    async def commit(self, writes: Sequence[CellWrite]) -> None:
        self.commits.append(list(writes))
        error = self.commit_errors.popleft() if self.commit_errors else None
        if error is not None and not self.apply_on_timeout:
            raise error
        for write in writes:
            if write.value is not None:
                self.rows.setdefault(write.location.row, {})[write.location.column] = str(
                    write.value
                )
            if write.flag_error:
                self.flagged.append(write.location)
        if error is not None:
            raise error

    async def verify_locations(self, locations: Sequence[CellLocation]) -> list[str | None]:
        return [self.rows.get(location.row, {}).get(location.column) for location in locations]


def metadata(name: str, number: str, grade: str) -> ItemMetadata:
    return ItemMetadata(name=name, class_code=number, grade_value=grade)


def quote(raw: float, comparison: int | None = None, confidence: int = 0) -> AcquisitionResult:
    return AcquisitionResult(
        raw=raw,
        comparison_value=comparison if comparison is not None else math.ceil(raw),
        confidence=confidence,
    )


__all__ = [
    "AcquireCall",
    "FakeAcquirer",
    "FakeMetadataLookup",
    "FakeQuoteSource",
    "FakeStore",
    "FakeValueApi",
    "RecordingSleep",
    "metadata",
    "quote",
]
