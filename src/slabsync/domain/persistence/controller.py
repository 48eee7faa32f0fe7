"""Batched commits against a rate-limited tabular store.

Responsibilities:
- accumulate cell writes of modified records and commit them in bounded batches
- retry a hard commit failure exactly once after a backoff
- remember what a timed-out batch intended to write and verify it after the run

Commit failures never abort a run; a batch that fails twice is logged and dropped.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from slabsync.domain.errors import StoreError, StoreTimeoutError
from slabsync.domain.reconciliation.normalize import cells_match

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Sequence

    from slabsync.domain.model import CellValue
    from slabsync.domain.ports.store import CellLocation, CellWrite, TabularStore

log = getLogger(__name__)

DEFAULT_BATCH_SIZE = 25
DEFAULT_INTER_BATCH_DELAY_SECONDS = 1.0
DEFAULT_RETRY_BACKOFF_SECONDS = 2.0


@dataclass(frozen=True, slots=True)
class BatchPolicy:
    batch_size: int = DEFAULT_BATCH_SIZE
    inter_batch_delay: float = DEFAULT_INTER_BATCH_DELAY_SECONDS
    retry_backoff: float = DEFAULT_RETRY_BACKOFF_SECONDS

    def __post_init__(self) -> None:
        if self.batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        if self.inter_batch_delay < 0 or self.retry_backoff < 0:
            raise ValueError("Delays must be non-negative")


@dataclass(frozen=True, slots=True)
class VerificationEntry:
    location: CellLocation
    expected: CellValue


@dataclass(frozen=True, slots=True)
class VerificationMismatch:
    location: CellLocation
    expected: CellValue
    actual: str | None


@dataclass(slots=True)
class PersistenceReport:
    """Summary of commit activity for one run."""

    commits: int = 0
    records_committed: int = 0
    lost_batches: int = 0
    timed_out_batches: int = 0
    verified: int = 0
    mismatches: list[VerificationMismatch] = field(default_factory=list)


class BatchedPersistenceController:
    def __init__(
        self,
        store: TabularStore,
        *,
        policy: BatchPolicy | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._store = store
        self._policy = policy or BatchPolicy()
        self._sleep = sleep
        self._pending: list[CellWrite] = []
        self._pending_records = 0
        self._verification: list[VerificationEntry] = []
        self.report = PersistenceReport()

    @property
    def pending_records(self) -> int:
        return self._pending_records

    def enqueue(self, writes: Sequence[CellWrite]) -> None:
        """Queue all writes of one modified record."""

        if not writes:
            return
        self._pending.extend(writes)
        self._pending_records += 1

    async def maybe_flush(self) -> bool:
        """Commit when a full batch is pending; return whether a commit was attempted."""

        if self._pending_records < self._policy.batch_size:
            return False
        await self._flush()
        return True

    async def finalize(self) -> PersistenceReport:
        """Flush the remainder and verify writes whose commit timed out."""

        if self._pending_records:
            await self._flush()
        await self._verify()
        return self.report

    async def _flush(self) -> None:
        writes = tuple(self._pending)
        records = self._pending_records
        self._pending.clear()
        self._pending_records = 0

        log.info("Committing %s records (%s cells)", records, len(writes))
        await self._commit_with_retry(writes, records)
        await self._sleep(self._policy.inter_batch_delay)

    async def _commit_with_retry(self, writes: Sequence[CellWrite], records: int) -> None:
        try:
            await self._store.commit(writes)
        except StoreTimeoutError as exc:
            self._expect(writes, exc)
            return
        except StoreError as exc:
            log.error("Commit of %s records failed: %s", records, exc)
        else:
            self._committed(records)
            return

        await self._sleep(self._policy.retry_backoff)
        log.info("Retrying commit of %s records", records)
        try:
            await self._store.commit(writes)
        except StoreTimeoutError as exc:
            self._expect(writes, exc)
        except StoreError as exc:
            self.report.lost_batches += 1
            log.error("Retry failed; %s records were not saved: %s", records, exc)
        else:
            log.info("Retry successful")
            self._committed(records)

    def _committed(self, records: int) -> None:
        self.report.commits += 1
        self.report.records_committed += records

    def _expect(self, writes: Sequence[CellWrite], exc: StoreTimeoutError) -> None:
        entries = [
            VerificationEntry(location=write.location, expected=write.value)
            for write in writes
            if write.value is not None
        ]
        self._verification.extend(entries)
        self.report.timed_out_batches += 1
        log.warning("Commit timed out (%s); %s cells queued for verification", exc, len(entries))

    async def _verify(self) -> None:
        if not self._verification:
            return
        entries = list(self._verification)
        self._verification.clear()
        locations = [entry.location for entry in entries]
        try:
            actual_values = await self._store.verify_locations(locations)
        except StoreError as exc:
            log.warning("Could not verify %s timed-out cells: %s", len(entries), exc)
            return
        if len(actual_values) != len(entries):
            log.warning(
                "Could not verify %s timed-out cells: store returned %s values",
                len(entries),
                len(actual_values),
            )
            return

        for entry, actual in zip(entries, actual_values, strict=True):
            self.report.verified += 1
            if cells_match(actual, entry.expected):
                continue
            mismatch = VerificationMismatch(
                location=entry.location,
                expected=entry.expected,
                actual=actual,
            )
            self.report.mismatches.append(mismatch)
            log.warning(
                "Verification mismatch at %s: expected %r, found %r",
                entry.location,
                entry.expected,
                actual,
            )


__all__ = [
    "BatchPolicy",
    "BatchedPersistenceController",
    "PersistenceReport",
    "VerificationEntry",
    "VerificationMismatch",
]
