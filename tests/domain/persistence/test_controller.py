from __future__ import annotations

import asyncio
from collections import deque
from typing import TYPE_CHECKING

import pytest

from slabsync.domain.errors import HardStoreError, StoreTimeoutError
from slabsync.domain.persistence import BatchedPersistenceController, BatchPolicy
from slabsync.domain.ports.store import CellLocation, CellWrite
from tests.helpers.fakes import FakeStore, RecordingSleep

if TYPE_CHECKING:
    from collections.abc import Sequence

VALUE = "CL Market Value"


def _store(rows: int = 30) -> FakeStore:
    return FakeStore(columns=(VALUE,), rows={row: {} for row in range(2, rows + 2)})


def _write(row: int, value: object = 100, *, flag: bool = False) -> list[CellWrite]:
    return [CellWrite(CellLocation(row, VALUE), value, flag_error=flag)]  # type: ignore[arg-type]


def test_twenty_seven_records_commit_once_mid_run_and_once_at_finalize() -> None:
    store = _store()
    sleep = RecordingSleep()
    controller = BatchedPersistenceController(store, policy=BatchPolicy(batch_size=25), sleep=sleep)

    async def run() -> list[bool]:
        flushes = []
        for row in range(2, 29):
            controller.enqueue(_write(row))
            flushes.append(await controller.maybe_flush())
        await controller.finalize()
        return flushes

    flushes = asyncio.run(run())

    assert flushes.index(True) == 24
    assert flushes.count(True) == 1
    assert [len(commit) for commit in store.commits] == [25, 2]
    assert controller.report.commits == 2
    assert controller.report.records_committed == 27
    assert sleep.calls == [1.0, 1.0]


def test_records_without_writes_are_not_counted() -> None:
    store = _store()
    controller = BatchedPersistenceController(store, policy=BatchPolicy(batch_size=2))

    controller.enqueue([])
    controller.enqueue(_write(2))

    assert controller.pending_records == 1
    assert asyncio.run(controller.maybe_flush()) is False


def test_multiple_cells_of_one_record_count_once() -> None:
    controller = BatchedPersistenceController(_store(), policy=BatchPolicy(batch_size=2))

    controller.enqueue(_write(2) + [CellWrite(CellLocation(2, "Grade"), "10")])

    assert controller.pending_records == 1


def test_finalize_without_pending_writes_does_not_commit() -> None:
    store = _store()
    controller = BatchedPersistenceController(store, sleep=RecordingSleep())

    report = asyncio.run(controller.finalize())

    assert store.commits == []
    assert report.commits == 0


def test_hard_failure_is_retried_once_after_backoff() -> None:
    store = _store()
    store.commit_errors = deque([HardStoreError("rejected")])
    sleep = RecordingSleep()
    controller = BatchedPersistenceController(store, sleep=sleep)

    controller.enqueue(_write(2, 150))
    report = asyncio.run(controller.finalize())

    assert len(store.commits) == 2
    assert sleep.calls == [2.0, 1.0]
    assert report.commits == 1
    assert report.lost_batches == 0
    assert store.rows[2][VALUE] == "150"


def test_second_hard_failure_drops_batch_without_raising() -> None:
    store = _store()
    store.commit_errors = deque([HardStoreError("rejected"), HardStoreError("still rejected")])
    controller = BatchedPersistenceController(store, sleep=RecordingSleep())

    controller.enqueue(_write(2))
    report = asyncio.run(controller.finalize())

    assert len(store.commits) == 2
    assert report.lost_batches == 1
    assert report.commits == 0


def test_timeout_is_not_retried_and_verified_at_finalize() -> None:
    store = _store()
    store.commit_errors = deque([StoreTimeoutError("deadline exceeded")])
    store.apply_on_timeout = True
    controller = BatchedPersistenceController(store, sleep=RecordingSleep())

    controller.enqueue(_write(2, 150))
    controller.enqueue(_write(3, "No comps", flag=True))
    report = asyncio.run(controller.finalize())

    assert len(store.commits) == 1
    assert report.timed_out_batches == 1
    assert report.verified == 2
    assert report.mismatches == []


def test_timeout_whose_write_never_landed_is_reported_as_mismatch() -> None:
    store = _store()
    store.commit_errors = deque([StoreTimeoutError("deadline exceeded")])
    controller = BatchedPersistenceController(store, sleep=RecordingSleep())

    controller.enqueue(_write(2, 150))
    report = asyncio.run(controller.finalize())

    assert report.verified == 1
    assert len(report.mismatches) == 1
    mismatch = report.mismatches[0]
    assert mismatch.location == CellLocation(2, VALUE)
    assert mismatch.expected == 150
    assert mismatch.actual is None


def test_flag_only_writes_are_not_verified() -> None:
    store = _store()
    store.commit_errors = deque([StoreTimeoutError("deadline exceeded")])
    controller = BatchedPersistenceController(store, sleep=RecordingSleep())

    controller.enqueue(_write(2, None, flag=True))
    report = asyncio.run(controller.finalize())

    assert report.verified == 0


def test_timeout_on_retry_is_queued_for_verification() -> None:
    store = _store()
    store.commit_errors = deque([HardStoreError("rejected"), StoreTimeoutError("slow")])
    controller = BatchedPersistenceController(store, sleep=RecordingSleep())

    controller.enqueue(_write(2, 150))
    report = asyncio.run(controller.finalize())

    assert report.timed_out_batches == 1
    assert report.lost_batches == 0
    assert len(report.mismatches) == 1



class _ShortVerificationStore(FakeStore):
    async def verify_locations(self, locations: Sequence[CellLocation]) -> list[str | None]:
        del locations
        return []


def test_short_verification_read_does_not_fail_finalize() -> None:
    store = _ShortVerificationStore(columns=(VALUE,), rows={2: {}})
    store.commit_errors = deque([StoreTimeoutError("deadline exceeded")])
    controller = BatchedPersistenceController(store, sleep=RecordingSleep())

    controller.enqueue(_write(2, 150))
    report = asyncio.run(controller.finalize())

    assert report.timed_out_batches == 1
    assert report.verified == 0
    assert report.mismatches == []

@pytest.mark.parametrize(
    "kwargs",
    [{"batch_size": 0}, {"inter_batch_delay": -1}, {"retry_backoff": -0.5}],
)
def test_batch_policy_validation(kwargs: dict[str, float]) -> None:
    with pytest.raises(ValueError):
        BatchPolicy(**kwargs)  # type: ignore[arg-type]
