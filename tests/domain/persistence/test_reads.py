from __future__ import annotations

import asyncio
from collections import deque

import pytest

from slabsync.domain.errors import HardStoreError, StoreQuotaError, StoreTimeoutError
from slabsync.domain.persistence import ReadRetryPolicy, load_fields_with_retry
from slabsync.domain.ports.store import CellLocation
from tests.helpers.fakes import FakeStore, RecordingSleep

ID = "Certification Number"
LOCATIONS = [CellLocation(2, ID)]


def _store(*errors: Exception | None) -> FakeStore:
    return FakeStore(columns=(ID,), rows={2: {ID: "1001"}}, read_errors=deque(errors))


def test_quota_backs_off_longer_than_timeout() -> None:
    store = _store(StoreQuotaError("quota"), StoreTimeoutError("slow"))
    sleep = RecordingSleep()

    values = asyncio.run(load_fields_with_retry(store, LOCATIONS, sleep=sleep))

    assert values == ["1001"]
    assert sleep.calls == [60.0, 5.0]
    assert store.reads == 3


def test_gives_up_after_configured_attempts() -> None:
    store = _store(*(StoreTimeoutError("slow") for _ in range(3)))
    sleep = RecordingSleep()
    policy = ReadRetryPolicy(max_attempts=3, timeout_backoff=1.0)

    with pytest.raises(StoreTimeoutError):
        asyncio.run(load_fields_with_retry(store, LOCATIONS, policy=policy, sleep=sleep))

    assert store.reads == 3
    assert sleep.calls == [1.0, 1.0]


def test_hard_errors_propagate_immediately() -> None:
    store = _store(HardStoreError("gone"))
    sleep = RecordingSleep()

    with pytest.raises(HardStoreError):
        asyncio.run(load_fields_with_retry(store, LOCATIONS, sleep=sleep))

    assert sleep.calls == []
