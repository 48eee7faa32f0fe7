"""Per-record field reads with bounded retry."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from slabsync.domain.errors import StoreQuotaError, TransientStoreError

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Sequence

    from slabsync.domain.ports.store import CellLocation, TabularStore

log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ReadRetryPolicy:
    max_attempts: int = 5
    quota_backoff: float = 60.0
    timeout_backoff: float = 5.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")


async def load_fields_with_retry(
    store: TabularStore,
    locations: Sequence[CellLocation],
    *,
    policy: ReadRetryPolicy | None = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> list[str | None]:
    """Read ``locations``, backing off on transient errors.

    Quota errors wait longer than timeouts. Once ``max_attempts`` is exhausted the last
    transient error propagates; non-transient errors propagate at once.
    """

    effective = policy or ReadRetryPolicy()
    attempt = 1
    while True:
        try:
            return await store.load_fields(locations)
        except TransientStoreError as exc:
            if attempt >= effective.max_attempts:
                log.error("Giving up reading cells after %s attempts: %s", attempt, exc)
                raise
            quota = isinstance(exc, StoreQuotaError)
            delay = effective.quota_backoff if quota else effective.timeout_backoff
            log.warning(
                "%s while reading cells (attempt %s/%s); retrying in %.0fs",
                "Quota exceeded" if quota else "Timeout",
                attempt,
                effective.max_attempts,
                delay,
            )
            await sleep(delay)
            attempt += 1


__all__ = ["ReadRetryPolicy", "load_fields_with_retry"]
