"""Convergence sampling of a quote that an interactive source updates in the background.

After a new query the source may keep showing the previous item's quote for a while.
A sampled quote equal to the previous record's raw quote is therefore ambiguous: it is
either genuinely unchanged or a stale leftover render. The sampler keeps polling until
the quote diverges or the attempt budget runs out, unless the caller already knows the
item is the same as before.
"""

from __future__ import annotations

import asyncio
import math
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from slabsync.domain.model import AcquisitionResult
from slabsync.domain.ports.acquisition import QuoteSourceError

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Sequence

    from slabsync.domain.ports.acquisition import QuoteSource

log = getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 30
DEFAULT_POLL_INTERVAL_SECONDS = 0.5
DEFAULT_COMPARISON_SIZE = 3
_WAIT_LOG_EVERY = 4

type Sleep = Callable[[float], Awaitable[None]]


@dataclass(slots=True)
class StaleConvergenceSampler:
    source: QuoteSource
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    poll_interval: float = DEFAULT_POLL_INTERVAL_SECONDS
    comparison_size: int = DEFAULT_COMPARISON_SIZE
    sleep: Sleep = field(default=asyncio.sleep)

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.comparison_size < 1:
            raise ValueError("comparison_size must be at least 1")

    async def sample(
        self,
        query: str,
        previous_raw: float | None,
        *,
        skip_convergence: bool = False,
    ) -> AcquisitionResult | None:
        """Return the converged quote for ``query`` or ``None`` if none was observed."""

        try:
            if not await self.source.submit_query(query):
                log.warning("Results did not load in time for %s", query)
                return None
            raw = await self._poll_primary(previous_raw, skip_convergence=skip_convergence)
        except QuoteSourceError as exc:
            log.warning("Quote source failed for %s: %s", query, exc)
            return None

        if raw is None:
            log.warning("Quote for %s did not load in time", query)
            return None
        if previous_raw is not None and raw == previous_raw and not skip_convergence:
            log.info("Quote remained %s after waiting; assuming match", raw)

        comparison = await self._sample_comparison()
        average = sum(comparison) / len(comparison)
        comparison_value = math.ceil(max(average, raw))
        confidence = await self._sample_confidence()

        log.debug(
            "Sampled %s: raw=%s comparison=%s average=%.2f higher=%s confidence=%s",
            query,
            raw,
            comparison,
            average,
            comparison_value,
            confidence,
        )
        return AcquisitionResult(raw=raw, comparison_value=comparison_value, confidence=confidence)

    async def _poll_primary(
        self,
        previous_raw: float | None,
        *,
        skip_convergence: bool,
    ) -> float | None:
        observed: float | None = None
        for attempt in range(self.max_attempts):
            quote = await self.source.read_primary_quote()
            if quote is not None and quote > 0:
                observed = quote
                if previous_raw is None or quote != previous_raw:
                    return quote
                if skip_convergence:
                    log.info("Same item as previous record; accepting %s without waiting", quote)
                    return quote
                if attempt % _WAIT_LOG_EVERY == 0:
                    log.info("Quote (%s) matches previous; waiting for update", quote)
            if attempt < self.max_attempts - 1:
                await self.sleep(self.poll_interval)
        return observed

    async def _sample_comparison(self) -> list[float]:
        try:
            quotes: Sequence[float | None] = await self.source.read_comparison_quotes()
        except QuoteSourceError as exc:
            log.warning("Comparison quotes unavailable: %s", exc)
            quotes = ()
        padded = [float(quote or 0.0) for quote in list(quotes)[: self.comparison_size]]
        padded.extend(0.0 for _ in range(self.comparison_size - len(padded)))
        return padded

    async def _sample_confidence(self) -> int:
        try:
            confidence = await self.source.read_confidence()
        except QuoteSourceError as exc:
            log.warning("Failed to read confidence: %s", exc)
            return 0
        if confidence is None or confidence < 0:
            return 0
        return confidence
