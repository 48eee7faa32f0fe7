"""Two-tier quote acquisition: structured API first, convergence sampler second."""

from __future__ import annotations

import math
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, Protocol

from slabsync.domain.ports.acquisition import ValueApiError

if TYPE_CHECKING:
    from slabsync.domain.model import AcquisitionResult
    from slabsync.domain.ports.acquisition import ValueApi

    from .sampler import StaleConvergenceSampler

log = getLogger(__name__)


class QuoteStrategy(Protocol):
    """One acquisition tier. Returns ``None`` when the tier cannot produce a quote."""

    async def __call__(
        self,
        item_id: str,
        previous_raw: float | None,
        *,
        skip_convergence: bool,
    ) -> AcquisitionResult | None: ...


@dataclass(slots=True)
class ApiQuoteStrategy:
    """Point-in-time quote from the structured API; no convergence concern."""

    api: ValueApi
    api_key: str

    async def __call__(
        self,
        item_id: str,
        previous_raw: float | None,
        *,
        skip_convergence: bool,
    ) -> AcquisitionResult | None:
        del previous_raw, skip_convergence
        try:
            result = await self.api.fetch_estimate(item_id, api_key=self.api_key)
        except ValueApiError as exc:
            log.warning("Value API failed for %s, falling back to sampling: %s", item_id, exc)
            return None
        if not math.isfinite(result.raw) or result.raw <= 0:
            log.warning("Value API returned no usable estimate for %s", item_id)
            return None
        log.info("Value API estimate for %s: %s", item_id, result.raw)
        return result


@dataclass(slots=True)
class SamplerQuoteStrategy:
    sampler: StaleConvergenceSampler

    async def __call__(
        self,
        item_id: str,
        previous_raw: float | None,
        *,
        skip_convergence: bool,
    ) -> AcquisitionResult | None:
        return await self.sampler.sample(
            item_id,
            previous_raw,
            skip_convergence=skip_convergence,
        )


@dataclass(slots=True)
class ValueAcquisitionProtocol:
    """Select tiers by precondition and return the first result.

    The API tier exists only when an API key is supplied. It is never retried here;
    any failure falls through to the sampler with the same parameters.
    """

    sampler: StaleConvergenceSampler
    api: ValueApi | None = None

    def strategies(self, api_key: str | None) -> tuple[QuoteStrategy, ...]:
        fallback = SamplerQuoteStrategy(self.sampler)
        if api_key and self.api is not None:
            return (ApiQuoteStrategy(self.api, api_key), fallback)
        return (fallback,)

    async def acquire(
        self,
        item_id: str,
        previous_raw: float | None,
        skip_convergence: bool,
        api_key: str | None = None,
    ) -> AcquisitionResult | None:
        for strategy in self.strategies(api_key):
            result = await strategy(
                item_id,
                previous_raw,
                skip_convergence=skip_convergence,
            )
            if result is not None:
                return result
        return None
