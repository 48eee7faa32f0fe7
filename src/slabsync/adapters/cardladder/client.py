"""HTTP client for the Card Ladder estimate API."""

from __future__ import annotations

import math
from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from pydantic import ValidationError

from slabsync.adapters.http_resilience import ResilientClient
from slabsync.domain.model import AcquisitionResult
from slabsync.domain.ports.acquisition import ValueApiError
from slabsync.domain.reconciliation.normalize import normalize_grade

from .schema import EstimatePayload

if TYPE_CHECKING:
    from collections.abc import Callable

    from slabsync.config.cardladder import CardLadderConfig
    from slabsync.config.http_resilience import ResilienceConfig

log = getLogger(__name__)

ESTIMATE_PATH = "estimates"


class CardLadderAPIError(ValueApiError):
    """Raised when the Card Ladder API fails or returns an unexpected response."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


def estimate_to_result(payload: EstimatePayload) -> AcquisitionResult:
    """A point-in-time estimate has no comparison set; its comparison value is its ceiling."""

    return AcquisitionResult(
        raw=payload.estimated_value,
        comparison_value=math.ceil(payload.estimated_value),
        confidence=max(payload.confidence, 0),
        grade_value=normalize_grade(payload.grade),
    )


class CardLadderClient:
    def __init__(
        self,
        *,
        config: CardLadderConfig,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
    ) -> None:
        self._resilience = config.resilience
        self._client_factory = client_factory or ResilientClient

    async def fetch_estimate(self, item_id: str, *, api_key: str) -> AcquisitionResult:
        log.debug("Requesting Card Ladder estimate for %s", item_id)
        async with self._client_factory(self._resilience) as client:
            payload = await self._perform_request(client=client, item_id=item_id, api_key=api_key)
        if not math.isfinite(payload.estimated_value):
            raise CardLadderAPIError(f"Card Ladder returned a non-numeric estimate for {item_id}")
        return estimate_to_result(payload)

    async def _perform_request(
        self,
        *,
        client: ResilientClient,
        item_id: str,
        api_key: str,
    ) -> EstimatePayload:
        headers = {"Authorization": f"Bearer {api_key}", "Accept": "application/json"}
        try:
            response = await client.get(ESTIMATE_PATH, params={"cert": item_id}, headers=headers)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            raise CardLadderAPIError(
                f"Card Ladder API returned {status} {exc.response.reason_phrase}",
                status_code=status,
            ) from exc
        except httpx.HTTPError as exc:
            raise CardLadderAPIError(f"Card Ladder API request failed: {exc}") from exc

        try:
            return EstimatePayload.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise CardLadderAPIError("Unexpected Card Ladder response payload") from exc
