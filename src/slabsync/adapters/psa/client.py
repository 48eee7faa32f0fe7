"""HTTP client for the PSA certificate API."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from pydantic import ValidationError

from slabsync.adapters.http_resilience import ResilientClient
from slabsync.domain.model import ItemMetadata
from slabsync.domain.reconciliation.normalize import normalize_grade

from .schema import PsaCertResponse

if TYPE_CHECKING:
    from collections.abc import Callable

    from slabsync.config.http_resilience import ResilienceConfig
    from slabsync.config.psa import PsaConfig

    from .schema import PsaCert

log = getLogger(__name__)


class PsaAPIError(RuntimeError):
    """Raised when the PSA API fails or returns an unexpected response."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


def should_cache_cert_payload(payload: object) -> bool:
    """Cache only responses that resolved a certificate; certs never change."""

    try:
        return PsaCertResponse.model_validate(payload).cert is not None
    except ValidationError:
        return False


def cert_to_metadata(cert: PsaCert) -> ItemMetadata:
    return ItemMetadata(
        name=cert.subject,
        class_code=cert.card_number,
        grade_value=normalize_grade(cert.card_grade),
    )


class PsaClient:
    """Low-level HTTP client for ``/cert/GetByCertNumber``."""

    def __init__(
        self,
        *,
        config: PsaConfig,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
    ) -> None:
        if not config.api_key:
            raise PsaAPIError("PSA API key is not configured")
        self._config = config
        self._resilience = config.resilience
        self._client_factory = client_factory or ResilientClient

    async def fetch_cert(self, cert: str) -> ItemMetadata:
        async with self._client_factory(self._resilience) as client:
            path = f"cert/GetByCertNumber/{cert}"
            payload = await self._perform_request(client=client, path=path)
        if payload.cert is None:
            raise PsaAPIError(f"PSA returned no certificate for {cert}")
        metadata = cert_to_metadata(payload.cert)
        log.info("PSA API found %s: %s", cert, metadata.name)
        return metadata

    async def _perform_request(self, *, client: ResilientClient, path: str) -> PsaCertResponse:
        headers = {
            "Authorization": f"Bearer {self._config.api_key}",
            "Content-Type": "application/json",
        }
        try:
            response = await client.get(path, headers=headers)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            raise PsaAPIError(
                f"PSA API returned {status} {exc.response.reason_phrase}",
                status_code=status,
            ) from exc
        except httpx.HTTPError as exc:
            raise PsaAPIError(f"PSA API request failed: {exc}") from exc

        try:
            return PsaCertResponse.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise PsaAPIError("Unexpected PSA response payload") from exc
