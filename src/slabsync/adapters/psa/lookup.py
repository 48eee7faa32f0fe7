"""Metadata lookup combining the PSA API with the cert page scraper."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Protocol

from .client import PsaAPIError
from .scraper import PsaPageTimeoutError

if TYPE_CHECKING:
    from slabsync.domain.model import ItemMetadata
    from slabsync.domain.ports.acquisition import MetadataLookup

    from .client import PsaClient

log = getLogger(__name__)


class CertScraper(Protocol):
    async def scrape(self, cert: str) -> ItemMetadata | None: ...


class PsaMetadataLookup:
    """Resolve a cert number through the API when configured, else the cert page.

    Transient page timeouts are retried up to ``scraper_attempts`` times; exhaustion
    yields ``None`` so the caller can flag the record.
    """

    def __init__(
        self,
        *,
        client: PsaClient | None,
        scraper: CertScraper | None,
        scraper_attempts: int = 2,
    ) -> None:
        if scraper_attempts < 1:
            raise ValueError("scraper_attempts must be at least 1")
        self._client = client
        self._scraper = scraper
        self._scraper_attempts = scraper_attempts

    async def __call__(self, item_id: str) -> ItemMetadata | None:
        if self._client is not None:
            try:
                return await self._client.fetch_cert(item_id)
            except PsaAPIError as exc:
                log.warning("PSA API lookup failed for %s: %s", item_id, exc)
        else:
            log.debug("No PSA API key configured; using the cert page for %s", item_id)

        if self._scraper is None:
            log.error("No PSA scraper available for %s", item_id)
            return None
        return await self._scrape_with_retry(self._scraper, item_id)

    async def _scrape_with_retry(self, scraper: CertScraper, item_id: str) -> ItemMetadata | None:
        for attempt in range(1, self._scraper_attempts + 1):
            try:
                return await scraper.scrape(item_id)
            except PsaPageTimeoutError as exc:
                log.warning(
                    "PSA cert page timeout for %s (attempt %s/%s): %s",
                    item_id,
                    attempt,
                    self._scraper_attempts,
                    exc,
                )
        return None


if TYPE_CHECKING:
    _lookup_check: MetadataLookup = PsaMetadataLookup(client=None, scraper=None)
