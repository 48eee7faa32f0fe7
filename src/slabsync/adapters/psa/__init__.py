"""Public interface for the PSA adapter."""

from __future__ import annotations

from .client import PsaAPIError, PsaClient, cert_to_metadata, should_cache_cert_payload
from .lookup import PsaMetadataLookup
from .schema import PsaCert, PsaCertResponse
from .scraper import PsaCertScraper, PsaPageTimeoutError

__all__ = [
    "PsaAPIError",
    "PsaCert",
    "PsaCertResponse",
    "PsaCertScraper",
    "PsaClient",
    "PsaMetadataLookup",
    "PsaPageTimeoutError",
    "cert_to_metadata",
    "should_cache_cert_payload",
]
