"""PSA certificate lookup configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from .env import optional_env
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, ShouldCacheHook

PSA_API_BASE_URL = "https://api.psacard.com/publicapi"
PSA_CERT_PAGE_URL = "https://www.psacard.com/cert/{cert}"
PSA_TIMEOUT_SECONDS = 15.0


@dataclass(frozen=True, slots=True)
class PsaConfig:
    """PSA API key (optional) and HTTP behaviour.

    Without a key only the cert page scraper is used.
    """

    api_key: str | None
    resilience: ResilienceConfig
    cert_page_url: str = PSA_CERT_PAGE_URL
    scraper_attempts: int = 2


def get_psa_config(
    *,
    resilience: ResilienceConfig | None = None,
    cache_predicate: ShouldCacheHook | None = None,
) -> PsaConfig:
    return PsaConfig(
        api_key=optional_env("PSA_API_KEY"),
        resilience=resilience
        or ResilienceConfig(
            name="psa",
            base_url=PSA_API_BASE_URL,
            timeout_seconds=PSA_TIMEOUT_SECONDS,
            ratelimit=RateLimit(max_calls=2, per_seconds=1.0),
            cache=CacheConfig(backend="sqlite", should_cache=cache_predicate),
        ),
    )
