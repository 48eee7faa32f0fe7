from __future__ import annotations

import pytest

from slabsync.adapters.http_resilience import (
    _build_cache_components,  # type: ignore[reportPrivateUsage]
    _ShouldCacheResponseFilter,  # type: ignore[reportPrivateUsage]
    build_retry,
)
from slabsync.config.cardladder import get_cardladder_config
from slabsync.config.http_resilience import CacheConfig, RetryPolicy


def test_cardladder_estimates_are_sent_once(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("CL_USER", "CL_PASS"):
        monkeypatch.delenv(name, raising=False)

    retry = build_retry(get_cardladder_config().resilience.retry)

    assert retry.total == 0


def test_default_retry_policy_retries_psa_lookups() -> None:
    policy = RetryPolicy()

    assert build_retry(policy).total == 3
    assert policy.allowed_methods == {"GET", "HEAD"}
    assert 429 in policy.status_forcelist


def test_cache_filter_skips_undecodable_bodies() -> None:
    cache_filter = _ShouldCacheResponseFilter(lambda payload: payload == {"ok": True})

    assert cache_filter.apply(None, b'{"ok": true}')  # type: ignore[arg-type]
    assert not cache_filter.apply(None, b'{"ok": false}')  # type: ignore[arg-type]
    assert not cache_filter.apply(None, b"<html>busy</html>")  # type: ignore[arg-type]


def test_disabled_cache_builds_no_storage() -> None:
    assert _build_cache_components(None) == (None, None)
    assert _build_cache_components(CacheConfig(enabled=False)) == (None, None)
