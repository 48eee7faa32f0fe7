from __future__ import annotations

import asyncio
import math

from slabsync.domain.acquisition import (
    ApiQuoteStrategy,
    SamplerQuoteStrategy,
    StaleConvergenceSampler,
    ValueAcquisitionProtocol,
)
from slabsync.domain.model import AcquisitionResult
from slabsync.domain.ports.acquisition import ValueApiError
from tests.helpers.fakes import FakeQuoteSource, FakeValueApi, RecordingSleep


def _protocol(
    source: FakeQuoteSource,
    api: FakeValueApi | None = None,
) -> ValueAcquisitionProtocol:
    sampler = StaleConvergenceSampler(source, sleep=RecordingSleep())
    return ValueAcquisitionProtocol(sampler=sampler, api=api)


def test_api_tier_only_exists_with_a_key() -> None:
    protocol = _protocol(FakeQuoteSource([]), FakeValueApi(AcquisitionResult(1.0, 1)))

    without_key = protocol.strategies(None)
    with_key = protocol.strategies("secret")

    assert [type(strategy) for strategy in without_key] == [SamplerQuoteStrategy]
    assert [type(strategy) for strategy in with_key] == [ApiQuoteStrategy, SamplerQuoteStrategy]


def test_api_result_wins_without_touching_the_page() -> None:
    api = FakeValueApi(AcquisitionResult(raw=1804, comparison_value=1804, confidence=3))
    source = FakeQuoteSource([50])
    protocol = _protocol(source, api)

    result = asyncio.run(protocol.acquire("66561524", None, False, api_key="secret"))

    assert result == AcquisitionResult(raw=1804, comparison_value=1804, confidence=3)
    assert api.calls == [("66561524", "secret")]
    assert source.queries == []


def test_api_failure_falls_back_to_sampler_with_same_parameters() -> None:
    api = FakeValueApi(ValueApiError("429 Too Many Requests"))
    source = FakeQuoteSource([100, 100, 120], comparison=(100, 150, 200))
    protocol = _protocol(source, api)

    result = asyncio.run(protocol.acquire("123", 100, False, api_key="secret"))

    assert result is not None
    assert result.raw == 120
    assert len(api.calls) == 1
    assert source.queries == ["123"]


def test_unusable_api_estimate_falls_back() -> None:
    api = FakeValueApi(AcquisitionResult(raw=math.nan, comparison_value=0))
    source = FakeQuoteSource([42])
    protocol = _protocol(source, api)

    result = asyncio.run(protocol.acquire("123", None, False, api_key="secret"))

    assert result is not None
    assert result.raw == 42


def test_without_key_api_is_never_called() -> None:
    api = FakeValueApi(AcquisitionResult(raw=10, comparison_value=10))
    source = FakeQuoteSource([12])
    protocol = _protocol(source, api)

    result = asyncio.run(protocol.acquire("123", None, False))

    assert result is not None
    assert result.raw == 12
    assert api.calls == []


def test_all_tiers_failing_returns_none() -> None:
    api = FakeValueApi(ValueApiError("down"))
    source = FakeQuoteSource([], submit_result=False)
    protocol = _protocol(source, api)

    assert asyncio.run(protocol.acquire("123", None, False, api_key="secret")) is None
