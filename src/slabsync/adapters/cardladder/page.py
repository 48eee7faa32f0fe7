"""Playwright driver for the Card Ladder sales-history page.

Implements the ``QuoteSource`` port. The page is a single-page app that keeps the
previous search's estimate on screen until the new one has loaded, which is why quotes
read here go through the convergence sampler.
"""

from __future__ import annotations

import asyncio
from logging import getLogger
from typing import TYPE_CHECKING

from playwright.async_api import Error as PlaywrightError

from slabsync.domain.ports.acquisition import QuoteSourceError
from slabsync.domain.reconciliation.normalize import parse_quoted_value

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Sequence

    from playwright.async_api import Page

    from slabsync.domain.ports.acquisition import QuoteSource

log = getLogger(__name__)

_RESULTS = "#content > div > section > div > div.results > div.list"
_FIRST_RESULT = f"{_RESULTS} > a:nth-child(1)"
_SALE_PRICES = tuple(
    f"{_RESULTS} > a:nth-child({index}) > div.fields > div:nth-child(3) > div > span"
    for index in (1, 2, 3)
)
_ESTIMATE = "#content > div > section > div > div.estimate > div > div.value"
_CONFIDENCE_BARS = "span.confidence-bars"
_SEARCH_ICON = (
    "#content > div > section > div > div.align.collapse-end.flex > div.shared-filters > "
    "div.align.small-gap > div.search-area.search-area-filters > div > div.input-wrapper > "
    "div > button > i"
)
_SEARCH_FORM = (
    "#content > div > section > div > div.modal-backdrop.backdrop.default > div > div > "
    "section > div > form"
)
_SEARCH_INPUT = f"{_SEARCH_FORM} > div.text-input > div > div.input-wrapper > input[type=text]"
_SEARCH_SUBMIT = f"{_SEARCH_FORM} > button > span"

_ELEMENT_TIMEOUT_MS = 5_000
_MIN_RESULT_ROWS = 3
_RESULT_POLLS = 20

_CONFIDENCE_SCRIPT = """
(selector) => {
    const element = document.querySelector(selector);
    if (!element) return null;
    const match = element.className.match(/confidence-(\\d+)/);
    return match ? parseInt(match[1], 10) : null;
}
"""


class CardLadderQuoteSource:
    def __init__(
        self,
        page: Page,
        *,
        poll_interval: float = 0.5,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._page = page
        self._poll_interval = poll_interval
        self._sleep = sleep

    async def submit_query(self, item_id: str) -> bool:
        log.info("Searching Card Ladder for %s", item_id)
        try:
            await self._page.wait_for_selector(_SEARCH_ICON, timeout=_ELEMENT_TIMEOUT_MS)
            await self._page.click(_SEARCH_ICON)
            await self._sleep(0.8)
            search_input = await self._page.wait_for_selector(
                _SEARCH_INPUT,
                timeout=_ELEMENT_TIMEOUT_MS,
            )
            if search_input is None:
                raise QuoteSourceError("Search input not found")
            await search_input.fill("")
            await search_input.type(str(item_id), delay=50)
            await self._page.click(_SEARCH_SUBMIT, timeout=_ELEMENT_TIMEOUT_MS)
            loaded = await self._wait_for_results()
        except PlaywrightError as exc:
            raise QuoteSourceError(f"Card Ladder search failed: {exc}") from exc
        if loaded:
            await self._sleep(self._poll_interval)
        return loaded

    async def _wait_for_results(self) -> bool:
        for _ in range(_RESULT_POLLS):
            rows = await self._page.locator(f"{_RESULTS} > *").count()
            if rows >= _MIN_RESULT_ROWS:
                return True
            await self._sleep(self._poll_interval)
        return False

    async def read_primary_quote(self) -> float | None:
        try:
            text = await self._text(_ESTIMATE)
        except PlaywrightError as exc:
            raise QuoteSourceError(f"Could not read the estimate: {exc}") from exc
        return parse_quoted_value(text) if text else None

    async def read_comparison_quotes(self) -> Sequence[float | None]:
        try:
            texts = [await self._text(selector) for selector in _SALE_PRICES]
        except PlaywrightError as exc:
            raise QuoteSourceError(f"Could not read sale prices: {exc}") from exc
        return [parse_quoted_value(text) if text else None for text in texts]

    async def read_confidence(self) -> int | None:
        """Open the first result, read its ``confidence-N`` class, then go back."""

        try:
            first = await self._page.query_selector(_FIRST_RESULT)
            if first is None:
                log.warning("Could not find the first result for the confidence check")
                return None
            await first.click()
            await self._sleep(2.0)
            confidence: int | None = await self._page.evaluate(_CONFIDENCE_SCRIPT, _CONFIDENCE_BARS)
            await self._page.go_back()
            await self._sleep(1.0)
        except PlaywrightError as exc:
            raise QuoteSourceError(f"Could not read confidence: {exc}") from exc
        log.debug("Confidence level: %s", confidence)
        return confidence

    async def _text(self, selector: str) -> str | None:
        element = await self._page.query_selector(selector)
        if element is None:
            return None
        text = await element.text_content()
        return text.strip() if text and text.strip() else None


if TYPE_CHECKING:

    def _source_check(page: Page) -> QuoteSource:
        return CardLadderQuoteSource(page)
