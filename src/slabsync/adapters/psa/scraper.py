"""Playwright fallback reading metadata from the public PSA cert page."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from slabsync.config.psa import PSA_CERT_PAGE_URL
from slabsync.domain.model import ItemMetadata
from slabsync.domain.reconciliation.normalize import normalize_grade

if TYPE_CHECKING:
    from playwright.async_api import BrowserContext, Page

log = getLogger(__name__)

NAVIGATION_TIMEOUT_MS = 60_000
CHALLENGE_TIMEOUT_MS = 15_000
CONTENT_TIMEOUT_MS = 10_000

_CHALLENGE_CHECKBOX = 'input[type="checkbox"]'
_GRADE_FALLBACK_SELECTOR = (
    "div.grid.grid-cols-2.gap-2 > div:nth-child(1) > "
    "p.mt-1.text-center.text-body1.font-semibold.uppercase.text-primary"
)

# Maps each <dt> label text to the text of its following <dd>.
_LABELS_SCRIPT = """
() => {
    const labels = {};
    for (const dt of document.querySelectorAll('dt')) {
        const sibling = dt.nextElementSibling;
        if (sibling) {
            labels[dt.textContent.trim()] = sibling.textContent.trim();
        }
    }
    return labels;
}
"""


class PsaPageTimeoutError(RuntimeError):
    """The cert page did not render its details in time; worth another attempt."""


class PsaCertScraper:
    def __init__(self, context: BrowserContext, *, url_template: str = PSA_CERT_PAGE_URL) -> None:
        self._context = context
        self._url_template = url_template

    async def scrape(self, cert: str) -> ItemMetadata | None:
        """Read subject, card number and grade in a fresh tab.

        Raises ``PsaPageTimeoutError`` when the page never shows its details; other
        browser failures are logged and yield ``None``.
        """

        url = self._url_template.format(cert=cert)
        log.info("Scraping PSA cert page for %s", cert)
        page: Page | None = None
        try:
            page = await self._context.new_page()
            await page.goto(url, wait_until="networkidle", timeout=NAVIGATION_TIMEOUT_MS)
            await self._pass_challenge(page)
            try:
                await page.wait_for_selector("dt", timeout=CONTENT_TIMEOUT_MS)
            except PlaywrightTimeoutError as exc:
                raise PsaPageTimeoutError(f"PSA cert page for {cert} did not load") from exc
            labels: dict[str, str] = await page.evaluate(_LABELS_SCRIPT)
            grade = labels.get("Grade") or await self._fallback_grade(page)
        except PlaywrightTimeoutError as exc:
            raise PsaPageTimeoutError(f"PSA cert page for {cert} timed out") from exc
        except PlaywrightError as exc:
            log.error("PSA scraper failed for %s: %s", cert, exc)
            return None
        finally:
            if page is not None:
                await _close_quietly(page)

        metadata = ItemMetadata(
            name=labels.get("Subject") or None,
            class_code=labels.get("Card Number") or None,
            grade_value=normalize_grade(grade),
        )
        log.info("PSA scraper found %s: %s | grade %s", cert, metadata.name, metadata.grade_value)
        return metadata

    async def _pass_challenge(self, page: Page) -> None:
        checkbox = await page.query_selector(_CHALLENGE_CHECKBOX)
        if checkbox is None:
            return
        log.info("Bot challenge detected on PSA cert page; clicking through")
        try:
            await checkbox.click()
            await page.wait_for_load_state("networkidle", timeout=CHALLENGE_TIMEOUT_MS)
        except PlaywrightError as exc:
            log.debug("Challenge click did not navigate: %s", exc)

    async def _fallback_grade(self, page: Page) -> str | None:
        element = await page.query_selector(_GRADE_FALLBACK_SELECTOR)
        if element is None:
            return None
        return (await element.text_content() or "").strip() or None


async def _close_quietly(page: Page) -> None:
    try:
        await page.close()
    except PlaywrightError as exc:
        log.debug("Could not close PSA cert page: %s", exc)
