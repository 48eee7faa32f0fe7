"""Card Ladder session bootstrap for the shared browser page."""

from __future__ import annotations

import asyncio
from logging import getLogger
from typing import TYPE_CHECKING

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from slabsync.domain.ports.acquisition import QuoteSourceError

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from playwright.async_api import Page

    from slabsync.config.cardladder import CardLadderConfig

log = getLogger(__name__)

_EMAIL_INPUT = 'input[type="email"]'
_PASSWORD_INPUT = 'input[type="password"]'
_LOGIN_MARKER = "text=Login"
_SETTLE_SECONDS = 2.0
_LOGIN_TIMEOUT_MS = 30_000


async def _wait_for_enter(message: str) -> None:
    await asyncio.to_thread(input, message)


async def is_logged_out(page: Page) -> bool:
    if "login" in page.url:
        return True
    try:
        return await page.locator(_LOGIN_MARKER).count() > 0
    except PlaywrightError as exc:
        log.warning("Could not check for a login button, relying on the URL: %s", exc)
        return False


async def ensure_logged_in(
    page: Page,
    config: CardLadderConfig,
    *,
    confirm: Callable[[str], Awaitable[None]] = _wait_for_enter,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> None:
    """Open the sales-history page and make sure the session is authenticated.

    Logs in with ``CL_USER``/``CL_PASS`` when configured; otherwise waits for the user
    to log in by hand and confirm. Raises ``QuoteSourceError`` if the page is unusable.
    """

    try:
        log.info("Checking Card Ladder session")
        await page.goto(config.sales_history_url, wait_until="networkidle")
        await sleep(_SETTLE_SECONDS)
        if not await is_logged_out(page):
            log.info("Card Ladder session active")
            return

        if config.has_credentials:
            await _login_with_credentials(page, config, sleep=sleep)
        else:
            log.warning("No Card Ladder credentials (CL_USER/CL_PASS); log in manually")
            await confirm("Log in to Card Ladder in the browser, then press ENTER to continue...")

        await page.goto(config.sales_history_url, wait_until="networkidle")
    except PlaywrightError as exc:
        raise QuoteSourceError(f"Card Ladder login failed: {exc}") from exc


async def _login_with_credentials(
    page: Page,
    config: CardLadderConfig,
    *,
    sleep: Callable[[float], Awaitable[None]],
) -> None:
    log.info("Logging in to Card Ladder as %s", config.user)
    await page.goto(config.login_url, wait_until="networkidle")
    await page.fill(_EMAIL_INPUT, config.user or "", timeout=_LOGIN_TIMEOUT_MS)
    await page.fill(_PASSWORD_INPUT, config.password or "")
    await sleep(1.0)
    await page.keyboard.press("Enter")
    try:
        await page.wait_for_load_state("networkidle", timeout=_LOGIN_TIMEOUT_MS)
    except PlaywrightTimeoutError:
        log.warning("Navigation after login did not settle; continuing")
    log.info("Card Ladder login flow completed")
