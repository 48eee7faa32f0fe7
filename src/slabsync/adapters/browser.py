"""Persistent Chromium session shared by the interactive adapters."""

from __future__ import annotations

from contextlib import asynccontextmanager
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from playwright.async_api import async_playwright

from slabsync.common.storage import get_browser_profile_dir

if TYPE_CHECKING:
    from collections.abc import AsyncIterator
    from pathlib import Path

    from playwright.async_api import BrowserContext, Page

log = getLogger(__name__)

DEFAULT_VIEWPORT = {"width": 1280, "height": 900}


@dataclass(frozen=True, slots=True)
class BrowserSession:
    """The run's browser context and its single long-lived page."""

    context: BrowserContext
    page: Page


@asynccontextmanager
async def open_browser_session(
    *,
    headless: bool = False,
    profile_dir: Path | None = None,
) -> AsyncIterator[BrowserSession]:
    """Launch Chromium with a persistent profile so logins survive between runs."""

    profile = profile_dir or get_browser_profile_dir()
    log.info("Launching browser (profile: %s, headless: %s)", profile, headless)
    async with async_playwright() as playwright:
        context = await playwright.chromium.launch_persistent_context(
            str(profile),
            headless=headless,
            viewport=DEFAULT_VIEWPORT,
        )
        try:
            page = context.pages[0] if context.pages else await context.new_page()
            yield BrowserSession(context=context, page=page)
        finally:
            await context.close()


__all__ = ["BrowserSession", "open_browser_session"]
