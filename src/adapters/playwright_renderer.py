"""Playwright page renderer adapter.

Implements the core RendererPort with headless Chromium. One browser and one
browser context live for a scan cycle; target pages share a tab while every
detail page gets a fresh one that is always closed afterwards.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, List, Optional

from playwright.async_api import (
    BrowserContext,
    Error as PlaywrightError,
    Page,
    TimeoutError as PlaywrightTimeoutError,
    async_playwright,
)

from core.config import BrowserConfig
from core.dedup import excerpt_body, join_matches
from core.errors import NavigationError
from core.models import Anchor, PageFields, PageSnapshot

LOGGER = logging.getLogger(__name__)

TITLE_SELECTOR = 'h1, .event-title, [class*="event-title"]'
DATE_SELECTOR = (
    '.date, [class*="date"], time, .event-date, '
    '[itemprop*="startDate"], [itemprop*="endDate"]'
)
BUTTON_SELECTOR = 'button, a[role="button"]'
PRICE_SELECTOR = '[class*="price"], .price, .prices, [class*="ticket"], [class*="tariff"]'

# Runs in the page and returns raw innerText lists; whitespace is collapsed in Python.
_FIELDS_SCRIPT = """(selectors) => {
  const pick = (sel) => Array.from(document.querySelectorAll(sel)).map(n => n.innerText || '');
  return {
    title: pick(selectors.title),
    dates: pick(selectors.dates),
    buttons: pick(selectors.buttons),
    prices: pick(selectors.prices),
    body: (document.body && document.body.innerText) || '',
  };
}
"""

_ANCHORS_SCRIPT = "nodes => nodes.map(a => ({ href: a.href || '', text: a.innerText || '' }))"
_BODY_SCRIPT = "() => (document.body && document.body.innerText) || ''"


async def goto_with_retry(page: Page, url: str, attempts: int, timeout_ms: int) -> None:
    """Navigate with a fixed number of attempts; raise NavigationError when all fail."""

    last_error: Optional[Exception] = None
    for attempt in range(1, attempts + 1):
        try:
            await page.goto(url, wait_until="domcontentloaded", timeout=timeout_ms)
            return
        except PlaywrightError as exc:
            last_error = exc
            LOGGER.debug("Navigation attempt %s/%s to %s failed: %s", attempt, attempts, url, exc)
    raise NavigationError(f"Could not load {url} after {attempts} attempt(s): {last_error}") from last_error


async def _wait_settled(page: Page, timeout_ms: int) -> None:
    # Pages with long-polling never go idle; a timeout here is not an error.
    try:
        await page.wait_for_load_state("networkidle", timeout=timeout_ms)
    except PlaywrightTimeoutError:
        pass


class PlaywrightSession:
    """Rendering context for one scan cycle (satisfies PageSessionPort)."""

    def __init__(self, context: BrowserContext, page: Page, config: BrowserConfig) -> None:
        self._context = context
        self._page = page
        self._config = config

    async def load_page(self, url: str) -> PageSnapshot:
        page = self._page
        await goto_with_retry(page, url, self._config.nav_attempts, self._config.nav_timeout_ms)
        await _wait_settled(page, self._config.target_settle_ms)
        await asyncio.sleep(self._config.post_load_pause_seconds)

        raw_anchors = await page.eval_on_selector_all("a", _ANCHORS_SCRIPT)
        body_text = await page.evaluate(_BODY_SCRIPT)
        anchors: List[Anchor] = [
            Anchor(href=item.get("href") or "", text=(item.get("text") or "").strip())
            for item in raw_anchors
        ]
        return PageSnapshot(url=page.url, anchors=anchors, body_text=body_text)

    async def fetch_fields(self, url: str) -> PageFields:
        page = await self._context.new_page()
        try:
            await goto_with_retry(page, url, self._config.nav_attempts, self._config.nav_timeout_ms)
            await _wait_settled(page, self._config.detail_settle_ms)
            raw = await page.evaluate(
                _FIELDS_SCRIPT,
                {
                    "title": TITLE_SELECTOR,
                    "dates": DATE_SELECTOR,
                    "buttons": BUTTON_SELECTOR,
                    "prices": PRICE_SELECTOR,
                },
            )
        finally:
            await page.close()

        return PageFields(
            title=join_matches(raw.get("title", [])),
            dates=join_matches(raw.get("dates", [])),
            buttons=join_matches(raw.get("buttons", [])),
            prices=join_matches(raw.get("prices", [])),
            body=excerpt_body(raw.get("body", "")),
        )


class PlaywrightRenderer:
    """Launches Chromium per scan cycle (satisfies RendererPort)."""

    def __init__(self, config: BrowserConfig) -> None:
        self._config = config

    @asynccontextmanager
    async def session(self) -> AsyncIterator[PlaywrightSession]:
        config = self._config
        async with async_playwright() as playwright:
            browser = await playwright.chromium.launch(headless=config.headless)
            try:
                context = await browser.new_context(user_agent=config.user_agent, locale=config.locale)
                page = await context.new_page()
                page.set_default_navigation_timeout(config.nav_timeout_ms)
                page.set_default_timeout(config.default_timeout_ms)
                try:
                    yield PlaywrightSession(context, page, config)
                finally:
                    await context.close()
            finally:
                await browser.close()
