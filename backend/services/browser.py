"""Playwright session used to read the upstream slot API.

The upstream site sits behind bot protection that rejects plain HTTP clients,
so every fetch goes through a real headless Chromium: one long-lived browser,
one throwaway context + page per request.
"""

import json
import logging
from typing import Any, Callable

from playwright.async_api import Browser, BrowserContext, Page, Playwright, async_playwright
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from errors import CleanupError, UpstreamFetchError, UpstreamTimeoutError

logger = logging.getLogger(__name__)

LAUNCH_ARGS = ["--no-sandbox", "--disable-setuid-sandbox"]

# Only these request kinds reach the network; images, stylesheets, fonts,
# media and everything Playwright reports as "other" are aborted.
ALLOWED_RESOURCE_TYPES = frozenset({"document", "script", "xhr", "fetch"})


def is_allowed_resource(resource_type: str) -> bool:
    return resource_type in ALLOWED_RESOURCE_TYPES


class BrowserPage:
    """A single-use page opened for one upstream fetch."""

    def __init__(self, context: BrowserContext, page: Page):
        self._context = context
        self._page = page

    async def fetch_json(self, url: str, timeout_seconds: float) -> Any:
        """Navigate to ``url`` and parse the final response body as JSON."""
        try:
            response = await self._page.goto(
                url, wait_until="networkidle", timeout=timeout_seconds * 1000
            )
        except PlaywrightTimeoutError as e:
            raise UpstreamTimeoutError(f"Navigation timed out after {timeout_seconds:g}s") from e
        except PlaywrightError as e:
            raise UpstreamFetchError(e.message) from e

        if response is None:
            raise UpstreamFetchError("Navigation produced no response")
        if not response.ok:
            raise UpstreamFetchError(f"Upstream responded {response.status} {response.status_text}".strip())

        try:
            return await response.json()
        except json.JSONDecodeError as e:
            raise UpstreamFetchError(f"Upstream body is not JSON: {e}") from e

    async def close(self) -> None:
        try:
            await self._context.close()
        except PlaywrightError as e:
            raise CleanupError(e.message) from e


class BrowserSession:
    """Process-wide Chromium handle."""

    def __init__(self, headless: bool = True, args: list[str] | None = None):
        self.headless = headless
        self.args = args if args is not None else list(LAUNCH_ARGS)
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None

    @property
    def is_running(self) -> bool:
        return self._browser is not None and self._browser.is_connected()

    async def start(self) -> None:
        logger.info("Launching Chromium (headless=%s)", self.headless)
        self._playwright = await async_playwright().start()
        try:
            self._browser = await self._playwright.chromium.launch(headless=self.headless, args=self.args)
        except Exception:
            await self._playwright.stop()
            self._playwright = None
            raise
        logger.info("Chromium launched, version %s", self._browser.version)

    async def open_page(
        self,
        user_agent: str,
        allow: Callable[[str], bool] = is_allowed_resource,
    ) -> BrowserPage:
        """Open a fresh context whose requests are filtered by ``allow(resource_type)``."""
        if self._browser is None:
            raise UpstreamFetchError("Browser session is not running")

        context = await self._browser.new_context(user_agent=user_agent)
        try:
            page = await context.new_page()

            async def _filter(route):
                if allow(route.request.resource_type):
                    await route.continue_()
                else:
                    await route.abort()

            await page.route("**/*", _filter)
        except PlaywrightError as e:
            await context.close()
            raise UpstreamFetchError(e.message) from e
        return BrowserPage(context, page)

    async def close(self) -> None:
        logger.info("Closing Chromium")
        if self._browser is not None:
            await self._browser.close()
        if self._playwright is not None:
            await self._playwright.stop()
        self._browser = None
        self._playwright = None
