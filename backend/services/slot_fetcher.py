"""Single-flight, cached access to the upstream slot API.

Lookup order for a date key:
1. Fresh cache entry -> returned as is.
2. Fetch already running for the key -> the caller joins it.
3. Otherwise a new fetch is registered (before its first await, so later
   callers always find it) and run in its own task.

Waiters go through asyncio.shield: a client hanging up never cancels a fetch
other callers are waiting on.
"""

import asyncio
import logging
import time
from typing import Any, Callable
from urllib.parse import quote, urlencode

from config import Settings, settings as default_settings
from errors import BrowserInitError, MissingStartDateError, UpstreamFetchError
from services.browser import BrowserSession, is_allowed_resource
from services.cache import TTLCache

logger = logging.getLogger(__name__)


def build_slot_url(base_url: str, facility_id: str, court_ids: list[str], start_date: str) -> str:
    params = [("facilityId", facility_id), ("startDate", start_date)]
    params += [("courts[]", court) for court in court_ids]
    return f"{base_url}?{urlencode(params, quote_via=quote, safe='')}"


class SlotFetcher:
    def __init__(
        self,
        config: Settings = default_settings,
        session_factory: Callable[[], BrowserSession] | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.config = config
        self._session_factory = session_factory or (lambda: BrowserSession(headless=config.browser_headless))
        self.cache = TTLCache(ttl_seconds=config.cache_ttl_seconds, clock=clock)
        self._in_flight: dict[str, asyncio.Task] = {}
        self._session: BrowserSession | None = None
        self._launch: asyncio.Task | None = None

    # -- lifecycle --------------------------------------------------------

    async def init(self) -> None:
        """Launch the browser ahead of the first request."""
        await self._ensure_session()

    async def shutdown(self) -> None:
        launch = self._launch
        if launch is not None and not launch.done():
            # Let a launch already under way finish so its browser gets closed too.
            try:
                await asyncio.shield(launch)
            except BrowserInitError:
                pass  # logged by _start_session; nothing to close
        session, self._session = self._session, None
        if session is not None:
            await session.close()

    def status(self) -> dict:
        return {
            "browser": "running" if self._session is not None and self._session.is_running else "stopped",
            "cached_dates": len(self.cache),
            "in_flight": sorted(self._in_flight),
        }

    async def _ensure_session(self) -> BrowserSession:
        if self._session is not None:
            if self._session.is_running:
                return self._session
            logger.warning("Browser disconnected, relaunching")
            stale, self._session = self._session, None
            try:
                await stale.close()
            except Exception as e:
                logger.warning("Error closing disconnected browser: %s", e)
        if self._launch is None:
            self._launch = asyncio.ensure_future(self._start_session())
        launch = self._launch
        try:
            return await asyncio.shield(launch)
        finally:
            # A finished launch is dropped; after a failure the next caller retries.
            if self._launch is launch and launch.done():
                self._launch = None

    async def _start_session(self) -> BrowserSession:
        session = self._session_factory()
        try:
            await session.start()
        except Exception as e:
            logger.exception("Browser launch failed")
            raise BrowserInitError(f"Browser launch failed: {e}") from e
        self._session = session
        return session

    # -- fetching ---------------------------------------------------------

    async def fetch_slots(self, start_date: str | None) -> Any:
        if not start_date:
            raise MissingStartDateError()

        cached = self.cache.lookup(start_date)
        if cached is not None:
            logger.info("[Cache] Serving %s", start_date)
            return cached.value

        pending = self._in_flight.get(start_date)
        if pending is not None:
            logger.info("[Coalesce] Waiting for in-flight request: %s", start_date)
            try:
                return await asyncio.shield(pending)
            except UpstreamFetchError as e:
                raise e.as_coalesced() from e

        task = asyncio.ensure_future(self._fetch_upstream(start_date))
        self._in_flight[start_date] = task
        return await asyncio.shield(task)

    async def _fetch_upstream(self, start_date: str) -> Any:
        page = None
        try:
            session = await self._ensure_session()
            page = await session.open_page(self.config.browser_user_agent, allow=is_allowed_resource)
            url = build_slot_url(
                self.config.upstream_slot_url,
                self.config.facility_id,
                self.config.court_ids,
                start_date,
            )
            data = await page.fetch_json(url, self.config.fetch_timeout_seconds)
            self.cache.set(start_date, data)
            logger.info("[Browser] Successfully fetched slots for %s", start_date)
            return data
        except UpstreamFetchError:
            logger.exception("[Error] %s", start_date)
            raise
        except Exception as e:
            logger.exception("[Error] %s", start_date)
            raise UpstreamFetchError(str(e) or type(e).__name__) from e
        finally:
            if page is not None:
                try:
                    await page.close()
                except Exception as e:
                    logger.error("Error closing page: %s", e)
            self._in_flight.pop(start_date, None)
