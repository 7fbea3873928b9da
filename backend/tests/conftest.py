"""Shared fakes: a browser that counts navigations, and a hand-cranked clock."""

import asyncio
from urllib.parse import parse_qs, urlparse

import pytest

from config import Settings
from services.slot_fetcher import SlotFetcher


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakePage:
    def __init__(self, browser: "FakeBrowser"):
        self.browser = browser

    async def fetch_json(self, url: str, timeout_seconds: float):
        browser = self.browser
        browser.navigations.append(url)
        browser.timeouts.append(timeout_seconds)
        if browser.navigated is not None:
            browser.navigated.set()
        if browser.gate is not None:
            await browser.gate.wait()
        if browser.error is not None:
            raise browser.error
        if browser.null_body:
            return None
        start_date = parse_qs(urlparse(url).query)["startDate"][0]
        return {
            "slots": [
                {
                    "date": start_date,
                    "start": "1430",
                    "court": 110271,
                    "title": None,
                    "present": False,
                    "isUserBookingOwner": False,
                    "booking": None,
                }
            ],
            "fetch": len(browser.navigations),
        }

    async def close(self) -> None:
        self.browser.closed_pages += 1
        if self.browser.close_error is not None:
            raise self.browser.close_error


class FakeSession:
    def __init__(self, browser: "FakeBrowser"):
        self.browser = browser
        self.closed = False

    @property
    def is_running(self) -> bool:
        return not self.closed

    async def start(self) -> None:
        self.browser.launches += 1
        if self.browser.launch_gate is not None:
            await self.browser.launch_gate.wait()
        if self.browser.launch_error is not None:
            raise self.browser.launch_error

    async def open_page(self, user_agent, allow):
        self.browser.user_agents.append(user_agent)
        self.browser.filters.append(allow)
        return FakePage(self.browser)

    async def close(self) -> None:
        self.closed = True


class FakeBrowser:
    """Stands in for Playwright; every knob is a plain attribute."""

    def __init__(self):
        self.launches = 0
        self.navigations: list[str] = []
        self.timeouts: list[float] = []
        self.user_agents: list[str] = []
        self.filters: list = []
        self.closed_pages = 0
        self.sessions: list[FakeSession] = []
        self.error: Exception | None = None
        self.close_error: Exception | None = None
        self.launch_error: Exception | None = None
        self.null_body = False
        self.gate: asyncio.Event | None = None
        self.navigated: asyncio.Event | None = None
        self.launch_gate: asyncio.Event | None = None

    def hold(self) -> None:
        """Park navigations until ``release()``. Call inside the running loop."""
        self.gate = asyncio.Event()
        self.navigated = asyncio.Event()

    def release(self) -> None:
        self.gate.set()

    def new_session(self) -> FakeSession:
        session = FakeSession(self)
        self.sessions.append(session)
        return session


@pytest.fixture
def test_settings() -> Settings:
    s = Settings()
    s.cache_ttl_seconds = 10
    s.fetch_timeout_seconds = 30
    s.upstream_slot_url = "https://www.eversports.at/api/slot"
    s.facility_id = "82679"
    s.court_ids = ["110271", "110272", "110273"]
    return s


@pytest.fixture
def browser() -> FakeBrowser:
    return FakeBrowser()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fetcher(test_settings, browser, clock) -> SlotFetcher:
    return SlotFetcher(test_settings, session_factory=browser.new_session, clock=clock)
