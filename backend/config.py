"""Centralized configuration — all env vars in one place."""

import os

DEV_ORIGINS = ["http://localhost:4200", "http://localhost:8080"]
PRODUCTION_ORIGIN = "https://padel.pokebot.at"
PRODUCTION_PUBLIC_URL = "https://padelapi.pokebot.at"

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/125.0.0.0 Safari/537.36"
)


def _split(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings:
    """Application settings loaded from environment variables."""

    def __init__(self):
        self.environment: str = os.getenv("ENVIRONMENT") or os.getenv("NODE_ENV") or "local"
        self.git_sha: str = os.getenv("GIT_SHA", "unknown")
        self.port: int = int(os.getenv("PORT", "3000"))

        allowed = os.getenv("ALLOWED_ORIGIN")
        if allowed:
            self.cors_origins: list[str] = _split(allowed)
        else:
            self.cors_origins = [PRODUCTION_ORIGIN] if self.is_production else list(DEV_ORIGINS)

        default_url = PRODUCTION_PUBLIC_URL if self.is_production else f"http://localhost:{self.port}"
        self.public_url: str = os.getenv("PUBLIC_URL", default_url)

        # Slot cache + upstream
        self.cache_ttl_seconds: float = float(os.getenv("CACHE_TTL_SECONDS", "10"))
        self.fetch_timeout_seconds: float = float(os.getenv("FETCH_TIMEOUT_SECONDS", "30"))
        self.upstream_slot_url: str = os.getenv("UPSTREAM_SLOT_URL", "https://www.eversports.at/api/slot")
        self.facility_id: str = os.getenv("FACILITY_ID", "82679")
        self.court_ids: list[str] = _split(os.getenv("COURT_IDS", "110271,110272,110273"))

        # Playwright
        self.browser_headless: bool = os.getenv("BROWSER_HEADLESS", "true").lower() not in ("0", "false", "no")
        self.browser_user_agent: str = os.getenv("BROWSER_USER_AGENT", DEFAULT_USER_AGENT)

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def validate(self) -> list[str]:
        """Return list of configuration problems worth a startup warning."""
        problems = []
        if not self.court_ids:
            problems.append("COURT_IDS is empty; upstream will return no slots")
        if self.cache_ttl_seconds <= 0:
            problems.append("CACHE_TTL_SECONDS <= 0 disables the slot cache")
        if self.fetch_timeout_seconds <= 0:
            problems.append("FETCH_TIMEOUT_SECONDS <= 0 disables the navigation timeout")
        if not self.cors_origins:
            problems.append("ALLOWED_ORIGIN is empty; browsers will reject dashboard requests")
        return problems


settings = Settings()
