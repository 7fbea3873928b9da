"""Custom exceptions and centralized FastAPI error handlers."""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class SlotFetchError(Exception):
    """Base exception with HTTP status code and optional detail text."""

    def __init__(self, message: str, status_code: int = 500, details: str | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.details = details

    def to_payload(self) -> dict:
        payload = {"error": str(self)}
        if self.details is not None:
            payload["details"] = self.details
        return payload


class MissingStartDateError(SlotFetchError):
    def __init__(self):
        super().__init__("Start date not set", status_code=500)


class UpstreamFetchError(SlotFetchError):
    """The upstream slot API could not be read. Never cached."""

    def __init__(self, details: str, coalesced: bool = False):
        summary = "Failed to fetch slots (coalesced)" if coalesced else "Failed to fetch slots"
        super().__init__(summary, status_code=500, details=details)
        self.coalesced = coalesced

    def as_coalesced(self) -> "UpstreamFetchError":
        """Copy of this failure as seen by a caller that joined an in-flight fetch."""
        err = type(self)(self.details, coalesced=True)
        err.__cause__ = self
        return err


class UpstreamTimeoutError(UpstreamFetchError):
    pass


class BrowserInitError(UpstreamFetchError):
    pass


class CleanupError(Exception):
    """Closing a page failed. Logged, never returned to callers."""


def register_error_handlers(app: FastAPI) -> None:
    """Register centralized exception handlers on the FastAPI app."""

    @app.exception_handler(SlotFetchError)
    async def handle_slot_fetch_error(_request: Request, exc: SlotFetchError):
        return JSONResponse(exc.to_payload(), status_code=exc.status_code)

    @app.exception_handler(Exception)
    async def handle_unexpected(_request: Request, exc: Exception):
        logger.exception("Unhandled error: %s", exc)
        return JSONResponse(
            {"error": "Internal server error"},
            status_code=500,
        )
