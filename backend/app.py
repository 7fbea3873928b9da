"""FastAPI application entry point for the padel slots API."""

import logging
import sys
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from config import settings
from errors import register_error_handlers
from services.slot_fetcher import SlotFetcher

# Structured logging: JSON for production, human-readable for local
if settings.is_production:
    logging.basicConfig(
        level=logging.INFO,
        format='{"time":"%(asctime)s","level":"%(levelname)s","logger":"%(name)s","message":"%(message)s"}',
        stream=sys.stdout,
    )
else:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

logger = logging.getLogger(__name__)


def create_app(slot_fetcher: SlotFetcher | None = None) -> FastAPI:
    fetcher = slot_fetcher or SlotFetcher(settings)

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        for problem in settings.validate():
            logger.warning("Config: %s", problem)
        logger.info("Server running at %s", settings.public_url)
        # Warm the browser so the first dashboard request doesn't pay for it.
        try:
            await fetcher.init()
        except Exception as e:
            logger.error("Failed to pre-initialize browser: %s", e)
        yield
        await fetcher.shutdown()

    app = FastAPI(title="Padel Slots API", version="1.0.0", lifespan=lifespan)
    app.state.slot_fetcher = fetcher

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    # Security headers
    @app.middleware("http")
    async def add_security_headers(request: Request, call_next):
        response: Response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        if settings.is_production:
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        return response

    # Centralized error handlers
    register_error_handlers(app)

    from routes.health import router as health_router
    from routes.slots import router as slots_router

    app.include_router(health_router)
    app.include_router(slots_router)

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=settings.port)
