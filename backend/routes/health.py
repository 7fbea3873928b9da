"""Health and readiness check routes."""

from fastapi import APIRouter, Depends

from config import settings
from routes.slots import get_slot_fetcher
from services.slot_fetcher import SlotFetcher

router = APIRouter()


@router.get("/ready")
async def ready() -> dict:
    """Lightweight readiness check — no external calls."""
    return {"status": "ok", "service": "padel-slots-api", "commit": settings.git_sha}


@router.get("/health")
async def health(fetcher: SlotFetcher = Depends(get_slot_fetcher)) -> dict:
    """Report browser and cache state. Never launches a browser."""
    state = fetcher.status()
    return {
        "status": "ok" if state["browser"] == "running" else "degraded",
        "service": "padel-slots-api",
        "commit": settings.git_sha,
        **state,
    }
