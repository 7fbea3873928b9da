"""Slot availability route — pass-through of the upstream payload."""

from fastapi import APIRouter, Depends, Query, Request

from services.slot_fetcher import SlotFetcher

router = APIRouter()


def get_slot_fetcher(request: Request) -> SlotFetcher:
    return request.app.state.slot_fetcher


@router.get("/slots")
async def slots(
    start_date: str | None = Query(None, alias="startDate"),
    fetcher: SlotFetcher = Depends(get_slot_fetcher),
):
    """Upstream slots for ``startDate`` (YYYY-MM-DD), served from cache when fresh."""
    return await fetcher.fetch_slots(start_date)
