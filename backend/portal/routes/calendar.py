"""
Google Calendar routes (primary calendar).
"""
from datetime import date, datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from portal.models.calendar import EventInput
from portal.services.session_context import SessionContext
from portal.routes.deps import get_context, respond, respond_scoped

router = APIRouter()


@router.get("/events")
async def list_events(
    request: Request,
    day: Optional[date] = None,
    time_min: Optional[datetime] = None,
    time_max: Optional[datetime] = None,
    max_results: int = Query(50, ge=1, le=2500),
    ctx: SessionContext = Depends(get_context),
):
    """
    Events of one day (?day=YYYY-MM-DD) or of a time window.

    Without parameters: the next 30 days.
    """
    if day is not None:
        return await respond_scoped(request, ctx.calendar.list_events_for_date(day))
    return await respond_scoped(
        request,
        ctx.calendar.list_events(time_min=time_min, time_max=time_max, max_results=max_results),
    )


@router.post("/events")
async def create_event(event: EventInput, ctx: SessionContext = Depends(get_context)):
    return respond(await ctx.calendar.create_event(event))


@router.put("/events/{event_id}")
async def update_event(event_id: str, event: EventInput, ctx: SessionContext = Depends(get_context)):
    return respond(await ctx.calendar.update_event(event_id, event))


@router.delete("/events/{event_id}")
async def delete_event(event_id: str, ctx: SessionContext = Depends(get_context)):
    return respond(await ctx.calendar.delete_event(event_id))
