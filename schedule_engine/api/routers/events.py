"""API Router for reading and changing calendar events directly."""

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, Query
from fastapi.concurrency import run_in_threadpool

from schedule_engine.api.models import DeleteEventResponse, EventsResponse, UpdateEventRequest, UpdateEventResponse
from schedule_engine.core.config import Settings, get_settings
from schedule_engine.core.dependencies import get_calendar_service
from schedule_engine.features.action_executor import to_event_view
from schedule_engine.features.google_services import GoogleCalendarService
from schedule_engine.features.temporal_resolver import get_zone

logger = logging.getLogger(__name__)
router = APIRouter()


def _localize(value: datetime, tz_name: str) -> datetime:
    return value if value.tzinfo is not None else value.replace(tzinfo=get_zone(tz_name))


@router.get("/events", response_model=EventsResponse)
async def list_events_endpoint(
    limit: int = Query(10, gt=0, le=250),
    calendar: GoogleCalendarService = Depends(get_calendar_service),
):
    """Upcoming events, soonest first."""
    events = await run_in_threadpool(calendar.list_upcoming, limit)
    return EventsResponse(events=[to_event_view(e) for e in events])


@router.put("/events/{event_id}", response_model=UpdateEventResponse)
async def update_event_endpoint(
    event_id: str,
    request: UpdateEventRequest,
    settings: Settings = Depends(get_settings),
    calendar: GoogleCalendarService = Depends(get_calendar_service),
):
    """Replaces an event's title, description and times."""
    tz_name = request.timezone or settings.default_timezone
    logger.info(f"Updating event {event_id} ('{request.title}') in {tz_name}")
    updated = await run_in_threadpool(
        calendar.replace,
        event_id,
        request.title,
        request.description,
        _localize(request.start_date, tz_name),
        _localize(request.end_date, tz_name),
        tz_name,
    )
    return UpdateEventResponse(event=updated)


@router.delete("/events/{event_id}", response_model=DeleteEventResponse)
async def delete_event_endpoint(
    event_id: str,
    calendar: GoogleCalendarService = Depends(get_calendar_service),
):
    await run_in_threadpool(calendar.delete, event_id)
    return DeleteEventResponse(event_id=event_id)
