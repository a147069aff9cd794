"""
Google Calendar API client integration (primary calendar only).

Calendar v3 Reference: https://developers.google.com/calendar/api/v3/reference
"""
from datetime import date, datetime, time, timedelta, timezone
from typing import List, Optional
from zoneinfo import ZoneInfo

import httpx

from portal.integrations.google_api import GoogleApiClient
from portal.models.auth import Provider
from portal.models.calendar import CalendarEvent, EventInput
from portal.models.result import Result, result_boundary
from portal.services.token_store import TokenStore
from portal.utils.errors import ValidationFailedError
from portal.utils.logger import get_logger

logger = get_logger(__name__)

CALENDAR_API_BASE = "https://www.googleapis.com/calendar/v3/calendars/primary"

# Default listing window
DEFAULT_WINDOW = timedelta(days=30)


def _rfc3339(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


class CalendarClient(GoogleApiClient):
    """
    Primary calendar events.

    Usage:
        calendar = CalendarClient(Provider.CALENDAR, token_store, time_zone="Asia/Kolkata")
        result = await calendar.list_events_for_date(date.today())
        await calendar.create_event(EventInput(summary="Lab", start=start, end=end))
    """

    BASE_URL = CALENDAR_API_BASE

    def __init__(
        self,
        provider: Provider,
        token_store: TokenStore,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 30.0,
        expiry_buffer_seconds: int = 0,
        time_zone: str = "Asia/Kolkata",
    ):
        super().__init__(
            provider,
            token_store,
            transport=transport,
            timeout=timeout,
            expiry_buffer_seconds=expiry_buffer_seconds,
        )
        self.time_zone = time_zone

    @result_boundary("List events")
    async def list_events(
        self,
        time_min: Optional[datetime] = None,
        time_max: Optional[datetime] = None,
        max_results: int = 50,
    ) -> List[CalendarEvent]:
        """
        Expanded single events between time_min and time_max, by start time.

        Defaults to the next 30 days.
        """
        now = datetime.now(timezone.utc)
        time_min = time_min or now
        time_max = time_max or time_min + DEFAULT_WINDOW

        data = await self._make_request(
            "GET",
            "/events",
            params={
                "timeMin": _rfc3339(time_min),
                "timeMax": _rfc3339(time_max),
                "maxResults": max_results,
                "singleEvents": "true",
                "orderBy": "startTime",
            },
        )
        events = [CalendarEvent.model_validate(item) for item in data.get("items", [])]
        logger.info(f"Fetched {len(events)} calendar events")
        return events

    async def list_events_for_date(self, day: date) -> Result[List[CalendarEvent]]:
        """Events of one local calendar day (midnight to 23:59:59.999)."""
        zone = ZoneInfo(self.time_zone)
        start = datetime.combine(day, time.min, tzinfo=zone)
        end = datetime.combine(day, time(23, 59, 59, 999000), tzinfo=zone)
        return await self.list_events(time_min=start, time_max=end)

    @result_boundary("Create event")
    async def create_event(self, event: EventInput) -> CalendarEvent:
        body = self._event_body(event)
        data = await self._make_request("POST", "/events", json_data=body)
        logger.info(f"Created calendar event {data.get('id')}")
        return CalendarEvent.model_validate(data)

    @result_boundary("Update event")
    async def update_event(self, event_id: str, event: EventInput) -> CalendarEvent:
        body = self._event_body(event)
        data = await self._make_request("PUT", f"/events/{event_id}", json_data=body)
        logger.info(f"Updated calendar event {event_id}")
        return CalendarEvent.model_validate(data)

    @result_boundary("Delete event")
    async def delete_event(self, event_id: str) -> None:
        await self._make_request("DELETE", f"/events/{event_id}")
        logger.info(f"Deleted calendar event {event_id}")

    def _event_body(self, event: EventInput) -> dict:
        """
        Event resource for create and update.

        Raises:
            ValidationFailedError: Blank summary, or end not after start
        """
        if not event.summary.strip():
            raise ValidationFailedError("Event title is required.")
        if (event.start.tzinfo is None) != (event.end.tzinfo is None):
            raise ValidationFailedError("Event start and end must both have a UTC offset, or neither.")
        if event.end <= event.start:
            raise ValidationFailedError("Event end must be after its start.")

        time_zone = event.time_zone or self.time_zone
        body = {
            "summary": event.summary,
            "description": event.description,
            "start": {"dateTime": event.start.isoformat(), "timeZone": time_zone},
            "end": {"dateTime": event.end.isoformat(), "timeZone": time_zone},
        }
        if event.location:
            body["location"] = event.location
        if event.attendees:
            body["attendees"] = [{"email": email} for email in event.attendees]
        return body
