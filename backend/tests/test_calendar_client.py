"""
Unit tests for the Calendar client.
"""
from datetime import date, datetime, timedelta, timezone

import pytest

from conftest import json_body
from portal.integrations.calendar_client import CalendarClient
from portal.models.auth import Provider
from portal.models.calendar import EventInput

EVENTS = "/calendar/v3/calendars/primary/events"

LECTURE = {
    "id": "evt-1",
    "summary": "Algorithms lecture",
    "status": "confirmed",
    "start": {"dateTime": "2025-03-03T10:00:00+05:30"},
    "end": {"dateTime": "2025-03-03T11:00:00+05:30"},
}


@pytest.fixture
def calendar(google, token_store):
    client = CalendarClient(Provider.CALENDAR, token_store, transport=google.transport)
    client.set_access_token("calendar-token")
    return client


def lab_session(**overrides):
    fields = {
        "summary": "Chemistry lab",
        "start": datetime(2025, 3, 4, 14, 0),
        "end": datetime(2025, 3, 4, 16, 0),
    }
    fields.update(overrides)
    return EventInput(**fields)


class TestListEvents:

    @pytest.mark.asyncio
    async def test_query_parameters(self, google, calendar):
        google.add("GET", EVENTS, (200, {"items": [LECTURE]}))
        start = datetime(2025, 3, 1, tzinfo=timezone.utc)

        result = await calendar.list_events(time_min=start, max_results=10)

        assert result.success
        assert result.data[0].summary == "Algorithms lecture"
        assert result.data[0].start.date_time == "2025-03-03T10:00:00+05:30"
        params = google.requests[0].url.params
        assert params["timeMin"] == "2025-03-01T00:00:00+00:00"
        assert params["timeMax"] == "2025-03-31T00:00:00+00:00"
        assert params["maxResults"] == "10"
        assert params["singleEvents"] == "true"
        assert params["orderBy"] == "startTime"

    @pytest.mark.asyncio
    async def test_single_day_in_local_zone(self, google, calendar):
        google.add("GET", EVENTS, (200, {}))

        result = await calendar.list_events_for_date(date(2025, 3, 3))

        assert result.success
        assert result.data == []
        params = google.requests[0].url.params
        assert params["timeMin"] == "2025-03-03T00:00:00+05:30"
        assert params["timeMax"] == "2025-03-03T23:59:59.999000+05:30"

    @pytest.mark.asyncio
    async def test_not_signed_in(self, google, token_store):
        client = CalendarClient(Provider.CALENDAR, token_store, transport=google.transport)

        result = await client.list_events()

        assert result.code == "NOT_SIGNED_IN"
        assert google.requests == []


class TestCreateEvent:

    @pytest.mark.asyncio
    async def test_body_defaults_time_zone(self, google, calendar):
        google.add("POST", EVENTS, (200, dict(LECTURE, id="evt-new", summary="Chemistry lab")))

        result = await calendar.create_event(lab_session(attendees=["lab.partner@college.edu"]))

        assert result.success
        assert result.data.id == "evt-new"
        body = json_body(google.requests[0])
        assert body["summary"] == "Chemistry lab"
        assert body["start"] == {"dateTime": "2025-03-04T14:00:00", "timeZone": "Asia/Kolkata"}
        assert body["end"] == {"dateTime": "2025-03-04T16:00:00", "timeZone": "Asia/Kolkata"}
        assert body["attendees"] == [{"email": "lab.partner@college.edu"}]
        assert "location" not in body

    @pytest.mark.asyncio
    async def test_explicit_time_zone_and_location(self, google, calendar):
        google.add("POST", EVENTS, (200, LECTURE))

        await calendar.create_event(lab_session(time_zone="Europe/London", location="Lab 3"))

        body = json_body(google.requests[0])
        assert body["start"]["timeZone"] == "Europe/London"
        assert body["location"] == "Lab 3"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("overrides", [
        {"end": datetime(2025, 3, 4, 14, 0)},
        {"end": datetime(2025, 3, 4, 13, 0)},
        {"summary": "   "},
        {"end": datetime(2025, 3, 4, 16, 0, tzinfo=timezone.utc)},
    ])
    async def test_invalid_event_makes_no_request(self, google, calendar, overrides):
        result = await calendar.create_event(lab_session(**overrides))

        assert not result.success
        assert result.code == "VALIDATION_FAILED"
        assert google.requests == []


class TestUpdateDelete:

    @pytest.mark.asyncio
    async def test_update_replaces_event(self, google, calendar):
        google.add("PUT", f"{EVENTS}/evt-1", (200, dict(LECTURE, summary="Moved lecture")))
        start = datetime(2025, 3, 5, 9, 0)

        result = await calendar.update_event(
            "evt-1", lab_session(summary="Moved lecture", start=start, end=start + timedelta(hours=1))
        )

        assert result.success
        assert result.data.summary == "Moved lecture"
        assert json_body(google.requests[0])["start"]["dateTime"] == "2025-03-05T09:00:00"

    @pytest.mark.asyncio
    async def test_update_with_bad_range_is_rejected(self, google, calendar):
        start = datetime(2025, 3, 5, 9, 0)

        result = await calendar.update_event("evt-1", lab_session(start=start, end=start))

        assert result.code == "VALIDATION_FAILED"
        assert google.requests == []

    @pytest.mark.asyncio
    async def test_delete(self, google, calendar):
        google.add("DELETE", f"{EVENTS}/evt-1", (204, None))

        result = await calendar.delete_event("evt-1")

        assert result.success
        assert len(google.calls("DELETE", f"{EVENTS}/evt-1")) == 1

    @pytest.mark.asyncio
    async def test_delete_missing_event(self, google, calendar):
        google.add("DELETE", f"{EVENTS}/gone", (410, {"error": {"message": "Resource has been deleted"}}))

        result = await calendar.delete_event("gone")

        assert not result.success
        assert result.status == 410
        assert result.error == "Resource has been deleted"
