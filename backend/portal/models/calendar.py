"""
Calendar-related Pydantic models.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class EventTime(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    date_time: Optional[str] = Field(None, alias="dateTime")
    date: Optional[str] = None
    time_zone: Optional[str] = Field(None, alias="timeZone")


class CalendarEvent(BaseModel):
    """Event resource from the primary calendar."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    summary: str = ""
    description: Optional[str] = None
    location: Optional[str] = None
    status: Optional[str] = None
    html_link: Optional[str] = Field(None, alias="htmlLink")
    start: Optional[EventTime] = None
    end: Optional[EventTime] = None
    attendees: List[Dict[str, Any]] = []


class EventInput(BaseModel):
    """Event fields the portal lets a user create or edit."""
    summary: str
    start: datetime
    end: datetime
    description: str = ""
    time_zone: Optional[str] = None
    location: Optional[str] = None
    attendees: List[str] = []
