"""
Mail-related Pydantic models.
"""
from pydantic import BaseModel, computed_field
from typing import List

from portal.utils.formatting import relative_time


class MailMessage(BaseModel):
    """Inbox message as shown on the notices page."""
    id: str
    thread_id: str
    sender_name: str
    sender_email: str
    subject: str
    body: str
    snippet: str
    date: str
    label_ids: List[str] = []

    @computed_field
    @property
    def received(self) -> str:
        # Unparseable Date headers are passed through as-is
        try:
            return relative_time(self.date)
        except ValueError:
            return self.date


class InboxPage(BaseModel):
    """
    Result of a bulk inbox listing.

    dropped counts messages whose detail fetch or decoding failed and
    were left out of emails.
    """
    emails: List[MailMessage]
    dropped: int = 0
