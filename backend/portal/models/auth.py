"""
Auth-related Pydantic models.
"""
import json
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, computed_field


class Provider(str, Enum):
    """Google services the portal signs in to separately."""
    MAIL = "mail"
    DRIVE = "drive"
    CLASSROOM = "classroom"
    CALENDAR = "calendar"

    @property
    def storage_prefix(self) -> str:
        # Mail keys predate the rename and are still read by the web client
        return "gmail" if self is Provider.MAIL else self.value

    @property
    def label(self) -> str:
        return {
            Provider.MAIL: "Gmail",
            Provider.DRIVE: "Google Drive",
            Provider.CLASSROOM: "Google Classroom",
            Provider.CALENDAR: "Google Calendar",
        }[self]


class UserProfile(BaseModel):
    """Minimal Google profile shown in the portal header."""
    name: str
    email: str
    image_url: str = ""


def is_past(expires_at: Optional[datetime], buffer_seconds: int = 0, now: Optional[datetime] = None) -> bool:
    """True when expires_at is known and (almost) reached."""
    if expires_at is None:
        return False
    now = now or datetime.now(timezone.utc)
    return now.timestamp() + buffer_seconds >= expires_at.timestamp()


class TokenRecord(BaseModel):
    """Persisted token for one provider."""
    provider: Provider
    access_token: str
    user_json: str
    expires_at: Optional[datetime] = None

    @property
    def user(self) -> UserProfile:
        return UserProfile.model_validate(json.loads(self.user_json))

    def is_expired(self, buffer_seconds: int = 0, now: Optional[datetime] = None) -> bool:
        return is_past(self.expires_at, buffer_seconds, now)


class SignInGrant(BaseModel):
    """What a successful sign-in or restore hands to the session context."""
    access_token: str
    user: UserProfile
    expires_at: Optional[datetime] = None


class AuthSession(BaseModel):
    """Auth state of one provider as published to the UI."""
    provider: Provider
    user: Optional[UserProfile] = None
    # Held for the clients and sign-out, never serialized
    access_token: Optional[str] = Field(None, exclude=True)
    expires_at: Optional[datetime] = None
    loading: bool = False

    @computed_field
    @property
    def is_signed_in(self) -> bool:
        return self.access_token is not None and self.user is not None


class AuthSnapshot(BaseModel):
    """All four provider sessions at one point in time."""
    mail_auth: AuthSession
    drive_auth: AuthSession
    classroom_auth: AuthSession
    calendar_auth: AuthSession

    def for_provider(self, provider: Provider) -> AuthSession:
        return getattr(self, f"{provider.value}_auth")
