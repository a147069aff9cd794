"""
Application configuration loaded from environment variables.
"""
from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import Dict, List

from portal.models.auth import Provider

USERINFO_SCOPES = [
    "https://www.googleapis.com/auth/userinfo.email",
    "https://www.googleapis.com/auth/userinfo.profile",
]

# One consent per provider; each token only carries its own service's scopes
PROVIDER_SCOPES: Dict[Provider, List[str]] = {
    Provider.MAIL: [
        "https://www.googleapis.com/auth/gmail.readonly",
        *USERINFO_SCOPES,
    ],
    Provider.DRIVE: [
        "https://www.googleapis.com/auth/drive",
        *USERINFO_SCOPES,
    ],
    Provider.CLASSROOM: [
        "https://www.googleapis.com/auth/classroom.courses.readonly",
        "https://www.googleapis.com/auth/classroom.coursework.me",
        "https://www.googleapis.com/auth/classroom.rosters.readonly",
        "https://www.googleapis.com/auth/classroom.announcements.readonly",
        "https://www.googleapis.com/auth/classroom.profile.emails",
        "https://www.googleapis.com/auth/classroom.profile.photos",
        "https://www.googleapis.com/auth/drive.readonly",
        *USERINFO_SCOPES,
    ],
    Provider.CALENDAR: [
        "https://www.googleapis.com/auth/calendar.events",
        "https://www.googleapis.com/auth/calendar.readonly",
        *USERINFO_SCOPES,
    ],
}


class Settings(BaseSettings):
    """Application settings from environment variables."""

    # Google OAuth
    google_client_id: str = ""
    google_client_secret: str = ""
    google_redirect_uri: str = "http://localhost:8000/api/google/callback"

    # Frontend URL for CORS
    frontend_url: str = "http://localhost:5173"

    # Guard/student portal backend
    portal_api_url: str = "http://localhost:5000"
    portal_api_timeout_seconds: float = 70.0

    # Where provider tokens survive restarts
    token_storage_path: str = "~/.campus-portal/storage.json"

    # OAuth consent
    consent_timeout_seconds: float = 300.0
    open_browser: bool = True
    token_expiry_buffer_seconds: int = 60

    # Provider REST calls
    request_timeout_seconds: float = 30.0

    # Calendar writes without an explicit zone
    default_time_zone: str = "Asia/Kolkata"

    # Debug mode
    debug: bool = True
    log_level: str = "INFO"

    def scopes_for(self, provider: Provider) -> List[str]:
        return PROVIDER_SCOPES[provider]

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
