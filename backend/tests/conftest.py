"""
Pytest fixtures for campus portal backend tests.
"""
import base64
import json
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Tuple, Union

import httpx
import pytest

from portal.config import Settings
from portal.models.auth import Provider, TokenRecord, UserProfile
from portal.services.consent import ConsentResponse
from portal.services.storage import MemoryStorage
from portal.services.token_store import TokenStore, user_json

Handler = Union[Tuple[int, object], Callable[[httpx.Request], httpx.Response]]


def b64url(text: str) -> str:
    """Gmail style base64url without padding."""
    return base64.urlsafe_b64encode(text.encode()).decode().rstrip("=")


class MockGoogle:
    """
    Fake Google endpoints behind an httpx.MockTransport.

    Routes are keyed by (method, path); a route is either (status, json)
    or a callable taking the request. Every request is recorded.
    """

    def __init__(self):
        self.routes: Dict[Tuple[str, str], Handler] = {}
        self.requests: List[httpx.Request] = []

    def add(self, method: str, path: str, handler: Handler) -> None:
        self.routes[(method, path)] = handler

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self.routes.get((request.method, request.url.path))
        if handler is None:
            return httpx.Response(404, json={"error": {"code": 404, "message": "Not Found"}})
        if callable(handler):
            return handler(request)
        status, body = handler
        if body is None:
            return httpx.Response(status)
        return httpx.Response(status, json=body)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def calls(self, method: str, path: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path == path]


@pytest.fixture
def google():
    """Fresh fake Google API."""
    return MockGoogle()


@pytest.fixture
def settings(tmp_path):
    """Settings with OAuth configured and no browser."""
    return Settings(
        google_client_id="test-client-id",
        google_client_secret="test-secret",
        open_browser=False,
        consent_timeout_seconds=1.0,
        token_storage_path=str(tmp_path / "storage.json"),
    )


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def token_store(storage):
    return TokenStore(storage)


@pytest.fixture
def mock_user():
    return UserProfile(name="Test Student", email="student@college.edu", image_url="https://example.com/a.png")


@pytest.fixture
def make_record(mock_user):
    """Build a TokenRecord expiring in `minutes` (negative for expired)."""

    def _make(provider: Provider, token: str = "stored-token", minutes: int = 30) -> TokenRecord:
        return TokenRecord(
            provider=provider,
            access_token=token,
            user_json=user_json(mock_user),
            expires_at=datetime.now(timezone.utc) + timedelta(minutes=minutes),
        )

    return _make


@pytest.fixture
def approve_consent():
    """Consent handler that approves immediately and remembers the URLs it saw."""

    class Approve:
        def __init__(self):
            self.urls: List[str] = []

        async def __call__(self, url: str, state: str) -> ConsentResponse:
            self.urls.append(url)
            return ConsentResponse(code="auth-code-123")

    return Approve()


@pytest.fixture
def oauth_routes(google):
    """Token, userinfo and revoke endpoints answering successfully."""
    google.add("POST", "/token", (200, {"access_token": "new-token", "expires_in": 3599, "scope": "x"}))
    google.add("GET", "/oauth2/v2/userinfo", (200, {
        "email": "student@college.edu",
        "name": "Test Student",
        "picture": "https://example.com/a.png",
    }))
    google.add("POST", "/revoke", (200, {}))
    return google


@pytest.fixture
def mock_gmail_message():
    """Create a mock Gmail API message response."""
    return {
        "id": "msg-abc123",
        "threadId": "thread-xyz789",
        "labelIds": ["INBOX", "UNREAD"],
        "snippet": "This is the email snippet...",
        "internalDate": "1738751400000",
        "payload": {
            "headers": [
                {"name": "From", "value": "John Doe <john@example.com>"},
                {"name": "To", "value": "me@example.com"},
                {"name": "Subject", "value": "Test Subject"},
                {"name": "Date", "value": "Wed, 5 Feb 2025 10:30:00 +0000"},
            ],
            "mimeType": "text/plain",
            "body": {
                "data": "VGhpcyBpcyB0aGUgZW1haWwgYm9keQ=="  # Base64 "This is the email body"
            },
        },
    }


@pytest.fixture
def mock_gmail_multipart_message():
    """Create a mock multipart Gmail message."""
    return {
        "id": "msg-multi123",
        "threadId": "thread-multi",
        "labelIds": ["INBOX"],
        "snippet": "Multipart snippet",
        "payload": {
            "mimeType": "multipart/alternative",
            "headers": [
                {"name": "from", "value": '"Jane Smith" <jane@example.com>'},
                {"name": "subject", "value": "Multipart Email"},
            ],
            "body": {"size": 0},
            "parts": [
                {
                    "mimeType": "text/html",
                    "body": {"data": b64url("<html><body><p>HTML body</p></body></html>")},
                },
                {
                    "mimeType": "text/plain",
                    "body": {"data": b64url("Plain text body")},
                },
            ],
        },
    }


def json_body(request: httpx.Request) -> dict:
    return json.loads(request.content.decode())
