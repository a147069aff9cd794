"""
API route tests through FastAPI's TestClient.

The app runs against a SessionContext backed by MemoryStorage and the
fake Google endpoints, so no network or disk is touched.
"""
import time
from concurrent.futures import ThreadPoolExecutor
from urllib.parse import parse_qs, urlparse

import httpx
import pytest
from fastapi.testclient import TestClient

from portal.integrations.portal_api import PortalApiClient
from portal.main import create_app
from portal.models.auth import Provider
from portal.services.consent import CallbackConsent
from portal.services.session_context import SessionContext


@pytest.fixture
def consent_urls():
    return []


@pytest.fixture
def ctx(settings, storage, oauth_routes, consent_urls):
    consent = CallbackConsent(timeout_seconds=5, prompt=consent_urls.append)
    return SessionContext(settings, storage=storage, consent=consent, transport=oauth_routes.transport)


@pytest.fixture
def client(ctx, storage):
    portal = PortalApiClient(
        "https://portal.test",
        storage,
        transport=httpx.MockTransport(lambda request: httpx.Response(503, json={"message": "Down"})),
    )
    with TestClient(create_app(context=ctx, portal_client=portal)) as test_client:
        yield test_client


class TestHealth:

    def test_health_check(self, client):
        response = client.get("/api/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ok"
        assert body["version"] == "1.0.0"

    def test_root(self, client):
        assert client.get("/").json()["docs"] == "/docs"


class TestGoogleAuthRoutes:

    def test_session_snapshot(self, client):
        response = client.get("/api/google/session")

        assert response.status_code == 200
        data = response.json()["data"]
        assert set(data) == {"mail_auth", "drive_auth", "classroom_auth", "calendar_auth"}
        assert data["drive_auth"]["is_signed_in"] is False

    def test_unknown_provider(self, client):
        assert client.post("/api/google/photos/sign-in").status_code == 422

    def test_callback_without_state(self, client):
        response = client.get("/api/google/callback", params={"code": "abc"})

        assert response.status_code == 400
        assert "invalid" in response.text

    def test_callback_for_unknown_state(self, client):
        response = client.get("/api/google/callback", params={"state": "forged", "code": "abc"})

        assert response.status_code == 400
        assert "no longer pending" in response.text

    def test_sign_in_completes_through_callback(self, client, ctx, consent_urls):
        with ThreadPoolExecutor(max_workers=1) as pool:
            pending = pool.submit(client.post, "/api/google/drive/sign-in")

            deadline = time.monotonic() + 5
            while not consent_urls and time.monotonic() < deadline:
                time.sleep(0.01)
            assert consent_urls, "consent page was never opened"

            state = parse_qs(urlparse(consent_urls[0]).query)["state"][0]
            callback = client.get("/api/google/callback", params={"state": state, "code": "auth-code-123"})
            assert callback.status_code == 200
            assert "Signed in" in callback.text

            response = pending.result(timeout=5)

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["provider"] == "drive"
        assert data["is_signed_in"] is True
        assert data["user"]["email"] == "student@college.edu"
        assert "access_token" not in data
        assert ctx.snapshot().drive_auth.is_signed_in
        assert ctx.drive.access_token == "new-token"

        session = client.get("/api/google/session").json()["data"]["drive_auth"]
        assert session["is_signed_in"] is True
        assert "access_token" not in session
        assert "new-token" not in client.get("/api/google/session").text

    def test_sign_in_denied_through_callback(self, client, ctx, consent_urls):
        with ThreadPoolExecutor(max_workers=1) as pool:
            pending = pool.submit(client.post, "/api/google/mail/sign-in")

            deadline = time.monotonic() + 5
            while not consent_urls and time.monotonic() < deadline:
                time.sleep(0.01)

            state = parse_qs(urlparse(consent_urls[0]).query)["state"][0]
            callback = client.get("/api/google/callback", params={"state": state, "error": "access_denied"})
            assert "cancelled" in callback.text

            response = pending.result(timeout=5)

        assert response.status_code == 401
        assert response.json()["code"] == "CONSENT_DENIED"
        assert not ctx.snapshot().mail_auth.is_signed_in

    def test_sign_out_cancels_pending_sign_in(self, client, ctx, consent_urls, oauth_routes):
        with ThreadPoolExecutor(max_workers=1) as pool:
            pending = pool.submit(client.post, "/api/google/calendar/sign-in")

            deadline = time.monotonic() + 5
            while not consent_urls and time.monotonic() < deadline:
                time.sleep(0.01)

            assert client.post("/api/google/calendar/sign-out").status_code == 200

            state = parse_qs(urlparse(consent_urls[0]).query)["state"][0]
            client.get("/api/google/callback", params={"state": state, "code": "auth-code-123"})

            response = pending.result(timeout=5)

        assert response.status_code == 409
        assert response.json()["code"] == "SIGN_IN_CANCELLED"
        assert not ctx.snapshot().calendar_auth.is_signed_in
        assert ctx.token_store.get(Provider.CALENDAR) is None
        assert len(oauth_routes.calls("POST", "/revoke")) == 1

    def test_sign_out_all(self, client):
        response = client.post("/api/google/sign-out-all")

        assert response.status_code == 200
        data = response.json()["data"]
        assert set(data) == {p.value for p in Provider}
        assert all(outcome["success"] for outcome in data.values())


class TestServiceRoutes:

    def test_inbox_requires_sign_in(self, client, oauth_routes):
        response = client.get("/api/mail/inbox")

        assert response.status_code == 401
        body = response.json()
        assert body["success"] is False
        assert body["code"] == "NOT_SIGNED_IN"
        assert oauth_routes.calls("GET", "/gmail/v1/users/me/messages") == []

    def test_inbox(self, client, ctx, oauth_routes, mock_gmail_message):
        oauth_routes.add("GET", "/gmail/v1/users/me/messages", (200, {"messages": [{"id": "msg-abc123"}]}))
        oauth_routes.add("GET", "/gmail/v1/users/me/messages/msg-abc123", (200, mock_gmail_message))
        ctx.mail.set_access_token("mail-token")

        response = client.get("/api/mail/inbox", params={"max_results": 5})

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["emails"][0]["subject"] == "Test Subject"
        assert data["dropped"] == 0

    def test_provider_error_maps_to_bad_gateway(self, client, ctx, oauth_routes):
        oauth_routes.add("GET", "/drive/v3/files", (500, {"error": {"message": "Backend Error"}}))
        ctx.drive.set_access_token("drive-token")

        response = client.get("/api/drive/folders/root")

        assert response.status_code == 502
        assert response.json()["status"] == 500
        assert response.json()["error"] == "Backend Error"

    def test_upload_uses_content_type(self, client, ctx, oauth_routes):
        oauth_routes.add("POST", "/upload/drive/v3/files", (200, {"id": "f1", "name": "notes.txt"}))
        ctx.drive.set_access_token("drive-token")

        response = client.post(
            "/api/drive/files",
            params={"name": "notes.txt"},
            content=b"lecture notes",
            headers={"Content-Type": "text/plain"},
        )

        assert response.status_code == 200
        upload = oauth_routes.calls("POST", "/upload/drive/v3/files")[0]
        assert b"Content-Type: text/plain" in upload.content
        assert b"lecture notes" in upload.content

    def test_upload_needs_a_name(self, client, ctx):
        ctx.drive.set_access_token("drive-token")

        response = client.post("/api/drive/files", params={"name": "  "}, content=b"x")

        assert response.status_code == 400

    def test_download_streams_bytes(self, client, ctx, oauth_routes):
        def file_route(request):
            if request.url.params.get("alt") == "media":
                return httpx.Response(200, content=b"%PDF")
            return httpx.Response(200, json={"id": "f1", "name": "time table.pdf", "mimeType": "application/pdf"})

        oauth_routes.add("GET", "/drive/v3/files/f1", file_route)
        ctx.drive.set_access_token("drive-token")

        response = client.get("/api/drive/files/f1/download")

        assert response.status_code == 200
        assert response.content == b"%PDF"
        assert response.headers["content-type"] == "application/pdf"
        assert "time%20table.pdf" in response.headers["content-disposition"]

    def test_calendar_validation_is_bad_request(self, client, ctx, oauth_routes):
        ctx.calendar.set_access_token("calendar-token")

        response = client.post("/api/calendar/events", json={
            "summary": "Exam",
            "start": "2025-03-10T10:00:00",
            "end": "2025-03-10T09:00:00",
        })

        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_FAILED"
        assert oauth_routes.calls("POST", "/calendar/v3/calendars/primary/events") == []

    def test_submission_may_be_absent(self, client, ctx, oauth_routes):
        oauth_routes.add("GET", "/v1/courses/c1/courseWork/w1/studentSubmissions", (200, {}))
        ctx.classroom.set_access_token("classroom-token")

        response = client.get("/api/classroom/courses/c1/coursework/w1/submission")

        assert response.status_code == 200
        assert response.json()["success"] is True
        assert response.json()["data"] is None


class TestCampusRoutes:

    def test_me_when_logged_out(self, client):
        response = client.get("/api/portal/auth/me")

        assert response.status_code == 200
        assert response.json()["data"] is None

    def test_unreachable_backend_is_reported(self, client):
        response = client.post("/api/portal/auth/send-otp", json={"email": "asha@college.edu"})

        assert response.status_code == 502
        assert response.json()["status"] == 503
        assert response.json()["error"] == "Down"
