"""
Client for the campus guard/student backend.

Login is by emailed one-time password. The backend's session token and
the logged-in user are kept in the same key-value storage as the Google
tokens, under authToken and userData.
"""
import json
from typing import Any, Dict, Optional

import httpx

from portal.models.result import result_boundary
from portal.services.storage import KeyValueStorage
from portal.utils.errors import DecodeFailedError, RequestFailedError, ValidationFailedError
from portal.utils.logger import get_logger

logger = get_logger(__name__)

AUTH_TOKEN_KEY = "authToken"
USER_DATA_KEY = "userData"

PROFILE_PATHS = {
    "student": "/api/student/profile",
    "teacher": "/api/teacher/profile",
    "admin": "/api/admin/profile",
    "account": "/api/account/profile",
}

DASHBOARD_PATHS = {
    "teacher": "/api/teacher/dashboard",
    "admin": "/api/admin/dashboard",
    "super-admin": "/api/admin/super-admin/dashboard",
    "moderator": "/api/admin/moderator/dashboard",
    "staff": "/api/admin/staff/dashboard",
}


class PortalApiClient:
    """
    Usage:
        portal = PortalApiClient(settings.portal_api_url, storage)
        await portal.send_otp("student@college.edu")
        result = await portal.verify_otp("student@college.edu", "123456")
    """

    def __init__(
        self,
        base_url: str,
        storage: KeyValueStorage,
        timeout: float = 70.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.storage = storage
        self.timeout = timeout
        self._transport = transport

    @property
    def is_authenticated(self) -> bool:
        return bool(self.storage.get_item(AUTH_TOKEN_KEY) and self.storage.get_item(USER_DATA_KEY))

    def current_user(self) -> Optional[Dict[str, Any]]:
        """Stored user, or None (unreadable data is cleared)."""
        raw = self.storage.get_item(USER_DATA_KEY)
        if not raw or not self.storage.get_item(AUTH_TOKEN_KEY):
            return None
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning("Stored portal user is unreadable, logging out")
            self.logout()
            return None

    def logout(self) -> None:
        self.storage.remove_item(AUTH_TOKEN_KEY)
        self.storage.remove_item(USER_DATA_KEY)

    async def _request(self, method: str, path: str, json_data: Optional[dict] = None) -> Any:
        """
        Call the portal backend with the stored bearer token.

        Raises:
            RequestFailedError: Non-2xx (401 also logs out) or unreachable
            DecodeFailedError: Body that is not JSON
        """
        headers = {"Content-Type": "application/json"}
        token = self.storage.get_item(AUTH_TOKEN_KEY)
        if token:
            headers["Authorization"] = f"Bearer {token}"

        async with httpx.AsyncClient(
            base_url=self.base_url,
            transport=self._transport,
            timeout=self.timeout,
        ) as client:
            try:
                response = await client.request(method, path, headers=headers, json=json_data)
            except httpx.RequestError as e:
                logger.error(f"Portal API: {method} {path} failed - {e}")
                raise RequestFailedError(0, "Portal server is unreachable. Please try again later.")

        if response.status_code == 401:
            logger.warning("Portal API: unauthorized, clearing stored login")
            self.logout()

        try:
            body = response.json() if response.content else {}
        except ValueError:
            if response.is_success:
                raise DecodeFailedError("Malformed response from portal server.")
            body = {}

        if not response.is_success:
            message = body.get("message") if isinstance(body, dict) else None
            raise RequestFailedError(response.status_code, message or f"Portal request failed: {response.status_code}")

        return body

    @result_boundary("Send OTP")
    async def send_otp(self, email: str) -> dict:
        if not email.strip():
            raise ValidationFailedError("Email is required.")
        return await self._request("POST", "/api/auth/send-otp", {"email": email.strip()})

    @result_boundary("Verify OTP")
    async def verify_otp(self, email: str, otp: str) -> Dict[str, Any]:
        """
        Log in with the emailed code.

        Stores the session token and the user; returns the user.
        """
        body = await self._request("POST", "/api/auth/verify-otp", {"email": email.strip(), "otp": otp.strip()})

        data = body.get("data") if isinstance(body, dict) else None
        if not isinstance(data, dict) or not data.get("token"):
            raise DecodeFailedError("Login response did not contain a token.")

        user = data.get("student") or data.get("user") or {}
        self.storage.set_item(AUTH_TOKEN_KEY, data["token"])
        self.storage.set_item(USER_DATA_KEY, json.dumps(user))
        logger.info(f"Portal login for {email}")
        return user

    @result_boundary("Get profile")
    async def get_profile(self, role: str) -> Any:
        path = PROFILE_PATHS.get(role)
        if path is None:
            raise ValidationFailedError(f"No profile for role '{role}'.")
        return await self._request("GET", path)

    @result_boundary("Get dashboard")
    async def get_dashboard(self, role: str) -> Any:
        path = DASHBOARD_PATHS.get(role)
        if path is None:
            raise ValidationFailedError(f"No dashboard for role '{role}'.")
        return await self._request("GET", path)
