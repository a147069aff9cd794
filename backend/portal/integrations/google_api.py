"""
Generic authenticated REST client shared by the Google provider clients.

Each provider client is a thin adapter over GoogleApiClient: it names its
base URL and provider, and builds endpoints and payloads. Token lookup,
the bearer header, status handling and JSON decoding live here once.

Every call issues exactly one HTTP request. Nothing is retried.
"""
from datetime import datetime
from typing import Any, Callable, Dict, Optional

import httpx

from portal.models.auth import Provider, is_past
from portal.services.token_store import TokenStore
from portal.utils.errors import DecodeFailedError, NotSignedInError, RequestFailedError
from portal.utils.logger import get_logger

logger = get_logger(__name__)


def _error_message(response: httpx.Response) -> str:
    """Google's `error.message` when the body carries one."""
    try:
        data = response.json()
    except ValueError:
        return ""
    error = data.get("error") if isinstance(data, dict) else None
    if isinstance(error, dict):
        return error.get("message") or ""
    if isinstance(error, str):
        return data.get("error_description") or error
    return ""


class GoogleApiClient:
    """
    Base class for provider clients.

    Usage:
        class DriveClient(GoogleApiClient):
            BASE_URL = "https://www.googleapis.com/drive/v3"

        drive = DriveClient(Provider.DRIVE, token_store)
        data = await drive._make_request("GET", "/files")
    """

    BASE_URL = ""

    def __init__(
        self,
        provider: Provider,
        token_store: TokenStore,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 30.0,
        expiry_buffer_seconds: int = 0,
    ):
        self.provider = provider
        self.token_store = token_store
        self._transport = transport
        self.timeout = timeout
        self.expiry_buffer_seconds = expiry_buffer_seconds
        self.access_token: Optional[str] = None
        self.expires_at: Optional[datetime] = None
        # Called with the provider when the in-memory token runs out
        self.on_expired: Optional[Callable[[Provider], None]] = None

    def set_access_token(self, token: Optional[str], expires_at: Optional[datetime] = None) -> None:
        """Token copy owned by the session context; None signs the client out."""
        self.access_token = token
        self.expires_at = expires_at if token else None

    def _resolve_token(self) -> str:
        """
        Token to send: the in-memory copy, else the persisted record.

        A token within expiry_buffer_seconds of its expiry is never sent.

        Raises:
            NotSignedInError: No token, or the token has expired
        """
        if self.access_token:
            if not is_past(self.expires_at, self.expiry_buffer_seconds):
                return self.access_token

            logger.info(f"{self.provider.label} token expired, signing out")
            self.set_access_token(None)
            if self.on_expired is not None:
                self.on_expired(self.provider)
            raise NotSignedInError(self.provider.label)

        record = self.token_store.get(self.provider)
        if record is None or record.is_expired(self.expiry_buffer_seconds):
            raise NotSignedInError(self.provider.label)

        self.set_access_token(record.access_token, record.expires_at)
        return self.access_token

    def _url(self, endpoint: str) -> str:
        if endpoint.startswith("https://"):
            return endpoint
        return f"{self.BASE_URL}{endpoint}"

    async def _make_request(
        self,
        method: str,
        endpoint: str,
        params: Optional[dict] = None,
        json_data: Optional[dict] = None,
        content: Optional[bytes] = None,
        headers: Optional[Dict[str, str]] = None,
        expect: str = "json",
    ) -> Any:
        """
        Make an authenticated request to the provider API.

        Args:
            method: HTTP method
            endpoint: Path relative to BASE_URL, or an absolute https URL
            params: Query parameters
            json_data: JSON request body
            content: Raw request body (multipart uploads)
            headers: Extra headers
            expect: "json" for a decoded body, "bytes" for raw content

        Returns:
            Parsed JSON ({} for empty bodies) or bytes

        Raises:
            NotSignedInError: No token available
            RequestFailedError: Non-2xx status, or status 0 on network failure
            DecodeFailedError: 2xx body that is not valid JSON
        """
        token = self._resolve_token()
        request_headers = {"Authorization": f"Bearer {token}"}
        if headers:
            request_headers.update(headers)

        url = self._url(endpoint)

        async with httpx.AsyncClient(transport=self._transport, timeout=self.timeout) as client:
            try:
                response = await client.request(
                    method=method,
                    url=url,
                    headers=request_headers,
                    params=params,
                    json=json_data,
                    content=content,
                )
            except httpx.RequestError as e:
                logger.error(f"{self.provider.label} API: {method} {endpoint} failed - {e}")
                raise RequestFailedError(0, f"{self.provider.label} is unreachable. Please try again later.")

        if not response.is_success:
            message = _error_message(response)
            logger.warning(f"{self.provider.label} API error: {response.status_code} {message}")
            if response.status_code == 401:
                logger.warning(f"{self.provider.label} API: token expired or invalid")
            raise RequestFailedError(
                response.status_code,
                message or f"{self.provider.label} request failed: {response.status_code} {response.reason_phrase}",
            )

        if expect == "bytes":
            return response.content

        if response.status_code == 204 or not response.content:
            return {}

        try:
            return response.json()
        except ValueError as e:
            logger.error(f"{self.provider.label} API: undecodable response from {endpoint}")
            raise DecodeFailedError(f"Malformed response from {self.provider.label}: {e}")
