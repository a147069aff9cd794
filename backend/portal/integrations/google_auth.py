"""
Google OAuth client integration.

This module handles:
1. Generating consent URLs for a provider's scope set
2. Exchanging authorization codes for access tokens
3. Fetching user profile information (also used as the liveness check)
4. Revoking tokens on sign-out

Tokens are requested with access_type=online: there is no refresh token,
an expired token means asking the user for consent again.
"""
from datetime import datetime, timedelta, timezone
from typing import List, Optional
from urllib.parse import urlencode

import httpx
from pydantic import BaseModel

from portal.config import Settings, get_settings
from portal.models.auth import UserProfile
from portal.utils.logger import get_logger
from portal.utils.errors import OAuthError, RequestFailedError

logger = get_logger(__name__)

# Google OAuth endpoints
GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_USERINFO_URL = "https://www.googleapis.com/oauth2/v2/userinfo"
GOOGLE_REVOKE_URL = "https://oauth2.googleapis.com/revoke"


class TokenGrant(BaseModel):
    """Token endpoint response, reduced to what the portal keeps."""
    access_token: str
    expires_in: int = 3600
    scope: str = ""

    def expires_at(self, now: Optional[datetime] = None) -> datetime:
        now = now or datetime.now(timezone.utc)
        return now + timedelta(seconds=self.expires_in)


class GoogleOAuthClient:
    """
    Thin async wrapper over Google's OAuth and userinfo endpoints.

    Usage:
        oauth = GoogleOAuthClient()
        url = oauth.authorization_url(scopes, state)
        grant = await oauth.exchange_code(code)
        user = await oauth.get_user_info(grant.access_token)
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings or get_settings()
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            transport=self._transport,
            timeout=self.settings.request_timeout_seconds,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.settings.google_client_id)

    def authorization_url(self, scopes: List[str], state: str) -> str:
        """
        Build the consent URL for one provider's scopes.

        Args:
            scopes: Scope list for the provider
            state: CSRF token echoed back on the callback

        Returns:
            URL to open in the user's browser
        """
        params = {
            "client_id": self.settings.google_client_id,
            "redirect_uri": self.settings.google_redirect_uri,
            "response_type": "code",
            "scope": " ".join(scopes),
            "access_type": "online",
            "include_granted_scopes": "true",
            "prompt": "consent",
            "state": state,
        }
        return f"{GOOGLE_AUTH_URL}?{urlencode(params)}"

    async def exchange_code(self, code: str) -> TokenGrant:
        """
        Exchange authorization code for an access token.

        Raises:
            OAuthError: If the token endpoint rejects the code or is unreachable
        """
        data = {
            "client_id": self.settings.google_client_id,
            "client_secret": self.settings.google_client_secret,
            "code": code,
            "grant_type": "authorization_code",
            "redirect_uri": self.settings.google_redirect_uri,
        }

        async with self._client() as client:
            try:
                response = await client.post(GOOGLE_TOKEN_URL, data=data)
            except httpx.RequestError as e:
                logger.error(f"Token exchange request failed: {e}")
                raise OAuthError("Failed to connect to Google for authentication")

        if response.status_code != 200:
            try:
                error_data = response.json()
            except ValueError:
                error_data = {}
            logger.error(f"Token exchange failed: {response.status_code} {error_data}")
            reason = error_data.get("error_description") or error_data.get("error") or "Unknown error"
            raise OAuthError(f"Failed to exchange code: {reason}")

        tokens = response.json()
        if "access_token" not in tokens:
            raise OAuthError("Token response did not contain an access token")

        logger.info("Successfully exchanged code for token")
        return TokenGrant(
            access_token=tokens["access_token"],
            expires_in=tokens.get("expires_in", 3600),
            scope=tokens.get("scope", ""),
        )

    async def get_user_info(self, access_token: str) -> UserProfile:
        """
        Fetch the signed-in user's profile.

        Raises:
            RequestFailedError: Non-2xx answer or network failure
            OAuthError: Profile without an email address
        """
        headers = {"Authorization": f"Bearer {access_token}"}

        async with self._client() as client:
            try:
                response = await client.get(GOOGLE_USERINFO_URL, headers=headers)
            except httpx.RequestError as e:
                logger.error(f"User info request failed: {e}")
                raise RequestFailedError(0, "Failed to connect to Google for user information")

        if not response.is_success:
            logger.warning(f"Failed to get user info: {response.status_code}")
            raise RequestFailedError(
                response.status_code,
                f"Failed to fetch user info: {response.status_code} {response.reason_phrase}",
            )

        user_data = response.json()
        if not user_data.get("email"):
            raise OAuthError("No email found in user info response")

        return UserProfile(
            name=user_data.get("name") or user_data.get("given_name") or "User",
            email=user_data["email"],
            image_url=user_data.get("picture") or "",
        )

    async def check_token(self, access_token: str) -> bool:
        """Liveness check: True iff the userinfo endpoint accepts the token."""
        headers = {"Authorization": f"Bearer {access_token}"}

        async with self._client() as client:
            try:
                response = await client.get(GOOGLE_USERINFO_URL, headers=headers)
            except httpx.RequestError as e:
                logger.warning(f"Liveness check could not reach Google: {e}")
                return False

        return response.is_success

    async def revoke_token(self, token: str) -> bool:
        """
        Revoke an access token. Best effort: failures are logged and
        reported as False, never raised.
        """
        async with self._client() as client:
            try:
                response = await client.post(GOOGLE_REVOKE_URL, params={"token": token})
            except httpx.RequestError as e:
                logger.warning(f"Network error during token revocation: {e}")
                return False

        if response.status_code != 200:
            logger.warning(f"Token revocation returned status {response.status_code}")
            return False

        logger.info("Revoked Google token")
        return True
