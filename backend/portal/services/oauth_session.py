"""
OAuth session for one Google provider.

State machine:
    UNINITIALIZED --initialize()--> READY --sign_in()--> SIGNED_IN
    SIGNED_IN --sign_out()--> READY
    READY --restore(record)--> SIGNED_IN     (persisted token passes liveness)

Every public operation returns a Result; network and OAuth failures
never escape as exceptions. Nothing is retried: the user decides whether
to try again.
"""
import secrets
from enum import Enum
from typing import Optional

from portal.config import Settings, get_settings
from portal.integrations.google_auth import GoogleOAuthClient
from portal.models.auth import Provider, SignInGrant, TokenRecord
from portal.models.result import Result, result_boundary
from portal.services.consent import ConsentHandler
from portal.utils.errors import ConsentDeniedError, NotSignedInError, OAuthError
from portal.utils.logger import get_logger, mask_token

logger = get_logger(__name__)


class SessionState(str, Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"
    SIGNED_IN = "signed_in"


class TokenRequestClient:
    """Consent + code exchange bound to one provider's fixed scope string."""

    def __init__(self, oauth: GoogleOAuthClient, provider: Provider, scopes: list):
        self.oauth = oauth
        self.provider = provider
        self.scopes = scopes

    def authorization_url(self, state: str) -> str:
        return self.oauth.authorization_url(self.scopes, state)


class OAuthSession:
    """
    Sign-in lifecycle for one provider.

    Usage:
        session = OAuthSession(Provider.DRIVE, oauth, consent)
        result = await session.sign_in()
        if result.success:
            token = result.data.access_token
    """

    def __init__(
        self,
        provider: Provider,
        oauth: GoogleOAuthClient,
        consent: ConsentHandler,
        settings: Optional[Settings] = None,
    ):
        self.provider = provider
        self.oauth = oauth
        self.consent = consent
        self.settings = settings or get_settings()
        self.state = SessionState.UNINITIALIZED
        self.token_client: Optional[TokenRequestClient] = None

    def initialize(self) -> None:
        """
        Build the token-request client once.

        Raises:
            OAuthError: If no OAuth client id is configured
        """
        if self.token_client is not None:
            return

        if not self.oauth.is_configured:
            raise OAuthError("Google OAuth client is not configured (GOOGLE_CLIENT_ID)")

        self.token_client = TokenRequestClient(
            self.oauth, self.provider, self.settings.scopes_for(self.provider)
        )
        self.state = SessionState.READY
        logger.info(f"{self.provider.label} session ready")

    async def sign_in(self) -> Result[SignInGrant]:
        """Run interactive consent and return the token and profile."""
        result = await self._sign_in()
        if result.success:
            self.state = SessionState.SIGNED_IN
            logger.info(f"Signed in to {self.provider.label} as {result.data.user.email}")
        elif self.token_client is not None:
            self.state = SessionState.READY
        return result

    @result_boundary("Sign-in")
    async def _sign_in(self) -> SignInGrant:
        self.initialize()

        state = secrets.token_urlsafe(24)
        url = self.token_client.authorization_url(state)
        response = await self.consent(url, state)

        if response.error:
            raise ConsentDeniedError(response.error)
        if not response.code:
            raise ConsentDeniedError("No authorization code returned")

        grant = await self.oauth.exchange_code(response.code)
        try:
            user = await self.oauth.get_user_info(grant.access_token)
        except OAuthError as e:
            raise OAuthError(f"Failed to retrieve user information: {e.message}")

        return SignInGrant(
            access_token=grant.access_token,
            user=user,
            expires_at=grant.expires_at(),
        )

    async def sign_out(self, access_token: Optional[str]) -> Result[None]:
        """
        Revoke the token and return to READY.

        Revocation is best effort; local state is cleared regardless.
        """
        if access_token:
            revoked = await self.oauth.revoke_token(access_token)
            if not revoked:
                logger.warning(f"Could not revoke {self.provider.label} token {mask_token(access_token)}")

        self.state = SessionState.READY if self.token_client else SessionState.UNINITIALIZED
        logger.info(f"Signed out of {self.provider.label}")
        return Result.ok()

    async def restore(self, record: Optional[TokenRecord]) -> Result[SignInGrant]:
        """
        Promote a persisted token back to SIGNED_IN if it is still alive.

        A record already past its expiry fails without a network call.
        The caller clears storage on failure.
        """
        result = await self._restore(record)
        if result.success:
            self.state = SessionState.SIGNED_IN
            logger.info(f"Restored {self.provider.label} session for {result.data.user.email}")
        else:
            logger.info(f"Could not restore {self.provider.label} session: {result.error}")
        return result

    @result_boundary("Restore")
    async def _restore(self, record: Optional[TokenRecord]) -> SignInGrant:
        if record is None:
            raise NotSignedInError(self.provider.label)

        if record.is_expired(self.settings.token_expiry_buffer_seconds):
            raise OAuthError("Stored token has expired", code="TOKEN_EXPIRED")

        if not await self.oauth.check_token(record.access_token):
            raise OAuthError("Stored token is no longer valid", code="TOKEN_INVALID")

        return SignInGrant(
            access_token=record.access_token,
            user=record.user,
            expires_at=record.expires_at,
        )
