"""
Session context - the one object that owns Google auth state.

It holds, per provider:
1. The OAuthSession (consent, token exchange, revocation)
2. The published AuthSession snapshot
3. The provider client, kept in sync with the current token

and the TokenStore they all persist to. It is built once (by the app
lifespan, or by a test) and passed to whoever needs it.
"""
import asyncio
from typing import Callable, Dict, List, Optional

import httpx

from portal.config import Settings, get_settings
from portal.integrations.calendar_client import CalendarClient
from portal.integrations.classroom_client import ClassroomClient
from portal.integrations.drive_client import DriveClient
from portal.integrations.gmail_client import MailClient
from portal.integrations.google_api import GoogleApiClient
from portal.integrations.google_auth import GoogleOAuthClient
from portal.models.auth import AuthSession, AuthSnapshot, Provider, SignInGrant, TokenRecord
from portal.models.result import Result
from portal.services.consent import CallbackConsent, ConsentHandler, open_in_browser
from portal.services.oauth_session import OAuthSession
from portal.services.storage import JsonFileStorage, KeyValueStorage
from portal.services.token_store import TokenStore, user_json
from portal.utils.errors import NotSignedInError, OAuthError, SignInCancelledError, SignInInProgressError
from portal.utils.logger import get_logger

logger = get_logger(__name__)

Listener = Callable[[AuthSnapshot], None]


class SessionContext:
    """
    Usage:
        ctx = SessionContext(settings)
        await ctx.restore()
        result = await ctx.sign_in(Provider.DRIVE)
        files = await ctx.drive.list_folder()
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        storage: Optional[KeyValueStorage] = None,
        consent: Optional[ConsentHandler] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings or get_settings()
        storage = storage or JsonFileStorage(self.settings.token_storage_path)
        self.token_store = TokenStore(storage)

        if consent is None:
            prompt = open_in_browser if self.settings.open_browser else None
            consent = CallbackConsent(self.settings.consent_timeout_seconds, prompt=prompt)
        self.consent = consent

        self.oauth = GoogleOAuthClient(self.settings, transport=transport)
        self.sessions: Dict[Provider, OAuthSession] = {
            provider: OAuthSession(provider, self.oauth, consent, self.settings)
            for provider in Provider
        }
        self._auth: Dict[Provider, AuthSession] = {
            provider: AuthSession(provider=provider) for provider in Provider
        }

        timeout = self.settings.request_timeout_seconds
        buffer = self.settings.token_expiry_buffer_seconds
        self._clients: Dict[Provider, GoogleApiClient] = {
            Provider.MAIL: MailClient(Provider.MAIL, self.token_store, transport, timeout, buffer),
            Provider.DRIVE: DriveClient(Provider.DRIVE, self.token_store, transport, timeout, buffer),
            Provider.CLASSROOM: ClassroomClient(Provider.CLASSROOM, self.token_store, transport, timeout, buffer),
            Provider.CALENDAR: CalendarClient(
                Provider.CALENDAR,
                self.token_store,
                transport,
                timeout,
                buffer,
                time_zone=self.settings.default_time_zone,
            ),
        }
        for client in self._clients.values():
            client.on_expired = self._expired

        # Bumped by every sign-out; a sign-in or restore that started under
        # an older value was overtaken and must not sign the provider in
        self._sign_outs: Dict[Provider, int] = {provider: 0 for provider in Provider}
        self._listeners: List[Listener] = []

    # =========================================================================
    # Clients
    # =========================================================================

    def client(self, provider: Provider) -> GoogleApiClient:
        return self._clients[provider]

    @property
    def mail(self) -> MailClient:
        return self._clients[Provider.MAIL]

    @property
    def drive(self) -> DriveClient:
        return self._clients[Provider.DRIVE]

    @property
    def classroom(self) -> ClassroomClient:
        return self._clients[Provider.CLASSROOM]

    @property
    def calendar(self) -> CalendarClient:
        return self._clients[Provider.CALENDAR]

    # =========================================================================
    # State publication
    # =========================================================================

    def snapshot(self) -> AuthSnapshot:
        return AuthSnapshot(
            mail_auth=self._auth[Provider.MAIL],
            drive_auth=self._auth[Provider.DRIVE],
            classroom_auth=self._auth[Provider.CLASSROOM],
            calendar_auth=self._auth[Provider.CALENDAR],
        )

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call listener with every new snapshot. Returns the unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _set(self, provider: Provider, auth: AuthSession) -> None:
        self._auth[provider] = auth
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Auth listener failed")

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def initialize(self) -> None:
        """Prepare every provider session; logs instead of failing when OAuth is unconfigured."""
        for provider, session in self.sessions.items():
            try:
                session.initialize()
            except OAuthError as e:
                logger.warning(f"{provider.label} sign-in unavailable: {e.message}")

    async def restore(self) -> Dict[Provider, Result]:
        """
        Bring back persisted sessions, all providers concurrently.

        A record that fails the liveness check is removed from storage.
        """
        providers = list(Provider)
        results = await asyncio.gather(*(self._restore_one(p) for p in providers))
        return dict(zip(providers, results))

    async def _restore_one(self, provider: Provider) -> Result:
        record = self.token_store.get(provider)
        if record is None:
            return Result.fail(NotSignedInError(provider.label))

        started = self._sign_outs[provider]
        self._set(provider, self._auth[provider].model_copy(update={"loading": True}))
        result = await self.sessions[provider].restore(record)

        if self._sign_outs[provider] != started:
            self._set(provider, self._auth[provider].model_copy(update={"loading": False}))
            return Result.fail(SignInCancelledError(provider.label))
        if result.success:
            self._signed_in(provider, result.data)
        else:
            self.token_store.clear(provider)
            self.client(provider).set_access_token(None)
            self._set(provider, AuthSession(provider=provider))
        return result

    async def sign_in(self, provider: Provider) -> Result:
        """
        Interactive sign-in for one provider.

        Rejected with SIGN_IN_IN_PROGRESS while a sign-in for the same
        provider is running. A sign-out that lands while consent is still
        pending wins: the late grant is revoked and the call fails with
        SIGN_IN_CANCELLED.
        """
        if self._auth[provider].loading:
            return Result.fail(SignInInProgressError(provider.label))

        started = self._sign_outs[provider]
        previous = self._auth[provider]
        self._set(provider, previous.model_copy(update={"loading": True}))

        try:
            result = await self.sessions[provider].sign_in()
        finally:
            if self._sign_outs[provider] != started:
                self._set(provider, self._auth[provider].model_copy(update={"loading": False}))
            elif self._auth[provider].loading:
                self._set(provider, previous.model_copy(update={"loading": False}))

        if self._sign_outs[provider] != started:
            if result.success:
                await self.sessions[provider].sign_out(result.data.access_token)
            logger.info(f"{provider.label} sign-in cancelled by sign-out")
            return Result.fail(SignInCancelledError(provider.label))
        if result.success:
            self._signed_in(provider, result.data)
        return result

    def _signed_in(self, provider: Provider, grant: SignInGrant) -> None:
        self.token_store.set(
            provider,
            TokenRecord(
                provider=provider,
                access_token=grant.access_token,
                user_json=user_json(grant.user),
                expires_at=grant.expires_at,
            ),
        )
        self.client(provider).set_access_token(grant.access_token, grant.expires_at)
        self._set(
            provider,
            AuthSession(
                provider=provider,
                user=grant.user,
                access_token=grant.access_token,
                expires_at=grant.expires_at,
            ),
        )

    async def sign_out(self, provider: Provider) -> Result:
        """Revoke (best effort) and forget the provider's token. Always succeeds."""
        self._sign_outs[provider] += 1
        token = self._auth[provider].access_token or self.client(provider).access_token
        self.token_store.clear(provider)
        self.client(provider).set_access_token(None)
        # A pending sign-in keeps its loading flag until it returns
        self._set(provider, AuthSession(provider=provider, loading=self._auth[provider].loading))

        return await self.sessions[provider].sign_out(token)

    def _expired(self, provider: Provider) -> None:
        self.token_store.clear(provider)
        self._set(provider, AuthSession(provider=provider, loading=self._auth[provider].loading))

    async def sign_out_all(self) -> Dict[Provider, Result]:
        providers = list(Provider)
        results = await asyncio.gather(*(self.sign_out(p) for p in providers))
        return dict(zip(providers, results))
