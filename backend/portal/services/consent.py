"""
Interactive consent handling.

A sign-in opens Google's consent page and then waits until Google
redirects the browser back to /api/google/callback. CallbackConsent keeps
one pending future per OAuth state; the callback route resolves it.
"""
import asyncio
import webbrowser
from typing import Awaitable, Callable, Dict, Optional

from pydantic import BaseModel

from portal.utils.errors import ConsentDeniedError
from portal.utils.logger import get_logger

logger = get_logger(__name__)


class ConsentResponse(BaseModel):
    """Query parameters Google sends to the redirect URI."""
    code: Optional[str] = None
    error: Optional[str] = None


# (authorization_url, state) -> what came back on the redirect
ConsentHandler = Callable[[str, str], Awaitable[ConsentResponse]]


def open_in_browser(url: str) -> None:
    if not webbrowser.open(url, new=2):
        logger.warning(f"Could not open a browser; visit this URL to continue: {url}")


def log_url(url: str) -> None:
    logger.info(f"Open this URL to grant access: {url}")


class CallbackConsent:
    """
    ConsentHandler resolved by the OAuth redirect.

    Usage:
        consent = CallbackConsent(timeout_seconds=300)
        response = await consent(url, state)      # in sign-in
        consent.resolve(state, code=code)         # in the callback route
    """

    def __init__(
        self,
        timeout_seconds: float = 300.0,
        prompt: Optional[Callable[[str], None]] = None,
    ):
        self.timeout_seconds = timeout_seconds
        self.prompt = prompt or log_url
        self._pending: Dict[str, asyncio.Future] = {}

    async def __call__(self, authorization_url: str, state: str) -> ConsentResponse:
        future = asyncio.get_running_loop().create_future()
        self._pending[state] = future

        try:
            self.prompt(authorization_url)
            return await asyncio.wait_for(future, self.timeout_seconds)
        except asyncio.TimeoutError:
            logger.warning(f"Consent for state {state[:8]}... timed out")
            raise ConsentDeniedError("Consent was not completed in time")
        finally:
            self._pending.pop(state, None)

    def resolve(
        self,
        state: str,
        code: Optional[str] = None,
        error: Optional[str] = None,
    ) -> bool:
        """
        Deliver the redirect parameters to the waiting sign-in.

        Returns False for unknown, expired or already used states.
        """
        future = self._pending.get(state)
        if future is None or future.done():
            logger.warning(f"Consent callback with unknown state {state[:8]}...")
            return False

        future.set_result(ConsentResponse(code=code, error=error))
        return True

    def is_pending(self, state: str) -> bool:
        return state in self._pending
