"""
Google sign-in routes, one independent session per provider.

Sign-in flow:
1. Frontend calls POST /api/google/{provider}/sign-in (request stays open)
2. Backend opens Google's consent page for that provider's scopes
3. User grants permissions on Google
4. Google redirects to GET /api/google/callback with state and code
5. The waiting sign-in exchanges the code and answers step 1
"""
from html import escape
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse

from portal.models.auth import Provider
from portal.models.result import Result
from portal.services.consent import CallbackConsent
from portal.services.session_context import SessionContext
from portal.routes.deps import get_context, respond
from portal.utils.logger import get_logger

router = APIRouter()
logger = get_logger(__name__)

CALLBACK_PAGE = """<!doctype html>
<html>
  <head><title>{title}</title></head>
  <body style="font-family: sans-serif; text-align: center; padding-top: 4rem;">
    <h2>{title}</h2>
    <p>{message}</p>
  </body>
</html>
"""


def _page(title: str, message: str, status_code: int = 200) -> HTMLResponse:
    return HTMLResponse(
        CALLBACK_PAGE.format(title=escape(title), message=escape(message)),
        status_code=status_code,
    )


@router.get("/session")
async def get_session(ctx: SessionContext = Depends(get_context)):
    """
    Auth state of all four providers.

    Returns:
        Result with { mail_auth, drive_auth, classroom_auth, calendar_auth }
    """
    return respond(Result.ok(ctx.snapshot()))


@router.post("/{provider}/sign-in")
async def sign_in(provider: Provider, ctx: SessionContext = Depends(get_context)):
    """
    Interactive sign-in; answers once consent finished, failed or timed out.

    Returns:
        Result with the provider's AuthSession; the token stays server-side
    """
    logger.info(f"Sign-in requested for {provider.label}")
    result = await ctx.sign_in(provider)
    if not result.success:
        return respond(result)
    return respond(Result.ok(ctx.snapshot().for_provider(provider)))


@router.get("/callback")
async def oauth_callback(
    state: str = "",
    code: Optional[str] = None,
    error: Optional[str] = None,
    ctx: SessionContext = Depends(get_context),
):
    """
    Google's redirect target.

    Hands code (or error) to the sign-in waiting on this state and shows
    the user a page they can close.
    """
    consent = ctx.consent
    if not isinstance(consent, CallbackConsent) or not state:
        return _page("Sign-in failed", "This sign-in link is invalid.", status_code=400)

    if not consent.resolve(state, code=code, error=error):
        return _page("Sign-in expired", "This sign-in is no longer pending. Please try again.", status_code=400)

    if error:
        logger.warning(f"OAuth error: {error}")
        return _page("Sign-in cancelled", "You can close this window and return to the portal.")

    return _page("Signed in", "You can close this window and return to the portal.")


@router.post("/{provider}/sign-out")
async def sign_out(provider: Provider, ctx: SessionContext = Depends(get_context)):
    return respond(await ctx.sign_out(provider))


@router.post("/sign-out-all")
async def sign_out_all(ctx: SessionContext = Depends(get_context)):
    """Sign out of every provider; each outcome is reported separately."""
    results = await ctx.sign_out_all()
    return respond(Result.ok({provider.value: result for provider, result in results.items()}))
