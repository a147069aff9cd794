"""
Shared route helpers: context lookup and Result responses.
"""
import asyncio
from typing import Awaitable

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse, Response

from portal.integrations.portal_api import PortalApiClient
from portal.models.result import Result
from portal.services.session_context import SessionContext
from portal.utils.logger import get_logger
from portal.utils.scope import RequestScope

logger = get_logger(__name__)

# How often a long request checks whether its client is still there
DISCONNECT_POLL_SECONDS = 0.5

# Non-standard "client closed request"
CLIENT_CLOSED_REQUEST = 499

ERROR_STATUS = {
    "NOT_SIGNED_IN": 401,
    "CONSENT_DENIED": 401,
    "OAUTH_ERROR": 401,
    "TOKEN_EXPIRED": 401,
    "TOKEN_INVALID": 401,
    "VALIDATION_FAILED": 400,
    "SIGN_IN_IN_PROGRESS": 409,
    "SIGN_IN_CANCELLED": 409,
    "REQUEST_FAILED": 502,
    "DECODE_FAILED": 502,
}


def get_context(request: Request) -> SessionContext:
    """FastAPI dependency: the SessionContext built by the lifespan."""
    return request.app.state.context


def get_portal(request: Request) -> PortalApiClient:
    return request.app.state.portal


def respond(result: Result) -> JSONResponse:
    """Result as JSON; failures get a matching HTTP status."""
    status_code = 200 if result.success else ERROR_STATUS.get(result.code or "", 500)
    return JSONResponse(status_code=status_code, content=jsonable_encoder(result))


async def respond_scoped(request: Request, operation: Awaitable[Result]) -> Response:
    """
    Run operation in a RequestScope that is closed when the client disconnects.

    Responds with the operation's Result, or 499 if the client left
    before it finished.
    """
    async with RequestScope() as scope:
        task = scope.spawn(operation)
        while not task.done():
            await asyncio.wait({task}, timeout=DISCONNECT_POLL_SECONDS)
            if not task.done() and await request.is_disconnected():
                logger.info(f"Client left {request.url.path}, cancelling")
                await scope.close()
                return Response(status_code=CLIENT_CLOSED_REQUEST)
        return respond(task.result())
