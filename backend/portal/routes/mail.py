"""
Mail and notices routes.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from portal.services.session_context import SessionContext
from portal.routes.deps import get_context, respond, respond_scoped

router = APIRouter()


@router.get("/inbox")
async def inbox(
    request: Request,
    max_results: int = Query(10, ge=1, le=100),
    q: Optional[str] = None,
    ctx: SessionContext = Depends(get_context),
):
    """
    Latest inbox messages.

    Returns:
        Result with { emails: [...], dropped: n }
    """
    return await respond_scoped(request, ctx.mail.list_inbox(max_results=max_results, query=q))


@router.get("/messages/{message_id}")
async def message(message_id: str, ctx: SessionContext = Depends(get_context)):
    return respond(await ctx.mail.get_message(message_id))
