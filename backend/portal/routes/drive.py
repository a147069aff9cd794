"""
Google Drive file browser routes.
"""
from typing import Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import Response
from pydantic import BaseModel

from portal.models.result import Result
from portal.services.session_context import SessionContext
from portal.routes.deps import get_context, respond, respond_scoped
from portal.utils.errors import ValidationFailedError

router = APIRouter()


class RenameRequest(BaseModel):
    name: str


@router.get("/files")
async def list_files(
    request: Request,
    q: str = "",
    page_size: int = Query(10, ge=1, le=1000),
    page_token: Optional[str] = None,
    ctx: SessionContext = Depends(get_context),
):
    return await respond_scoped(
        request, ctx.drive.list_files(query=q, page_size=page_size, page_token=page_token)
    )


@router.get("/folders/{folder_id}")
async def list_folder(
    request: Request,
    folder_id: str,
    page_size: int = Query(50, ge=1, le=1000),
    page_token: Optional[str] = None,
    ctx: SessionContext = Depends(get_context),
):
    """Folder contents; use "root" for My Drive."""
    return await respond_scoped(
        request, ctx.drive.list_folder(folder_id, page_size=page_size, page_token=page_token)
    )


@router.post("/files")
async def upload_file(
    request: Request,
    name: str,
    parent_id: str = "root",
    ctx: SessionContext = Depends(get_context),
):
    """
    Upload the raw request body as a new file.

    The request Content-Type becomes the file's mime type.
    """
    content = await request.body()
    if not name.strip():
        return respond(Result.fail(ValidationFailedError("File name is required.")))

    mime_type = request.headers.get("content-type") or "application/octet-stream"
    return respond(await ctx.drive.upload(name.strip(), content, mime_type, parent_id=parent_id))


@router.get("/files/{file_id}")
async def file_metadata(file_id: str, ctx: SessionContext = Depends(get_context)):
    return respond(await ctx.drive.get_file(file_id))


@router.patch("/files/{file_id}")
async def rename_file(file_id: str, body: RenameRequest, ctx: SessionContext = Depends(get_context)):
    if not body.name.strip():
        return respond(Result.fail(ValidationFailedError("File name is required.")))
    return respond(await ctx.drive.rename(file_id, body.name.strip()))


@router.delete("/files/{file_id}")
async def delete_file(file_id: str, ctx: SessionContext = Depends(get_context)):
    return respond(await ctx.drive.delete(file_id))


@router.get("/files/{file_id}/download")
async def download_file(file_id: str, ctx: SessionContext = Depends(get_context)):
    """
    File bytes as an attachment.

    Files that can only be opened in the browser answer with a JSON
    Result carrying web_view_link instead.
    """
    result = await ctx.drive.download(file_id)
    if not result.success or result.data.content is None:
        return respond(result)

    downloaded = result.data
    return Response(
        content=downloaded.content,
        media_type=downloaded.file.mime_type or "application/octet-stream",
        headers={
            "Content-Disposition": f"attachment; filename*=UTF-8''{quote(downloaded.file.name)}",
        },
    )
