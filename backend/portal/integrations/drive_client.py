"""
Google Drive API client integration.

Drive v3 Reference: https://developers.google.com/drive/api/reference/rest/v3
"""
import json
import secrets
from typing import Optional

from portal.integrations.google_api import GoogleApiClient
from portal.models.drive import DownloadedFile, DriveFile, FilePage
from portal.models.result import Result, result_boundary
from portal.utils.errors import RequestFailedError
from portal.utils.logger import get_logger

logger = get_logger(__name__)

DRIVE_API_BASE = "https://www.googleapis.com/drive/v3"
DRIVE_UPLOAD_URL = "https://www.googleapis.com/upload/drive/v3/files"

FILE_FIELDS = "id,name,mimeType,size,createdTime,modifiedTime,webViewLink,thumbnailLink,owners,shared"
LIST_FIELDS = f"nextPageToken,files({FILE_FIELDS})"

DELETE_ERRORS = {
    400: "Bad request: Invalid file ID or file cannot be deleted",
    403: "Permission denied: You may not have permission to delete this file",
    404: "File not found: The file may have already been deleted",
}


def _quote(value: str) -> str:
    """Escape a value for a Drive query string literal."""
    return value.replace("\\", "\\\\").replace("'", "\\'")


class DriveClient(GoogleApiClient):
    """
    Drive file browser operations.

    Usage:
        drive = DriveClient(Provider.DRIVE, token_store)
        page = await drive.list_folder("root")
        await drive.rename(file_id, "notes.pdf")
    """

    BASE_URL = DRIVE_API_BASE

    @result_boundary("List files")
    async def list_files(
        self,
        query: str = "",
        page_size: int = 10,
        page_token: Optional[str] = None,
    ) -> FilePage:
        """
        List files visible to the user.

        Args:
            query: Drive search expression (q), empty for everything
            page_size: Files per page
            page_token: Token from a previous page
        """
        params = {
            "pageSize": page_size,
            "fields": LIST_FIELDS,
            "supportsAllDrives": "true",
            "includeItemsFromAllDrives": "true",
        }
        if query:
            params["q"] = query
        if page_token:
            params["pageToken"] = page_token

        data = await self._make_request("GET", "/files", params=params)
        files = [DriveFile.model_validate(item) for item in data.get("files", [])]
        logger.info(f"Listed {len(files)} Drive files")
        return FilePage(files=files, next_page_token=data.get("nextPageToken"))

    async def list_folder(
        self,
        folder_id: str = "root",
        page_size: int = 50,
        page_token: Optional[str] = None,
    ) -> Result[FilePage]:
        """Children of folder_id, trashed files excluded."""
        query = f"'{_quote(folder_id)}' in parents and trashed = false"
        return await self.list_files(query=query, page_size=page_size, page_token=page_token)

    @result_boundary("Get file")
    async def get_file(self, file_id: str) -> DriveFile:
        return await self._get_metadata(file_id)

    async def _get_metadata(self, file_id: str) -> DriveFile:
        data = await self._make_request(
            "GET",
            f"/files/{file_id}",
            params={"fields": FILE_FIELDS, "supportsAllDrives": "true"},
        )
        return DriveFile.model_validate(data)

    @result_boundary("Upload file")
    async def upload(
        self,
        name: str,
        content: bytes,
        mime_type: str = "application/octet-stream",
        parent_id: str = "root",
    ) -> DriveFile:
        """
        Upload a file with metadata in one multipart/related request.

        Args:
            name: File name in Drive
            content: File bytes
            mime_type: Content type of the bytes
            parent_id: Folder to create the file in
        """
        boundary = f"portal-{secrets.token_hex(12)}"
        metadata = json.dumps({"name": name, "parents": [parent_id]})

        body = b"".join([
            f"--{boundary}\r\n".encode(),
            b"Content-Type: application/json; charset=UTF-8\r\n\r\n",
            metadata.encode("utf-8"),
            f"\r\n--{boundary}\r\n".encode(),
            f"Content-Type: {mime_type}\r\n\r\n".encode(),
            content,
            f"\r\n--{boundary}--".encode(),
        ])

        data = await self._make_request(
            "POST",
            DRIVE_UPLOAD_URL,
            params={"uploadType": "multipart", "fields": FILE_FIELDS, "supportsAllDrives": "true"},
            content=body,
            headers={"Content-Type": f"multipart/related; boundary={boundary}"},
        )
        logger.info(f"Uploaded {name} ({len(content)} bytes) to Drive")
        return DriveFile.model_validate(data)

    @result_boundary("Rename file")
    async def rename(self, file_id: str, name: str) -> DriveFile:
        data = await self._make_request(
            "PATCH",
            f"/files/{file_id}",
            params={"fields": FILE_FIELDS, "supportsAllDrives": "true"},
            json_data={"name": name},
        )
        logger.info(f"Renamed Drive file {file_id}")
        return DriveFile.model_validate(data)

    @result_boundary("Delete file")
    async def delete(self, file_id: str) -> None:
        """
        Permanently delete a file.

        400, 403 and 404 come back with messages the file browser shows
        as they are.
        """
        try:
            await self._make_request(
                "DELETE",
                f"/files/{file_id}",
                params={"supportsAllDrives": "true"},
            )
        except RequestFailedError as e:
            if e.status in DELETE_ERRORS:
                raise RequestFailedError(e.status, DELETE_ERRORS[e.status])
            raise

        logger.info(f"Deleted Drive file {file_id}")

    @result_boundary("Download file")
    async def download(self, file_id: str) -> DownloadedFile:
        """
        Fetch a file's bytes.

        Google Docs, Sheets and other Workspace files have no binary
        content; for them, and when the media fetch is refused, the
        result carries web_view_link instead.
        """
        file = await self._get_metadata(file_id)

        if file.is_workspace_file:
            logger.info(f"{file.name} is a Workspace file, returning its link")
            return DownloadedFile(file=file, web_view_link=file.web_view_link)

        try:
            content = await self._make_request(
                "GET",
                f"/files/{file_id}",
                params={"alt": "media", "supportsAllDrives": "true"},
                expect="bytes",
            )
        except RequestFailedError as e:
            if not file.web_view_link:
                raise
            logger.warning(f"Media download of {file_id} failed ({e.status}), falling back to link")
            return DownloadedFile(file=file, web_view_link=file.web_view_link)

        return DownloadedFile(file=file, content=content)
