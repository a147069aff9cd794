"""
Drive-related Pydantic models.
"""
from pydantic import BaseModel, ConfigDict, Field, computed_field
from typing import List, Optional

from portal.utils.formatting import file_kind, file_size

FOLDER_MIME_TYPE = "application/vnd.google-apps.folder"
WORKSPACE_MIME_PREFIX = "application/vnd.google-apps"


class DriveOwner(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    display_name: str = Field("", alias="displayName")
    email_address: str = Field("", alias="emailAddress")


class DriveFile(BaseModel):
    """File metadata as returned by the files endpoint field mask."""
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str = ""
    mime_type: str = Field("", alias="mimeType")
    size: Optional[int] = None
    created_time: Optional[str] = Field(None, alias="createdTime")
    modified_time: Optional[str] = Field(None, alias="modifiedTime")
    web_view_link: Optional[str] = Field(None, alias="webViewLink")
    thumbnail_link: Optional[str] = Field(None, alias="thumbnailLink")
    owners: List[DriveOwner] = []
    shared: bool = False

    @computed_field
    @property
    def size_label(self) -> str:
        return file_size(self.size)

    @computed_field
    @property
    def kind(self) -> str:
        return file_kind(self.mime_type)

    @property
    def is_folder(self) -> bool:
        return self.mime_type == FOLDER_MIME_TYPE

    @property
    def is_workspace_file(self) -> bool:
        # Docs, Sheets, Slides... have no binary content to download
        return self.mime_type.startswith(WORKSPACE_MIME_PREFIX)


class FilePage(BaseModel):
    files: List[DriveFile]
    next_page_token: Optional[str] = None


class DownloadedFile(BaseModel):
    """
    Download outcome.

    content is None when the file can only be opened in the browser
    (Workspace documents, or media fetch refused); web_view_link is set then.
    """
    file: DriveFile
    content: Optional[bytes] = None
    web_view_link: Optional[str] = None
