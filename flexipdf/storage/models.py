"""Persisted record shapes for documents and folders."""

from __future__ import annotations

import uuid

from pydantic import BaseModel, ConfigDict, Field, field_validator


ROOT_FOLDER_ID = "root"


def is_root_id(folder_id: str | None) -> bool:
    """Return True when `folder_id` denotes the top level."""
    return folder_id is None or folder_id == ROOT_FOLDER_ID


def normalize_folder_id(folder_id: str | None) -> str | None:
    return None if is_root_id(folder_id) else folder_id


def _new_id() -> str:
    return str(uuid.uuid4())


class FileSystemRecord(BaseModel):
    """Capabilities shared by every item shown in the file browser."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default_factory=_new_id, frozen=True)
    display_name: str = Field(alias="displayName")
    is_selected: bool = Field(alias="isSelected", default=False)
    parent_folder_id: str | None = Field(alias="parentFolderId", default=None)

    @field_validator("parent_folder_id")
    @classmethod
    def _root_is_none(cls, value: str | None) -> str | None:
        return normalize_folder_id(value)


class DocumentRecord(FileSystemRecord):
    """A PDF the user imported, addressed by an opaque locator."""

    uri_string: str = Field(alias="uriString")
    last_modified: int = Field(alias="lastModified", default=0)
    is_favorite: bool = Field(alias="isFavorite", default=False)


class ContainerRecord(FileSystemRecord):
    """A folder; folders form a tree through `parent_folder_id`."""

    is_cloud_folder: bool = Field(alias="isCloudFolder", default=False)
    cloud_link_param: str | None = Field(alias="cloudLinkParam", default=None)
