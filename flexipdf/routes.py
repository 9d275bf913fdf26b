"""API routers for the FlexiPDF library backend."""

from __future__ import annotations

import logging
from typing import Any, NoReturn

from fastapi import APIRouter, HTTPException, Query, Request, status
from pydantic import BaseModel, Field

from .config_loader import AppConfig
from .library import (
    CURRENT_FOLDER,
    DocumentLibrary,
    FolderExistsError,
    ImportEntry,
    ItemNotFoundError,
    LibraryError,
)
from .storage import ROOT_FOLDER_ID, ContainerRecord, DocumentRecord
from .widget_status import WidgetNotifier, WidgetStatus

router = APIRouter()
logger = logging.getLogger(__name__)


# --------------------------------------------------------------------------- #
# Pydantic schemas
# --------------------------------------------------------------------------- #


class DocumentsResponse(BaseModel):
    items: list[DocumentRecord]
    total: int


class PickedFile(BaseModel):
    locator: str
    display_name: str = Field(alias="displayName", default="")


class ImportRequest(BaseModel):
    files: list[PickedFile]
    folder_id: str | None = Field(alias="folderId", default=None)


class IdsRequest(BaseModel):
    ids: list[str]


class MoveRequest(BaseModel):
    ids: list[str]
    destination_id: str | None = Field(alias="destinationId", default=None)


class MoveResponse(BaseModel):
    moved: list[str]
    skipped: list[str]


class DeleteResponse(BaseModel):
    deleted: int


class CreateFolderRequest(BaseModel):
    name: str
    parent_id: str | None = Field(alias="parentId", default=None)


class RenameRequest(BaseModel):
    name: str


class FolderListingResponse(BaseModel):
    folder_id: str = Field(alias="folderId")
    folders: list[ContainerRecord]
    documents: list[DocumentRecord]


class CursorResponse(BaseModel):
    folder_id: str = Field(alias="folderId")


class WidgetResponse(BaseModel):
    is_file_open: bool = Field(alias="isFileOpen")
    open_file_name: str | None = Field(alias="openFileName", default=None)
    short_name: str | None = Field(alias="shortName", default=None)


class ConfigResponse(BaseModel):
    storage: dict[str, Any]
    library: dict[str, Any]
    widget: dict[str, Any]


# --------------------------------------------------------------------------- #
# Helpers
# --------------------------------------------------------------------------- #


def _request_state(request: Request):
    return request.app.state


def _raise_http(exc: LibraryError) -> NoReturn:
    if isinstance(exc, ItemNotFoundError):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Unknown item: {exc.args[0]}") from exc
    if isinstance(exc, FolderExistsError):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


def _folder_argument(folder_id: str | None) -> str | object:
    # Omitted or null means the cursor folder; "root" means the top level.
    return CURRENT_FOLDER if folder_id is None else folder_id


def _documents_response(items: list[DocumentRecord]) -> DocumentsResponse:
    return DocumentsResponse(items=items, total=len(items))


def _widget_response(widget_status: WidgetStatus) -> WidgetResponse:
    return WidgetResponse(
        isFileOpen=widget_status.is_file_open,
        openFileName=widget_status.open_file_name,
        shortName=widget_status.short_name,
    )


# --------------------------------------------------------------------------- #
# Routes
# --------------------------------------------------------------------------- #


@router.get("/documents", response_model=DocumentsResponse)
async def list_documents(request: Request) -> DocumentsResponse:
    library: DocumentLibrary = _request_state(request).library
    return _documents_response(list(library.documents))


@router.post("/documents/import", response_model=DocumentsResponse)
async def import_documents(request: Request, payload: ImportRequest) -> DocumentsResponse:
    library: DocumentLibrary = _request_state(request).library
    entries = [ImportEntry(locator=item.locator, display_name=item.display_name) for item in payload.files]
    try:
        added = await library.import_documents(entries, _folder_argument(payload.folder_id))
    except LibraryError as exc:
        _raise_http(exc)
    return _documents_response(added)


@router.get("/documents/recent", response_model=DocumentsResponse)
async def recent_documents(request: Request) -> DocumentsResponse:
    library: DocumentLibrary = _request_state(request).library
    return _documents_response(library.recent())


@router.get("/documents/favorites", response_model=DocumentsResponse)
async def favorite_documents(request: Request) -> DocumentsResponse:
    library: DocumentLibrary = _request_state(request).library
    return _documents_response(library.favorites())


@router.post("/documents/favorite", response_model=DocumentsResponse)
async def toggle_favorite(request: Request, payload: IdsRequest) -> DocumentsResponse:
    library: DocumentLibrary = _request_state(request).library
    return _documents_response(await library.toggle_favorite(payload.ids))


@router.post("/documents/{document_id}/open", response_model=DocumentRecord)
async def open_document(request: Request, document_id: str) -> DocumentRecord:
    state = _request_state(request)
    library: DocumentLibrary = state.library
    notifier: WidgetNotifier = state.widget_notifier
    try:
        document = await library.open_document(document_id)
    except LibraryError as exc:
        _raise_http(exc)
    await notifier.notify_file_opened(document.display_name)
    return document


@router.post("/viewer/close", response_model=WidgetResponse)
async def close_viewer(request: Request) -> WidgetResponse:
    notifier: WidgetNotifier = _request_state(request).widget_notifier
    return _widget_response(await notifier.notify_file_closed())


@router.get("/folders", response_model=FolderListingResponse)
async def list_folder(
    request: Request,
    folder_id: str | None = Query(default=None, alias="folderId"),
    q: str = "",
) -> FolderListingResponse:
    library: DocumentLibrary = _request_state(request).library
    try:
        listing = library.list_folder(_folder_argument(folder_id), q)
    except LibraryError as exc:
        _raise_http(exc)
    return FolderListingResponse(
        folderId=listing.folder_id or ROOT_FOLDER_ID,
        folders=listing.folders,
        documents=listing.documents,
    )


@router.post("/folders", response_model=ContainerRecord, status_code=status.HTTP_201_CREATED)
async def create_folder(request: Request, payload: CreateFolderRequest) -> ContainerRecord:
    library: DocumentLibrary = _request_state(request).library
    try:
        return await library.create_folder(payload.name, _folder_argument(payload.parent_id))
    except LibraryError as exc:
        _raise_http(exc)


@router.patch("/items/{item_id}")
async def rename_item(request: Request, item_id: str, payload: RenameRequest) -> dict[str, Any]:
    library: DocumentLibrary = _request_state(request).library
    try:
        record = await library.rename(item_id, payload.name)
    except LibraryError as exc:
        _raise_http(exc)
    return record.model_dump(mode="json", by_alias=True)


@router.post("/items/move", response_model=MoveResponse)
async def move_items(request: Request, payload: MoveRequest) -> MoveResponse:
    library: DocumentLibrary = _request_state(request).library
    try:
        result = await library.move(payload.ids, _folder_argument(payload.destination_id))
    except LibraryError as exc:
        _raise_http(exc)
    return MoveResponse(moved=result.moved, skipped=result.skipped)


@router.post("/items/delete", response_model=DeleteResponse)
async def delete_items(request: Request, payload: IdsRequest) -> DeleteResponse:
    library: DocumentLibrary = _request_state(request).library
    return DeleteResponse(deleted=await library.delete(payload.ids))


@router.get("/cursor", response_model=CursorResponse)
async def get_cursor(request: Request) -> CursorResponse:
    library: DocumentLibrary = _request_state(request).library
    return CursorResponse(folderId=library.current_folder_id or ROOT_FOLDER_ID)


@router.post("/cursor/enter/{folder_id}", response_model=CursorResponse)
async def enter_folder(request: Request, folder_id: str) -> CursorResponse:
    library: DocumentLibrary = _request_state(request).library
    try:
        current = await library.enter_folder(folder_id)
    except LibraryError as exc:
        _raise_http(exc)
    return CursorResponse(folderId=current or ROOT_FOLDER_ID)


@router.post("/cursor/up", response_model=CursorResponse)
async def go_up(request: Request) -> CursorResponse:
    library: DocumentLibrary = _request_state(request).library
    current = await library.go_up()
    return CursorResponse(folderId=current or ROOT_FOLDER_ID)


@router.post("/cursor/root", response_model=CursorResponse)
async def go_to_root(request: Request) -> CursorResponse:
    library: DocumentLibrary = _request_state(request).library
    await library.go_to_root()
    return CursorResponse(folderId=ROOT_FOLDER_ID)


@router.get("/widget", response_model=WidgetResponse)
async def widget_status(request: Request) -> WidgetResponse:
    notifier: WidgetNotifier = _request_state(request).widget_notifier
    return _widget_response(await notifier.current_status())


@router.get("/config", response_model=ConfigResponse)
async def get_config(request: Request) -> ConfigResponse:
    app_config: AppConfig = _request_state(request).app_config
    return ConfigResponse(
        storage={"backend": app_config.storage.backend},
        library={"recentLimit": app_config.library.recent_limit},
        widget={"maxNameLength": app_config.widget.max_name_length},
    )
