"""In-memory document library backed by the file-system datasource."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Iterable, Sequence

from .storage import (
    ROOT_FOLDER_ID,
    ContainerRecord,
    DocumentRecord,
    FileSystemDatasource,
    FileSystemRecord,
    is_root_id,
    normalize_folder_id,
)

logger = logging.getLogger(__name__)

DEFAULT_RECENT_LIMIT = 15

# Default folder argument: the folder the cursor is on. None or "root" is the top level.
CURRENT_FOLDER: object = object()


class LibraryError(Exception):
    """Base class for library operations the caller can act on."""


class ItemNotFoundError(LibraryError, KeyError):
    """Raised when an id matches no document or folder."""


class FolderExistsError(LibraryError):
    """Raised when a folder name is already taken in the target folder."""


class InvalidNameError(LibraryError, ValueError):
    """Raised for blank display names."""


@dataclass(slots=True)
class ImportEntry:
    """A locator chosen in the file picker with its user-visible name."""

    locator: str
    display_name: str


@dataclass(slots=True)
class MoveResult:
    moved: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)


@dataclass(slots=True)
class FolderListing:
    folder_id: str | None
    folders: list[ContainerRecord]
    documents: list[DocumentRecord]


def _now_ms() -> int:
    return int(time.time() * 1000)


def _clean_name(name: str) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise InvalidNameError("Name must not be blank.")
    return cleaned


def _subtree(
    folder_id: str,
    folders: Sequence[ContainerRecord],
    documents: Sequence[DocumentRecord],
) -> tuple[list[ContainerRecord], list[DocumentRecord]]:
    found_folders: list[ContainerRecord] = []
    found_documents: list[DocumentRecord] = []
    pending = [folder_id]
    seen = {folder_id}
    while pending:
        parent = pending.pop()
        found_documents.extend(d for d in documents if d.parent_folder_id == parent)
        children = [f for f in folders if f.parent_folder_id == parent and f.id not in seen]
        seen.update(child.id for child in children)
        found_folders.extend(children)
        pending.extend(child.id for child in children)
    return found_folders, found_documents


class DocumentLibrary:
    """Owns the document and folder collections and the folder cursor.

    Each mutation rewrites the affected collection wholesale. The persistence
    layer does no locking, so every read-modify-write here runs under one
    lock.
    """

    def __init__(self, datasource: FileSystemDatasource, recent_limit: int = DEFAULT_RECENT_LIMIT) -> None:
        self.datasource = datasource
        self.recent_limit = recent_limit
        self.documents: list[DocumentRecord] = []
        self.folders: list[ContainerRecord] = []
        self.current_folder_id: str | None = None
        self._lock = asyncio.Lock()

    async def load(self) -> None:
        async with self._lock:
            self.documents = await self.datasource.load_pdf_files()
            self.folders = await self.datasource.load_folders()
            saved_id = await self.datasource.load_current_folder_id()
            if is_root_id(saved_id) or self._find_folder(saved_id) is None:
                if not is_root_id(saved_id):
                    logger.warning("Saved folder '%s' no longer exists; starting at root", saved_id)
                self.current_folder_id = None
            else:
                self.current_folder_id = saved_id
        logger.info(
            "Library loaded: %s document(s), %s folder(s), current folder %s",
            len(self.documents),
            len(self.folders),
            self.current_folder_id or ROOT_FOLDER_ID,
        )

    # ------------------------------------------------------------------ #
    # Queries
    # ------------------------------------------------------------------ #

    def get_document(self, document_id: str) -> DocumentRecord:
        document = self._find_document(document_id)
        if document is None:
            raise ItemNotFoundError(document_id)
        return document

    def get_folder(self, folder_id: str) -> ContainerRecord:
        folder = self._find_folder(folder_id)
        if folder is None:
            raise ItemNotFoundError(folder_id)
        return folder

    def list_folder(self, folder_id: str | None | object = CURRENT_FOLDER, query: str = "") -> FolderListing:
        target = self._target_folder(folder_id)
        needle = query.strip().lower()

        def visible(record: FileSystemRecord) -> bool:
            return record.parent_folder_id == target and (not needle or needle in record.display_name.lower())

        folders = sorted((f for f in self.folders if visible(f)), key=lambda f: f.display_name.lower())
        documents = sorted((d for d in self.documents if visible(d)), key=lambda d: d.display_name.lower())
        return FolderListing(folder_id=target, folders=folders, documents=documents)

    def recent(self) -> list[DocumentRecord]:
        ordered = sorted(self.documents, key=lambda d: d.last_modified, reverse=True)
        return ordered[: self.recent_limit]

    def favorites(self) -> list[DocumentRecord]:
        return [document for document in self.documents if document.is_favorite]

    def descendants(self, folder_id: str) -> tuple[list[ContainerRecord], list[DocumentRecord]]:
        """Return every folder and document below `folder_id`."""
        return _subtree(folder_id, self.folders, self.documents)

    # ------------------------------------------------------------------ #
    # Mutations
    # ------------------------------------------------------------------ #

    async def import_documents(
        self,
        entries: Iterable[ImportEntry],
        folder_id: str | None | object = CURRENT_FOLDER,
    ) -> list[DocumentRecord]:
        async with self._lock:
            target = self._target_folder(folder_id)
            known = {(d.uri_string, d.parent_folder_id) for d in self.documents}
            added: list[DocumentRecord] = []
            for entry in entries:
                if (entry.locator, target) in known:
                    logger.info("Skipping '%s': already in folder %s", entry.display_name, target or ROOT_FOLDER_ID)
                    continue
                document = DocumentRecord(
                    uri_string=entry.locator,
                    display_name=entry.display_name or "Unknown PDF",
                    last_modified=_now_ms(),
                    parent_folder_id=target,
                )
                known.add((document.uri_string, target))
                added.append(document)

            if not added:
                logger.debug("No new documents to import")
                return []
            documents = [*self.documents, *added]
            await self.datasource.save_pdf_files(documents)
            self.documents = documents
            logger.info("Imported %s document(s) into %s", len(added), target or ROOT_FOLDER_ID)
            return added

    async def create_folder(
        self,
        name: str,
        parent_id: str | None | object = CURRENT_FOLDER,
    ) -> ContainerRecord:
        async with self._lock:
            display_name = _clean_name(name)
            parent = self._target_folder(parent_id)
            if self._folder_name_taken(display_name, parent):
                raise FolderExistsError(f"A folder named '{display_name}' already exists here.")
            folder = ContainerRecord(display_name=display_name, parent_folder_id=parent)
            folders = [*self.folders, folder]
            await self.datasource.save_folders(folders)
            self.folders = folders
            logger.info("Created folder '%s' (%s)", folder.display_name, folder.id)
            return folder

    async def rename(self, item_id: str, name: str) -> FileSystemRecord:
        async with self._lock:
            display_name = _clean_name(name)
            document = self._find_document(item_id)
            if document is not None:
                renamed_document = document.model_copy(update={"display_name": display_name})
                documents = [renamed_document if d.id == item_id else d for d in self.documents]
                await self.datasource.save_pdf_files(documents)
                self.documents = documents
                return renamed_document

            folder = self.get_folder(item_id)
            if self._folder_name_taken(display_name, folder.parent_folder_id, ignore_id=item_id):
                raise FolderExistsError(f"A folder named '{display_name}' already exists here.")
            renamed_folder = folder.model_copy(update={"display_name": display_name})
            folders = [renamed_folder if f.id == item_id else f for f in self.folders]
            await self.datasource.save_folders(folders)
            self.folders = folders
            return renamed_folder

    async def toggle_favorite(self, document_ids: Sequence[str]) -> list[DocumentRecord]:
        async with self._lock:
            wanted = set(document_ids)
            toggled: list[DocumentRecord] = []
            documents: list[DocumentRecord] = []
            for document in self.documents:
                if document.id in wanted:
                    document = document.model_copy(update={"is_favorite": not document.is_favorite})
                    toggled.append(document)
                documents.append(document)
            if not toggled:
                return []
            await self.datasource.save_pdf_files(documents)
            self.documents = documents
            return toggled

    async def delete(self, item_ids: Sequence[str]) -> int:
        """Delete documents and folders; a folder takes its subtree with it."""
        async with self._lock:
            doomed_documents: set[str] = set()
            doomed_folders: set[str] = set()
            for item_id in item_ids:
                if self._find_document(item_id) is not None:
                    doomed_documents.add(item_id)
                elif self._find_folder(item_id) is not None:
                    doomed_folders.add(item_id)
                    sub_folders, sub_documents = self.descendants(item_id)
                    doomed_folders.update(f.id for f in sub_folders)
                    doomed_documents.update(d.id for d in sub_documents)
                else:
                    logger.warning("Cannot delete unknown item '%s'", item_id)

            documents = [d for d in self.documents if d.id not in doomed_documents]
            folders = [f for f in self.folders if f.id not in doomed_folders]
            if doomed_documents:
                await self.datasource.save_pdf_files(documents)
                self.documents = documents
            if doomed_folders:
                await self.datasource.save_folders(folders)
                self.folders = folders
                if self.current_folder_id in doomed_folders:
                    self.current_folder_id = None
                    await self.datasource.save_current_folder_id(ROOT_FOLDER_ID)
            removed = len(doomed_documents) + len(doomed_folders)
            logger.info("Deleted %s item(s)", removed)
            return removed

    async def move(
        self,
        item_ids: Sequence[str],
        destination_id: str | None | object = CURRENT_FOLDER,
    ) -> MoveResult:
        async with self._lock:
            destination = self._target_folder(destination_id)

            result = MoveResult()
            documents = list(self.documents)
            folders = list(self.folders)
            for item_id in item_ids:
                document = next((d for d in documents if d.id == item_id), None)
                if document is not None:
                    clash = any(
                        d.uri_string == document.uri_string and d.parent_folder_id == destination and d.id != item_id
                        for d in documents
                    )
                    if clash:
                        logger.warning("'%s' already exists in the destination; skipped", document.display_name)
                        result.skipped.append(item_id)
                        continue
                    documents = [
                        d.model_copy(update={"parent_folder_id": destination}) if d.id == item_id else d
                        for d in documents
                    ]
                    result.moved.append(item_id)
                    continue

                folder = next((f for f in folders if f.id == item_id), None)
                if folder is None:
                    logger.warning("Cannot move unknown item '%s'", item_id)
                    result.skipped.append(item_id)
                    continue
                sub_folders, _ = _subtree(item_id, folders, documents)
                if destination == item_id or any(f.id == destination for f in sub_folders):
                    logger.warning("Cannot move folder '%s' into itself or a subfolder", folder.display_name)
                    result.skipped.append(item_id)
                    continue
                clash = any(
                    f.display_name.lower() == folder.display_name.lower()
                    and f.parent_folder_id == destination
                    and f.id != item_id
                    for f in folders
                )
                if clash:
                    logger.warning("Folder '%s' already exists in the destination; skipped", folder.display_name)
                    result.skipped.append(item_id)
                    continue
                folders = [
                    f.model_copy(update={"parent_folder_id": destination}) if f.id == item_id else f
                    for f in folders
                ]
                result.moved.append(item_id)

            if result.moved:
                await self.datasource.save_pdf_files(documents)
                await self.datasource.save_folders(folders)
                self.documents = documents
                self.folders = folders
            logger.info("Move finished: %s moved, %s skipped", len(result.moved), len(result.skipped))
            return result

    async def open_document(self, document_id: str) -> DocumentRecord:
        async with self._lock:
            document = self.get_document(document_id)
            opened = document.model_copy(update={"last_modified": _now_ms()})
            documents = [opened if d.id == document_id else d for d in self.documents]
            await self.datasource.save_pdf_files(documents)
            self.documents = documents
            return opened

    # ------------------------------------------------------------------ #
    # Folder cursor
    # ------------------------------------------------------------------ #

    async def enter_folder(self, folder_id: str | None) -> str | None:
        async with self._lock:
            return await self._set_cursor(self._target_folder(folder_id))

    async def go_up(self) -> str | None:
        async with self._lock:
            if self.current_folder_id is None:
                return None
            folder = self._find_folder(self.current_folder_id)
            parent = folder.parent_folder_id if folder is not None else None
            return await self._set_cursor(parent)

    async def go_to_root(self) -> None:
        async with self._lock:
            await self._set_cursor(None)

    async def _set_cursor(self, folder_id: str | None) -> str | None:
        self.current_folder_id = folder_id
        await self.datasource.save_current_folder_id(folder_id or ROOT_FOLDER_ID)
        return folder_id

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    def _target_folder(self, folder_id: str | None | object) -> str | None:
        if folder_id is CURRENT_FOLDER:
            return self.current_folder_id
        target = normalize_folder_id(folder_id)  # type: ignore[arg-type]
        if target is not None:
            self.get_folder(target)
        return target

    def _find_document(self, document_id: str) -> DocumentRecord | None:
        return next((d for d in self.documents if d.id == document_id), None)

    def _find_folder(self, folder_id: str | None) -> ContainerRecord | None:
        if folder_id is None:
            return None
        return next((f for f in self.folders if f.id == folder_id), None)

    def _folder_name_taken(self, name: str, parent_id: str | None, ignore_id: str | None = None) -> bool:
        lowered = name.lower()
        return any(
            f.display_name.lower() == lowered and f.parent_folder_id == parent_id and f.id != ignore_id
            for f in self.folders
        )
