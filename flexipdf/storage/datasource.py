"""Datasource for the document and folder collections and the folder cursor."""

from __future__ import annotations

import asyncio
import logging

import orjson

from .kv_store import KeyValueStore
from .list_store import ListStore
from .models import ROOT_FOLDER_ID, ContainerRecord, DocumentRecord

logger = logging.getLogger(__name__)

KEY_FOLDERS = "folders_v1"
KEY_PDF_FILES = "pdfFiles_v1"
KEY_CURRENT_FOLDER_ID = "currentFolderId_v1"
KEY_OPEN_FILE_NAME = "currentOpenFileName"
LEGACY_KEY_PDF_LIST = "pdf_list_key"


class FileSystemDatasource:
    """Persists documents, folders and the current folder id.

    The two collections are saved independently; nothing ties a documents save
    to a folders save.
    """

    def __init__(self, backend: KeyValueStore) -> None:
        self.backend = backend
        self.documents = ListStore(backend, DocumentRecord)
        self.folders = ListStore(backend, ContainerRecord)

    async def load_pdf_files(self) -> list[DocumentRecord]:
        await self._adopt_legacy_documents()
        return await self.documents.load(KEY_PDF_FILES)

    async def save_pdf_files(self, pdf_files: list[DocumentRecord]) -> None:
        await self.documents.save(KEY_PDF_FILES, pdf_files)

    async def load_folders(self) -> list[ContainerRecord]:
        return await self.folders.load(KEY_FOLDERS)

    async def save_folders(self, folders: list[ContainerRecord]) -> None:
        await self.folders.save(KEY_FOLDERS, folders)

    async def load_current_folder_id(self) -> str:
        return await self.folders.load_scalar(KEY_CURRENT_FOLDER_ID, ROOT_FOLDER_ID)

    async def save_current_folder_id(self, folder_id: str | None) -> None:
        await self.folders.save_scalar(KEY_CURRENT_FOLDER_ID, folder_id or ROOT_FOLDER_ID)

    async def load_open_file_name(self) -> str | None:
        return await self.documents.load_scalar(KEY_OPEN_FILE_NAME, None, expected_type=str)

    async def save_open_file_name(self, name: str | None) -> None:
        await self.documents.save_scalar(KEY_OPEN_FILE_NAME, name)

    async def _adopt_legacy_documents(self) -> None:
        legacy = await asyncio.to_thread(self.backend.get, LEGACY_KEY_PDF_LIST)
        if legacy is None:
            return
        current = await asyncio.to_thread(self.backend.get, KEY_PDF_FILES)
        if current is not None:
            logger.info("Dropping legacy '%s'; '%s' already present", LEGACY_KEY_PDF_LIST, KEY_PDF_FILES)
        else:
            try:
                documents = [DocumentRecord.model_validate(item) for item in orjson.loads(legacy)]
            except (ValueError, TypeError) as exc:
                logger.error("Discarding unreadable legacy '%s': %s", LEGACY_KEY_PDF_LIST, exc, exc_info=True)
            else:
                await self.documents.save(KEY_PDF_FILES, documents)
                logger.info("Adopted %s document(s) from legacy '%s'", len(documents), LEGACY_KEY_PDF_LIST)
        await asyncio.to_thread(self.backend.delete, LEGACY_KEY_PDF_LIST)
