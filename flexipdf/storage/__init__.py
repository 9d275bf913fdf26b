"""Persistence layer for the FlexiPDF library backend."""

from __future__ import annotations

from .datasource import (
    KEY_CURRENT_FOLDER_ID,
    KEY_FOLDERS,
    KEY_OPEN_FILE_NAME,
    KEY_PDF_FILES,
    LEGACY_KEY_PDF_LIST,
    FileSystemDatasource,
)
from .kv_store import DiskKeyValueStore, KeyValueStore, MemoryKeyValueStore, create_key_value_store
from .list_store import ListStore
from .migrations import CURRENT_SCHEMA_VERSION, CorruptPersistedDataError, SchemaMigrator
from .models import (
    ROOT_FOLDER_ID,
    ContainerRecord,
    DocumentRecord,
    FileSystemRecord,
    is_root_id,
    normalize_folder_id,
)

__all__ = [
    "CURRENT_SCHEMA_VERSION",
    "ContainerRecord",
    "CorruptPersistedDataError",
    "DiskKeyValueStore",
    "DocumentRecord",
    "FileSystemDatasource",
    "FileSystemRecord",
    "KEY_CURRENT_FOLDER_ID",
    "KEY_FOLDERS",
    "KEY_OPEN_FILE_NAME",
    "KEY_PDF_FILES",
    "KeyValueStore",
    "LEGACY_KEY_PDF_LIST",
    "ListStore",
    "MemoryKeyValueStore",
    "ROOT_FOLDER_ID",
    "SchemaMigrator",
    "create_key_value_store",
    "is_root_id",
    "normalize_folder_id",
]
