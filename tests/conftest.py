from __future__ import annotations

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from flexipdf.config_loader import AppConfig, StorageConfig
from flexipdf.library import DocumentLibrary
from flexipdf.main import create_app
from flexipdf.storage import DiskKeyValueStore, FileSystemDatasource, MemoryKeyValueStore


@pytest.fixture
def memory_store() -> MemoryKeyValueStore:
    return MemoryKeyValueStore()


@pytest.fixture
def disk_store(tmp_path):
    store = DiskKeyValueStore(tmp_path / "prefs")
    try:
        yield store
    finally:
        store.close()


@pytest.fixture
def datasource(memory_store) -> FileSystemDatasource:
    return FileSystemDatasource(memory_store)


@pytest_asyncio.fixture
async def library(datasource) -> DocumentLibrary:
    library = DocumentLibrary(datasource, recent_limit=3)
    await library.load()
    return library


async def _prepare_app(tmp_path) -> tuple[AsyncClient, FastAPI]:
    config = AppConfig(storage=StorageConfig(backend="disk", directory=str(tmp_path / "prefs")))
    app = create_app(config)
    await app.state.library.load()

    transport = ASGITransport(app=app)
    async_client = AsyncClient(transport=transport, base_url="http://testserver", timeout=10.0)
    async_client.app = app  # type: ignore[attr-defined]
    return async_client, app


@pytest_asyncio.fixture
async def client(tmp_path):
    async_client, app = await _prepare_app(tmp_path)
    try:
        yield async_client
    finally:
        await async_client.aclose()
        app.state.kv_store.close()
