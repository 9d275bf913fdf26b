"""FastAPI entry point for the FlexiPDF library backend."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import routes
from .config_loader import AppConfig, configure_logging, load_app_config
from .library import DocumentLibrary
from .storage import FileSystemDatasource, create_key_value_store
from .widget_status import WidgetNotifier

LOGGER = logging.getLogger(__name__)


APP_ROOT = Path(__file__).resolve().parent
PROJECT_ROOT = APP_ROOT.parent


def create_app(app_config: AppConfig | None = None) -> FastAPI:
    app_config = app_config or load_app_config()
    configure_logging(app_config.logging.level)

    backend = create_key_value_store(app_config.storage, project_root=PROJECT_ROOT)
    datasource = FileSystemDatasource(backend)
    library = DocumentLibrary(datasource, recent_limit=app_config.library.recent_limit)
    widget_notifier = WidgetNotifier(datasource, max_name_length=app_config.widget.max_name_length)

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        await library.load()
        try:
            yield
        finally:
            backend.close()
            LOGGER.info("Store closed")

    app = FastAPI(
        title="FlexiPDF",
        description="Imports, organizes and tracks PDF documents in folders and favorites.",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:3000", "http://127.0.0.1:3000", "http://localhost:8000"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.app_config = app_config
    app.state.kv_store = backend
    app.state.datasource = datasource
    app.state.library = library
    app.state.widget_notifier = widget_notifier

    app.include_router(routes.router)

    return app
