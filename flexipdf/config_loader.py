"""Utilities for loading project configuration files."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field


DATA_DIR = Path(__file__).resolve().parent.parent / "data"
LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


class StorageConfig(BaseModel):
    backend: str = "disk"
    directory: str = "data/prefs"


class LibraryConfig(BaseModel):
    recent_limit: int = Field(alias="recent-limit", default=15)


class WidgetConfig(BaseModel):
    max_name_length: int = Field(alias="max-name-length", default=20)


class LoggingConfig(BaseModel):
    level: str = "INFO"


class AppConfig(BaseModel):
    storage: StorageConfig = Field(default_factory=StorageConfig)
    library: LibraryConfig = Field(default_factory=LibraryConfig)
    widget: WidgetConfig = Field(default_factory=WidgetConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def _load_yaml(path: Path) -> Any:
    with path.open("r", encoding="utf-8") as handle:
        return yaml.safe_load(handle) or {}


def load_app_config(path: Path | None = None) -> AppConfig:
    """Return application config from `app.config.yaml`."""
    target = path or DATA_DIR / "app.config.yaml"
    data = _load_yaml(target)
    if not isinstance(data, dict):
        raise ValueError(f"{target.name} must contain a mapping.")
    return AppConfig.model_validate(data)


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)
