"""Open-document status published to home-screen widgets."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable

from .storage import FileSystemDatasource

logger = logging.getLogger(__name__)

DEFAULT_MAX_NAME_LENGTH = 20

WidgetListener = Callable[["WidgetStatus"], Awaitable[None] | None]


def shorten_file_name(name: str, max_length: int = DEFAULT_MAX_NAME_LENGTH) -> str:
    if len(name) <= max_length:
        return name
    return f"{name[:max_length]}..."


@dataclass(slots=True)
class WidgetStatus:
    open_file_name: str | None = None
    max_name_length: int = DEFAULT_MAX_NAME_LENGTH

    @property
    def is_file_open(self) -> bool:
        return bool(self.open_file_name)

    @property
    def short_name(self) -> str | None:
        if not self.open_file_name:
            return None
        return shorten_file_name(self.open_file_name, self.max_name_length)


class WidgetNotifier:
    """Persists the open document name and tells registered widgets about it."""

    def __init__(self, datasource: FileSystemDatasource, max_name_length: int = DEFAULT_MAX_NAME_LENGTH) -> None:
        self.datasource = datasource
        self.max_name_length = max_name_length
        self._listeners: list[WidgetListener] = []

    def subscribe(self, listener: WidgetListener) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: WidgetListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    async def current_status(self) -> WidgetStatus:
        name = await self.datasource.load_open_file_name()
        return WidgetStatus(open_file_name=name, max_name_length=self.max_name_length)

    async def notify_file_opened(self, name: str) -> WidgetStatus:
        return await self._publish(name or None)

    async def notify_file_closed(self) -> WidgetStatus:
        return await self._publish(None)

    async def _publish(self, name: str | None) -> WidgetStatus:
        await self.datasource.save_open_file_name(name)
        status = WidgetStatus(open_file_name=name, max_name_length=self.max_name_length)
        if not self._listeners:
            logger.debug("No widget listeners to update")
            return status
        for listener in list(self._listeners):
            try:
                result = listener(status)
                if result is not None:
                    await result
            except Exception as exc:  # noqa: BLE001 - log and continue
                logger.warning("Widget listener %r failed: %s", listener, exc)
        logger.debug("Widget status sent to %s listener(s). Open file: %s", len(self._listeners), name)
        return status
