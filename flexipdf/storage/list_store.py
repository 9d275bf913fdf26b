"""JSON persistence of record collections in a key-value store."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Generic, Sequence, TypeVar

import orjson
from pydantic import BaseModel, TypeAdapter

from .kv_store import KeyValueStore
from .migrations import CorruptPersistedDataError, SchemaMigrator

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", bound=BaseModel)
ScalarT = TypeVar("ScalarT")

SELECTION_FIELD = "is_selected"


def _is_instance(value: Any, expected_type: type) -> bool:
    # JSON true/false decode to bool, which is also an int.
    if isinstance(value, bool) and expected_type is not bool:
        return False
    return isinstance(value, expected_type)


class ListStore(Generic[RecordT]):
    """Loads and saves whole collections of one record type.

    Every value is a single JSON document under its key, so a save replaces
    the entire collection. Missing keys read as empty. A value that cannot be
    decoded is logged and deleted, and the caller gets an empty result instead
    of an error. The selection flag is transient: it is written as false and
    forced to false on every load.

    Blocking key-value I/O runs in a worker thread; the store itself does no
    locking, so concurrent saves to one key are last-write-wins.
    """

    def __init__(
        self,
        backend: KeyValueStore,
        record_type: type[RecordT],
        *,
        migrator: SchemaMigrator | None = None,
    ) -> None:
        self.backend = backend
        self.record_type = record_type
        self.migrator = migrator or SchemaMigrator()
        self._adapter: TypeAdapter[list[RecordT]] = TypeAdapter(list[record_type])  # type: ignore[valid-type]
        self._has_selection = SELECTION_FIELD in record_type.model_fields

    async def load(self, key: str) -> list[RecordT]:
        return await asyncio.to_thread(self._load_blocking, key)

    async def save(self, key: str, items: Sequence[RecordT]) -> None:
        await asyncio.to_thread(self._save_blocking, key, list(items))

    async def load_scalar(self, key: str, default: ScalarT, *, expected_type: type | None = None) -> ScalarT:
        """Read a JSON scalar, falling back to ``default`` when missing or null.

        The stored value must be an instance of ``expected_type`` (or of the
        default's type when none is given); anything else is treated as corrupt.
        """
        return await asyncio.to_thread(self._load_scalar_blocking, key, default, expected_type)

    async def save_scalar(self, key: str, value: Any) -> None:
        await asyncio.to_thread(self.backend.set, key, orjson.dumps(value).decode("utf-8"))

    def _load_blocking(self, key: str) -> list[RecordT]:
        raw = self.backend.get(key)
        if raw is None:
            return []
        try:
            unwrapped = self.migrator.unwrap(orjson.loads(raw))
            records = self._adapter.validate_python(unwrapped.items)
        except (ValueError, TypeError) as exc:
            logger.error("Discarding unreadable collection under '%s': %s", key, exc, exc_info=True)
            self.backend.delete(key)
            return []

        if unwrapped.migrated:
            logger.info(
                "Upgraded '%s' from schema version %s to %s",
                key,
                unwrapped.version,
                self.migrator.current_version,
            )
            self.backend.set(key, self._encode(records))
        logger.debug("Loaded %s record(s) from '%s'", len(records), key)
        return [self._clear_selection(record) for record in records]

    def _save_blocking(self, key: str, items: list[RecordT]) -> None:
        self.backend.set(key, self._encode(items))
        logger.debug("Saved %s record(s) to '%s'", len(items), key)

    def _load_scalar_blocking(self, key: str, default: ScalarT, expected_type: type | None = None) -> ScalarT:
        if expected_type is None and default is not None:
            expected_type = type(default)
        raw = self.backend.get(key)
        if raw is None:
            return default
        try:
            value = orjson.loads(raw)
            if value is not None and expected_type is not None and not _is_instance(value, expected_type):
                raise CorruptPersistedDataError(
                    f"Expected {expected_type.__name__}, found {type(value).__name__}"
                )
        except (ValueError, TypeError) as exc:
            logger.error("Discarding unreadable value under '%s': %s", key, exc, exc_info=True)
            self.backend.delete(key)
            return default
        if value is None:
            return default
        return value

    def _clear_selection(self, record: RecordT) -> RecordT:
        if not self._has_selection or not getattr(record, SELECTION_FIELD):
            return record
        return record.model_copy(update={SELECTION_FIELD: False})

    def _encode(self, items: Sequence[RecordT]) -> str:
        payload = [
            self._clear_selection(item).model_dump(mode="json", by_alias=True) for item in items
        ]
        return orjson.dumps(self.migrator.wrap(payload)).decode("utf-8")
