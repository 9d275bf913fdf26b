"""Schema envelope handling for persisted record lists.

A list is persisted as ``{"schemaVersion": N, "items": [...]}``. Values written
before the envelope existed are bare JSON arrays and count as version 0. When
a stored version is older than the reader's, the registered steps are applied
in order until the current version is reached.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Mapping


SCHEMA_VERSION_FIELD = "schemaVersion"
ITEMS_FIELD = "items"
CURRENT_SCHEMA_VERSION = 1

MigrationStep = Callable[[list[Any]], list[Any]]


class CorruptPersistedDataError(ValueError):
    """Raised when a stored value cannot be read back into the expected shape."""


def _bare_array_to_v1(items: list[Any]) -> list[Any]:
    # Version 0 already uses the same field names; only the envelope is new.
    return items


DEFAULT_MIGRATIONS: dict[int, MigrationStep] = {0: _bare_array_to_v1}


@dataclass(slots=True)
class Unwrapped:
    items: list[Any]
    version: int
    migrated: bool = False


@dataclass(slots=True)
class SchemaMigrator:
    """Unwraps persisted envelopes and upgrades older payloads."""

    current_version: int = CURRENT_SCHEMA_VERSION
    steps: Mapping[int, MigrationStep] = field(default_factory=lambda: dict(DEFAULT_MIGRATIONS))

    def wrap(self, items: list[Any]) -> dict[str, Any]:
        return {SCHEMA_VERSION_FIELD: self.current_version, ITEMS_FIELD: items}

    def unwrap(self, payload: Any) -> Unwrapped:
        if isinstance(payload, list):
            version, items = 0, payload
        elif isinstance(payload, dict):
            version = payload.get(SCHEMA_VERSION_FIELD)
            items = payload.get(ITEMS_FIELD)
            if not isinstance(version, int) or isinstance(version, bool):
                raise CorruptPersistedDataError(f"Missing or invalid {SCHEMA_VERSION_FIELD!r}")
            if not isinstance(items, list):
                raise CorruptPersistedDataError(f"Missing or invalid {ITEMS_FIELD!r}")
        else:
            raise CorruptPersistedDataError(f"Unexpected payload type: {type(payload).__name__}")

        if version > self.current_version:
            raise CorruptPersistedDataError(
                f"Schema version {version} is newer than supported version {self.current_version}"
            )

        original_version = version
        while version < self.current_version:
            step = self.steps.get(version)
            if step is None:
                raise CorruptPersistedDataError(f"No migration registered from schema version {version}")
            items = step(list(items))
            version += 1
        return Unwrapped(items=items, version=original_version, migrated=original_version != version)
