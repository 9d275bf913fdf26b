from __future__ import annotations

import pytest

from flexipdf.config_loader import StorageConfig
from flexipdf.storage import DiskKeyValueStore, MemoryKeyValueStore, create_key_value_store


@pytest.mark.parametrize("store_fixture", ["memory_store", "disk_store"])
def test_basic_operations(request, store_fixture: str) -> None:
    store = request.getfixturevalue(store_fixture)
    assert store.get("missing") is None

    store.set("b", "2")
    store.set("a", "1")
    store.set("a", "3")
    assert store.get("a") == "3"
    assert store.keys() == ["a", "b"]

    store.delete("a")
    store.delete("a")
    assert store.get("a") is None
    assert store.keys() == ["b"]


def test_factory_selects_backend(tmp_path) -> None:
    assert isinstance(create_key_value_store(StorageConfig(backend="memory")), MemoryKeyValueStore)

    disk = create_key_value_store(StorageConfig(backend="disk", directory="prefs"), project_root=tmp_path)
    assert isinstance(disk, DiskKeyValueStore)
    assert disk.directory == (tmp_path / "prefs").resolve()

    with pytest.raises(ValueError):
        create_key_value_store(StorageConfig(backend="sqlite"))
