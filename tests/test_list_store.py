from __future__ import annotations

import orjson
import pytest

from flexipdf.storage import ContainerRecord, DiskKeyValueStore, DocumentRecord, ListStore, MemoryKeyValueStore

KEY = "pdfFiles_v1"


def _document(doc_id: str, name: str, **extra) -> DocumentRecord:
    return DocumentRecord(id=doc_id, uri_string=f"content://docs/{doc_id}", display_name=name, **extra)


@pytest.mark.asyncio
async def test_load_missing_key_returns_empty_list(memory_store) -> None:
    store = ListStore(memory_store, DocumentRecord)
    assert await store.load(KEY) == []


@pytest.mark.asyncio
async def test_round_trip_clears_selection_flag(memory_store) -> None:
    store = ListStore(memory_store, DocumentRecord)
    original = [
        _document("1", "a.pdf", is_selected=True, is_favorite=False),
        _document("2", "b.pdf", is_favorite=True, last_modified=42, parent_folder_id="folderA"),
    ]
    await store.save(KEY, original)

    loaded = await store.load(KEY)

    assert [doc.is_selected for doc in loaded] == [False, False]
    assert loaded == [doc.model_copy(update={"is_selected": False}) for doc in original]
    # The caller's records keep their in-memory selection.
    assert original[0].is_selected is True


@pytest.mark.asyncio
async def test_concrete_single_document_scenario(memory_store) -> None:
    store = ListStore(memory_store, DocumentRecord)
    await store.save(KEY, [_document("1", "a.pdf", is_selected=True, is_favorite=False, parent_folder_id=None)])

    [loaded] = await store.load(KEY)

    assert loaded.id == "1"
    assert loaded.display_name == "a.pdf"
    assert loaded.is_selected is False
    assert loaded.is_favorite is False
    assert loaded.parent_folder_id is None


@pytest.mark.asyncio
async def test_saved_value_never_contains_selected_true(memory_store) -> None:
    store = ListStore(memory_store, DocumentRecord)
    await store.save(KEY, [_document("1", "a.pdf", is_selected=True)])

    payload = orjson.loads(memory_store.get(KEY))

    assert payload["schemaVersion"] == 1
    assert payload["items"][0]["isSelected"] is False
    assert payload["items"][0]["uriString"] == "content://docs/1"


@pytest.mark.asyncio
async def test_persisted_selected_items_load_unselected(memory_store) -> None:
    memory_store.set(
        "folders_v1",
        orjson.dumps(
            {
                "schemaVersion": 1,
                "items": [
                    {"id": "f1", "displayName": "Work", "isSelected": True, "parentFolderId": None},
                    {"id": "f2", "displayName": "Notes", "isSelected": True, "parentFolderId": "f1"},
                ],
            }
        ).decode(),
    )
    store = ListStore(memory_store, ContainerRecord)

    folders = await store.load("folders_v1")

    assert [folder.id for folder in folders] == ["f1", "f2"]
    assert all(folder.is_selected is False for folder in folders)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "raw",
    [
        "not json at all",
        '{"schemaVersion": 1}',
        '{"schemaVersion": 1, "items": [{"displayName": 3}]}',
        '"just a string"',
    ],
)
async def test_corrupted_value_is_deleted_and_reads_empty(memory_store, raw: str) -> None:
    memory_store.set(KEY, raw)
    store = ListStore(memory_store, DocumentRecord)

    assert await store.load(KEY) == []
    assert memory_store.get(KEY) is None
    assert await store.load(KEY) == []


@pytest.mark.asyncio
async def test_corruption_is_logged(memory_store, caplog) -> None:
    memory_store.set(KEY, "{broken")
    store = ListStore(memory_store, DocumentRecord)

    with caplog.at_level("ERROR", logger="flexipdf.storage.list_store"):
        await store.load(KEY)

    assert any(KEY in record.getMessage() for record in caplog.records)


@pytest.mark.asyncio
async def test_save_replaces_whole_collection(memory_store) -> None:
    store = ListStore(memory_store, DocumentRecord)
    await store.save(KEY, [_document("1", "a.pdf"), _document("2", "b.pdf")])
    await store.save(KEY, [_document("3", "c.pdf")])

    loaded = await store.load(KEY)

    assert [doc.id for doc in loaded] == ["3"]


@pytest.mark.asyncio
async def test_save_is_idempotent(memory_store) -> None:
    store = ListStore(memory_store, DocumentRecord)
    items = [_document("1", "a.pdf")]
    await store.save(KEY, items)
    first = memory_store.get(KEY)
    await store.save(KEY, items)

    assert memory_store.get(KEY) == first


@pytest.mark.asyncio
async def test_scalar_default_then_saved_value(memory_store) -> None:
    store = ListStore(memory_store, ContainerRecord)

    assert await store.load_scalar("currentFolderId_v1", "root") == "root"
    await store.save_scalar("currentFolderId_v1", "folderA")
    assert await store.load_scalar("currentFolderId_v1", "root") == "folderA"


@pytest.mark.asyncio
async def test_corrupted_scalar_falls_back_to_default(memory_store) -> None:
    memory_store.set("currentFolderId_v1", "folderA")  # not JSON
    store = ListStore(memory_store, ContainerRecord)

    assert await store.load_scalar("currentFolderId_v1", "root") == "root"
    assert memory_store.get("currentFolderId_v1") is None


@pytest.mark.asyncio
async def test_scalar_of_wrong_type_is_discarded(memory_store) -> None:
    memory_store.set("currentFolderId_v1", "42")
    store = ListStore(memory_store, ContainerRecord)

    assert await store.load_scalar("currentFolderId_v1", "root") == "root"
    assert memory_store.get("currentFolderId_v1") is None


@pytest.mark.asyncio
async def test_disk_store_survives_reopen(tmp_path) -> None:
    first = DiskKeyValueStore(tmp_path / "prefs")
    await ListStore(first, DocumentRecord).save(KEY, [_document("1", "a.pdf", is_selected=True)])
    first.close()

    reopened = DiskKeyValueStore(tmp_path / "prefs")
    try:
        loaded = await ListStore(reopened, DocumentRecord).load(KEY)
    finally:
        reopened.close()

    assert [(doc.id, doc.is_selected) for doc in loaded] == [("1", False)]


def test_memory_store_is_independent_per_instance() -> None:
    first = MemoryKeyValueStore()
    second = MemoryKeyValueStore()
    first.set(KEY, "[]")
    assert second.get(KEY) is None


@pytest.mark.asyncio
async def test_boolean_is_not_accepted_for_integer_scalar(memory_store) -> None:
    memory_store.set("pageIndex", "true")
    store = ListStore(memory_store, DocumentRecord)

    assert await store.load_scalar("pageIndex", 0) == 0
    assert memory_store.get("pageIndex") is None


@pytest.mark.asyncio
async def test_expected_type_checked_when_default_is_none(memory_store) -> None:
    memory_store.set("currentOpenFileName", "123")
    store = ListStore(memory_store, DocumentRecord)

    assert await store.load_scalar("currentOpenFileName", None, expected_type=str) is None
    assert memory_store.get("currentOpenFileName") is None
