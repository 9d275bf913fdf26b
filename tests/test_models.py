from __future__ import annotations

import pytest
from pydantic import ValidationError

from flexipdf.storage import ROOT_FOLDER_ID, ContainerRecord, DocumentRecord, is_root_id


def test_missing_id_is_generated() -> None:
    first = ContainerRecord.model_validate({"displayName": "Work"})
    second = ContainerRecord.model_validate({"displayName": "Work"})
    assert first.id and second.id
    assert first.id != second.id


def test_id_cannot_be_reassigned() -> None:
    document = DocumentRecord(uri_string="content://a", display_name="a.pdf")
    with pytest.raises(ValidationError):
        document.id = "other"  # type: ignore[misc]


def test_root_sentinel_is_stored_as_none() -> None:
    folder = ContainerRecord.model_validate({"displayName": "Work", "parentFolderId": ROOT_FOLDER_ID})
    assert folder.parent_folder_id is None
    assert is_root_id(None) and is_root_id("root")
    assert not is_root_id("f1")


def test_document_defaults_match_original_shape() -> None:
    document = DocumentRecord.model_validate({"uriString": "content://a", "displayName": "a.pdf"})
    assert document.last_modified == 0
    assert document.is_favorite is False
    assert document.is_selected is False
    assert document.parent_folder_id is None
