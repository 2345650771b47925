"""Unit tests for the file-backed workflow store."""

from __future__ import annotations

import json
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

from stepflow.workflow.errors import NotFoundError, StoreError
from stepflow.workflow.normalize import normalize
from stepflow.workflow.store import WorkflowStore

EARLY = datetime(2025, 1, 1, tzinfo=UTC)


def _workflow(workflow_id: str, name: str = "Shelf", *, updated: datetime = EARLY):
    return normalize(
        {"workflowId": workflow_id, "name": name, "steps": [{"title": "A", "page": 1}]},
        now=updated,
    )


def test_put_then_get_roundtrip(store: WorkflowStore, data_dir: Path) -> None:
    saved = store.put(_workflow("wf-1"))

    loaded = store.get("wf-1")

    assert loaded == saved
    path = data_dir / "wf-1.json"
    assert path.exists()
    text = path.read_text(encoding="utf-8")
    assert text.startswith("{\n  ")
    assert json.loads(text)["workflowId"] == "wf-1"


def test_put_stamps_updated_at_and_keeps_created_at(store: WorkflowStore) -> None:
    original = _workflow("wf-1")

    saved = store.put(original)

    assert saved.created_at == original.created_at
    assert saved.updated_at > original.updated_at


def test_put_overwrites_whole_record(store: WorkflowStore) -> None:
    store.put(_workflow("wf-1", "Old"))
    store.put(
        normalize({"workflowId": "wf-1", "name": "New", "steps": [{"title": "X"}, {"title": "Y"}]})
    )

    loaded = store.get("wf-1")

    assert loaded.name == "New"
    assert [s.title for s in loaded.steps] == ["X", "Y"]


def test_put_uses_sanitized_identifier(store: WorkflowStore, data_dir: Path) -> None:
    wf = _workflow("wf-1").model_copy(update={"workflow_id": "../wf.2"})

    saved = store.put(wf)

    assert saved.workflow_id == "wf2"
    assert (data_dir / "wf2.json").exists()
    assert not (data_dir.parent / "wf.2.json").exists()


def test_get_missing_raises_not_found(store: WorkflowStore) -> None:
    with pytest.raises(NotFoundError):
        store.get("nope")
    with pytest.raises(NotFoundError):
        store.get("///")


def test_get_sanitizes_lookup_key(store: WorkflowStore) -> None:
    store.put(_workflow("wf-1"))

    assert store.get("../wf-1").workflow_id == "wf-1"
    assert store.exists("wf-1")
    assert not store.exists("wf-2")


def test_get_corrupt_record_raises_store_error(store: WorkflowStore, data_dir: Path) -> None:
    data_dir.mkdir(parents=True)
    (data_dir / "broken.json").write_text("{not json", encoding="utf-8")

    with pytest.raises(StoreError):
        store.get("broken")


def test_list_is_most_recently_updated_first(store: WorkflowStore, data_dir: Path) -> None:
    data_dir.mkdir(parents=True)
    for offset, wf_id in [(0, "a"), (2, "b"), (1, "c")]:
        wf = _workflow(wf_id, name=wf_id.upper(), updated=EARLY + timedelta(hours=offset))
        (data_dir / f"{wf_id}.json").write_text(json.dumps(wf.to_json()), encoding="utf-8")

    items = store.list()

    assert [s.workflow_id for s in items] == ["b", "c", "a"]
    assert [s.name for s in items] == ["B", "C", "A"]


def test_list_summaries_carry_no_steps(store: WorkflowStore) -> None:
    store.put(_workflow("wf-1"))

    [summary] = store.list()

    assert set(summary.to_json()) == {"workflowId", "uuid", "name", "createdAt", "updatedAt"}


def test_list_skips_unreadable_documents(store: WorkflowStore, data_dir: Path) -> None:
    store.put(_workflow("wf-1"))
    (data_dir / "junk.json").write_text("[]", encoding="utf-8")

    assert [s.workflow_id for s in store.list()] == ["wf-1"]


def test_list_without_directory_is_empty(tmp_path: Path) -> None:
    assert WorkflowStore(tmp_path / "missing").list() == []


def test_delete_then_delete_again(store: WorkflowStore) -> None:
    store.put(_workflow("wf-1"))

    store.delete("wf-1")

    with pytest.raises(NotFoundError):
        store.delete("wf-1")
    with pytest.raises(NotFoundError):
        store.get("wf-1")


def test_records_without_timezone_are_read_as_utc(store: WorkflowStore, data_dir: Path) -> None:
    store.put(_workflow("wf-1"))
    naive = _workflow("old").to_json()
    naive["createdAt"] = "2024-01-01T00:00:00"
    naive["updatedAt"] = "2024-01-01T00:00:00"
    (data_dir / "old.json").write_text(json.dumps(naive), encoding="utf-8")

    items = store.list()

    assert [s.workflow_id for s in items] == ["wf-1", "old"]
    assert store.get("old").updated_at == datetime(2024, 1, 1, tzinfo=UTC)
