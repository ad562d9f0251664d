from __future__ import annotations

import json
from pathlib import Path

import pytest

from dairy_storefront.storage.repository import JsonFileStore, MemoryStore


def test_memory_store_get_and_set() -> None:
    store = MemoryStore({"a": "1"})

    store.set("b", "2")
    store.set("a", "3")

    assert store.get("a") == "3"
    assert store.get("b") == "2"
    assert store.get("missing") is None


def test_json_file_store_persists_across_instances(tmp_path) -> None:
    path = tmp_path / "nested" / "state.json"
    store = JsonFileStore(path)

    store.set("dairy_cart", "[]")

    assert path.exists()
    assert JsonFileStore(path).get("dairy_cart") == "[]"
    assert not path.with_suffix(".json.tmp").exists()


def test_json_file_store_treats_corrupt_file_as_empty(tmp_path) -> None:
    path = tmp_path / "state.json"
    path.write_text("{broken", encoding="utf-8")

    store = JsonFileStore(path)

    assert store.get("dairy_cart") is None
    store.set("dairy_cart", "[]")
    assert json.loads(path.read_text(encoding="utf-8")) == {"dairy_cart": "[]"}


def test_json_file_store_ignores_non_string_values(tmp_path) -> None:
    path = tmp_path / "state.json"
    path.write_text(json.dumps({"dairy_cart": [1, 2], "dairy_wishlist": "[]"}), encoding="utf-8")

    store = JsonFileStore(path)

    assert store.get("dairy_cart") is None
    assert store.get("dairy_wishlist") == "[]"


def test_reload_reads_latest_file_contents(tmp_path) -> None:
    path = tmp_path / "state.json"
    reader = JsonFileStore(path)
    JsonFileStore(path).set("key", "value")

    assert reader.get("key") is None
    reader.reload()
    assert reader.get("key") == "value"


def test_failed_write_removes_temp_file_and_raises(tmp_path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = tmp_path / "state.json"
    store = JsonFileStore(path)
    store.set("dairy_cart", "[]")

    def fail_replace(self: Path, target: Path) -> Path:
        raise OSError("disk full")

    monkeypatch.setattr(Path, "replace", fail_replace)

    with pytest.raises(OSError, match="disk full"):
        store.set("dairy_cart", "[1]")

    assert not path.with_suffix(".json.tmp").exists()
    assert json.loads(path.read_text(encoding="utf-8")) == {"dairy_cart": "[]"}
