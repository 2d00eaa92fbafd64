"""Key/value store backend tests."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from tools.kv_store import (
    InMemoryKeyValueStore,
    JSONFileKeyValueStore,
    KeyValueStore,
    SQLiteKeyValueStore,
    StorageError,
    build_store,
    read_json,
    write_json,
)


@pytest.fixture(params=["memory", "json", "sqlite"])
def store(request: pytest.FixtureRequest, tmp_path: Path) -> KeyValueStore:
    if request.param == "json":
        return JSONFileKeyValueStore(tmp_path / "store")
    if request.param == "sqlite":
        return SQLiteKeyValueStore(tmp_path / "kv.db")
    return InMemoryKeyValueStore()


def test_get_missing_key_returns_none(store: KeyValueStore) -> None:
    assert store.get("wardrobeClothes_nobody") is None


def test_set_overwrites_and_remove_deletes(store: KeyValueStore) -> None:
    store.set("currentUser", '{"id": "a"}')
    store.set("currentUser", '{"id": "b"}')
    assert store.get("currentUser") == '{"id": "b"}'

    store.remove("currentUser")
    assert store.get("currentUser") is None
    # Removing twice is harmless.
    store.remove("currentUser")


def test_json_helpers_round_trip_unicode(store: KeyValueStore) -> None:
    payload = [{"name": "Pull en laine", "color": "Écru", "price": 49.9}]
    write_json(store, "wardrobeClothes_user1", payload)
    assert read_json(store, "wardrobeClothes_user1") == payload
    assert read_json(store, "absent", default=[]) == []


def test_read_json_rejects_corrupt_documents(store: KeyValueStore) -> None:
    store.set("savedOutfits_user1", "{not json")
    with pytest.raises(StorageError):
        read_json(store, "savedOutfits_user1")


def test_json_store_sanitises_keys(tmp_path: Path) -> None:
    store = JSONFileKeyValueStore(tmp_path)
    store.set("../escape/attempt", "[]")
    assert store.get("../escape/attempt") == "[]"
    assert all(path.parent == tmp_path for path in tmp_path.iterdir())


def test_json_store_keeps_lookalike_keys_apart(tmp_path: Path) -> None:
    store = JSONFileKeyValueStore(tmp_path)
    store.set("wardrobeClothes_a/b", "[1]")
    store.set("wardrobeClothes_a_b", "[2]")
    store.set("wardrobeClothes_a%2Fb", "[3]")

    assert store.get("wardrobeClothes_a/b") == "[1]"
    assert store.get("wardrobeClothes_a_b") == "[2]"
    assert store.get("wardrobeClothes_a%2Fb") == "[3]"
    assert len(list(tmp_path.glob("*.json"))) == 3


def test_json_store_wraps_os_errors(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    store = JSONFileKeyValueStore(tmp_path)

    def broken_write(*_args, **_kwargs):
        raise OSError("disk full")

    monkeypatch.setattr(Path, "write_text", broken_write)
    with pytest.raises(StorageError):
        store.set("pendingOrders_user1", "[]")


def test_sqlite_store_persists_across_instances(tmp_path: Path) -> None:
    SQLiteKeyValueStore(tmp_path / "kv.db").set("appUsers", "[]")
    assert SQLiteKeyValueStore(tmp_path / "kv.db").get("appUsers") == "[]"


def test_build_store_selects_backend(tmp_path: Path) -> None:
    assert isinstance(build_store("memory"), InMemoryKeyValueStore)
    assert isinstance(build_store("json", str(tmp_path / "files")), JSONFileKeyValueStore)
    assert isinstance(build_store("sqlite", str(tmp_path / "db.sqlite")), SQLiteKeyValueStore)
