"""Collection repository tests: whole-document CRUD per user."""

from __future__ import annotations

import json
from dataclasses import replace

import pytest

from models.clothing_item import ClothingItem
from models.outfit import Outfit
from models.pending_order import ORDER_PENDING, ORDER_RECEIVED, OrderLineItem, PendingOrder
from tools.kv_store import InMemoryKeyValueStore, StorageError
from tools.repositories import ClothingRepository, OutfitRepository, PendingOrderRepository


class FailingWritesStore(InMemoryKeyValueStore):
    def set(self, key: str, value: str) -> None:
        raise StorageError("read-only")


class FailingReadsStore(InMemoryKeyValueStore):
    def get(self, key: str):
        raise StorageError("unavailable")


@pytest.fixture()
def store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture()
def clothes(store: InMemoryKeyValueStore) -> ClothingRepository:
    return ClothingRepository(store)


def _tshirt(**overrides) -> ClothingItem:
    fields = {"name": "T-shirt", "category": "haut", "color": "Bleu"}
    fields.update(overrides)
    return ClothingItem(**fields)


def test_add_assigns_id_and_equal_timestamps(clothes: ClothingRepository) -> None:
    new_id = clothes.add(_tshirt(season="Été", price=12.5), "user1")

    stored = clothes.list("user1")
    assert len(stored) == 1
    item = stored[0]
    assert item.id == new_id and new_id
    assert item.created_at == item.updated_at
    assert replace(item, id="", created_at=None, updated_at=None) == _tshirt(season="Été", price=12.5)


def test_add_then_delete_scenario(clothes: ClothingRepository) -> None:
    item_id = clothes.add(_tshirt(), "user1")
    assert [item.color for item in clothes.list("user1")] == ["Bleu"]

    assert clothes.delete(item_id, "user1") is True
    assert clothes.list("user1") == []


def test_ids_are_unique_under_rapid_adds(clothes: ClothingRepository) -> None:
    ids = [clothes.add(_tshirt(name=f"T{i}"), "user1") for i in range(25)]
    assert len(set(ids)) == 25


def test_collections_are_scoped_per_user(store: InMemoryKeyValueStore, clothes: ClothingRepository) -> None:
    clothes.add(_tshirt(), "user1")
    clothes.add(_tshirt(color="Rouge"), "user2")

    assert [item.color for item in clothes.list("user1")] == ["Bleu"]
    assert [item.color for item in clothes.list("user2")] == ["Rouge"]
    assert set(store.keys()) == {"wardrobeClothes_user1", "wardrobeClothes_user2"}


def test_update_missing_id_is_a_no_op(store: InMemoryKeyValueStore, clothes: ClothingRepository) -> None:
    clothes.add(_tshirt(), "user1")
    before = store.get("wardrobeClothes_user1")

    assert clothes.update(replace(_tshirt(), id="missing"), "user1") is False
    assert store.get("wardrobeClothes_user1") == before


def test_update_replaces_record_and_keeps_created_at(clothes: ClothingRepository) -> None:
    item_id = clothes.add(_tshirt(price=10), "user1")
    original = clothes.get(item_id, "user1")

    edited = replace(_tshirt(name="T-shirt col V", price=None), id=item_id)
    assert clothes.update(edited, "user1") is True

    updated = clothes.get(item_id, "user1")
    assert updated.name == "T-shirt col V"
    assert updated.price is None
    assert updated.created_at == original.created_at
    assert updated.updated_at >= original.updated_at


def test_delete_unknown_id_returns_false(clothes: ClothingRepository) -> None:
    clothes.add(_tshirt(), "user1")
    assert clothes.delete("missing", "user1") is False
    assert len(clothes.list("user1")) == 1


def test_list_degrades_to_empty_on_storage_failure() -> None:
    repo = ClothingRepository(FailingReadsStore())
    assert repo.list("user1") == []
    assert repo.get("anything", "user1") is None


def test_list_degrades_on_corrupt_document(store: InMemoryKeyValueStore, clothes: ClothingRepository) -> None:
    store.set("wardrobeClothes_user1", json.dumps({"not": "a list"}))
    assert clothes.list("user1") == []
    store.set("wardrobeClothes_user1", json.dumps([{"name": "no category"}]))
    assert clothes.list("user1") == []


def test_add_propagates_storage_failure() -> None:
    repo = ClothingRepository(FailingWritesStore())
    with pytest.raises(StorageError):
        repo.add(_tshirt(), "user1")


def test_update_and_delete_report_false_on_storage_failure() -> None:
    seeded = FailingWritesStore()
    seeded._data["wardrobeClothes_user1"] = json.dumps(
        [{**_tshirt().to_dict(), "id": "abc", "created_at": "t", "updated_at": "t"}]
    )
    repo = ClothingRepository(seeded)

    assert repo.update(replace(_tshirt(), id="abc"), "user1") is False
    assert repo.delete("abc", "user1") is False


def test_json_round_trip_is_lossless(store: InMemoryKeyValueStore, clothes: ClothingRepository) -> None:
    item_id = clothes.add(_tshirt(subcategory="manches courtes", image_url="file:///tmp/a.jpg"), "user1")
    raw = json.loads(store.get("wardrobeClothes_user1"))
    assert raw == [clothes.get(item_id, "user1").to_dict()]


def test_search_and_facets(clothes: ClothingRepository) -> None:
    clothes.add(_tshirt(season="Été"), "user1")
    clothes.add(_tshirt(name="Jean", category="bas", color="Bleu", season="Toutes saisons"), "user1")
    clothes.add(_tshirt(name="Pull", color="Gris", season="Hiver"), "user1")

    assert [item.name for item in clothes.search("user1", {"category": "haut"})] == ["T-shirt", "Pull"]
    assert [item.name for item in clothes.search("user1", {"color": "Bleu", "category": "bas"})] == ["Jean"]
    assert len(clothes.search("user1", {"color": "", "unknown": "x"})) == 3
    assert clothes.facets("user1") == {
        "colors": ["Bleu", "Gris"],
        "seasons": ["Été", "Toutes saisons", "Hiver"],
    }


def test_outfit_repository_round_trips_snapshots(store: InMemoryKeyValueStore) -> None:
    repo = OutfitRepository(store)
    snapshot = replace(_tshirt(), id="item-1", created_at="t", updated_at="t")
    outfit_id = repo.add(Outfit(name="Dimanche", items=[snapshot]), "user1")

    stored = repo.get(outfit_id, "user1")
    assert stored.items == [snapshot]
    assert stored.item_ids() == ["item-1"]


def test_order_update_cannot_reset_status(store: InMemoryKeyValueStore) -> None:
    repo = PendingOrderRepository(store)
    order_id = repo.add(
        PendingOrder(name="Zalando", items=[OrderLineItem(name="Veste", category="manteau", color="Noir")]),
        "user1",
    )
    orders = repo.load("user1")
    orders[0] = replace(orders[0], status=ORDER_RECEIVED, received_at="2026-10-01T00:00:00+00:00")
    repo.save_all(orders, "user1")

    edited = replace(PendingOrder(name="Zalando (edited)"), id=order_id, status=ORDER_PENDING)
    assert repo.update(edited, "user1") is True

    stored = repo.get(order_id, "user1")
    assert stored.name == "Zalando (edited)"
    assert stored.status == ORDER_RECEIVED
    assert stored.received_at == "2026-10-01T00:00:00+00:00"
    assert [order.id for order in repo.list_by_status("user1", ORDER_RECEIVED)] == [order_id]
    assert repo.list_by_status("user1", ORDER_PENDING) == []
    with pytest.raises(ValueError):
        repo.list_by_status("user1", "lost")
