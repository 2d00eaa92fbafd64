"""Whole-document collection repositories keyed by ``<prefix>_<user_id>``.

Every write reads the user's full collection, mutates it in memory and writes
the whole array back. Mutations run under the user's lock so two writers in
the same process cannot interleave their read-modify-write cycles.
"""
from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Callable, Dict, Generic, List, Optional, Sequence, TypeVar

from wardrobe_app.logging_config import get_logger, log_event
from logic.locking import UserLockRegistry
from models.clothing_item import ClothingItem
from models.common import new_record_id, utc_now
from models.outfit import Outfit
from models.pending_order import ORDER_STATUSES, PendingOrder
from tools.kv_store import KeyValueStore, StorageError, read_json, write_json

logger = get_logger(__name__)

CLOTHES_PREFIX = "wardrobeClothes"
OUTFITS_PREFIX = "savedOutfits"
PENDING_ORDERS_PREFIX = "pendingOrders"

T = TypeVar("T", ClothingItem, Outfit, PendingOrder)


class CollectionRepository(Generic[T]):
    """CRUD over one entity kind, one JSON array per user."""

    prefix: str = ""
    record_type: Callable[[Dict[str, Any]], T]

    def __init__(self, store: KeyValueStore, locks: UserLockRegistry | None = None) -> None:
        self.store = store
        self.locks = locks or UserLockRegistry()

    def key_for(self, user_id: str) -> str:
        return f"{self.prefix}_{user_id}"

    def _decode(self, raw: Dict[str, Any]) -> T:
        return self.record_type(raw)

    def load(self, user_id: str) -> List[T]:
        """Return the collection, raising ``StorageError`` when it cannot be read."""

        documents = read_json(self.store, self.key_for(user_id), default=[])
        if not isinstance(documents, list):
            raise StorageError(f"Document under {self.key_for(user_id)!r} is not a list")
        try:
            return [self._decode(doc) for doc in documents]
        except (AttributeError, ValueError, TypeError) as exc:
            raise StorageError(f"Malformed record under {self.key_for(user_id)!r}") from exc

    def _save(self, records: Sequence[T], user_id: str) -> None:
        write_json(self.store, self.key_for(user_id), [record.to_dict() for record in records])

    def _log_storage_failure(self, action: str, user_id: str) -> None:
        log_event(
            logger,
            logging.ERROR,
            "collection_storage_failed",
            collection=self.prefix,
            action=action,
            user_id=user_id,
            exc_info=True,
        )

    def list(self, user_id: str) -> List[T]:
        """Return the user's collection; storage failures degrade to ``[]``."""

        try:
            return self.load(user_id)
        except StorageError:
            self._log_storage_failure("list", user_id)
            return []

    def get(self, record_id: str, user_id: str) -> Optional[T]:
        for record in self.list(user_id):
            if record.id == record_id:
                return record
        return None

    def _stamp_new(self, record: T, now: str) -> T:
        return replace(record, id=new_record_id(), created_at=now, updated_at=now)

    def add(self, record: T, user_id: str) -> str:
        """Append ``record`` with a fresh id and timestamps; storage errors propagate."""

        return self.extend([record], user_id)[0]

    def extend(self, records: Sequence[T], user_id: str) -> List[str]:
        """Append several records in a single write."""

        with self.locks.hold(user_id):
            collection = self.load(user_id)
            now = utc_now()
            stamped = [self._stamp_new(record, now) for record in records]
            collection.extend(stamped)
            self._save(collection, user_id)
        return [record.id for record in stamped]

    def _merge_update(self, existing: T, incoming: T, now: str) -> T:
        return replace(incoming, created_at=existing.created_at, updated_at=now)

    def update(self, record: T, user_id: str) -> bool:
        """Replace the record with the same id; ``False`` if absent or on storage failure."""

        with self.locks.hold(user_id):
            try:
                collection = self.load(user_id)
                index = next((i for i, item in enumerate(collection) if item.id == record.id), None)
                if index is None:
                    return False
                collection[index] = self._merge_update(collection[index], record, utc_now())
                self._save(collection, user_id)
            except StorageError:
                self._log_storage_failure("update", user_id)
                return False
        return True

    def delete(self, record_id: str, user_id: str) -> bool:
        """Drop the record; ``False`` if nothing matched or on storage failure."""

        with self.locks.hold(user_id):
            try:
                collection = self.load(user_id)
                kept = [record for record in collection if record.id != record_id]
                if len(kept) == len(collection):
                    return False
                self._save(kept, user_id)
            except StorageError:
                self._log_storage_failure("delete", user_id)
                return False
        return True

    def save_all(self, records: Sequence[T], user_id: str) -> None:
        """Rewrite the whole collection; storage errors propagate."""

        with self.locks.hold(user_id):
            self._save(records, user_id)


class ClothingRepository(CollectionRepository[ClothingItem]):
    prefix = CLOTHES_PREFIX
    record_type = staticmethod(ClothingItem.from_dict)

    def search(self, user_id: str, filters: Dict[str, Any] | None = None) -> List[ClothingItem]:
        """Exact-match filtering on category, subcategory, color and season."""

        wanted = {
            key: value
            for key, value in (filters or {}).items()
            if key in {"category", "subcategory", "color", "season"} and value not in (None, "")
        }
        return [
            item
            for item in self.list(user_id)
            if all(getattr(item, key) == value for key, value in wanted.items())
        ]

    def facets(self, user_id: str) -> Dict[str, List[str]]:
        """Distinct colours and seasons in first-seen order, for filter pickers."""

        colors: List[str] = []
        seasons: List[str] = []
        for item in self.list(user_id):
            if item.color and item.color not in colors:
                colors.append(item.color)
            if item.season and item.season not in seasons:
                seasons.append(item.season)
        return {"colors": colors, "seasons": seasons}


class OutfitRepository(CollectionRepository[Outfit]):
    prefix = OUTFITS_PREFIX
    record_type = staticmethod(Outfit.from_dict)


class PendingOrderRepository(CollectionRepository[PendingOrder]):
    prefix = PENDING_ORDERS_PREFIX
    record_type = staticmethod(PendingOrder.from_dict)

    def _merge_update(self, existing: PendingOrder, incoming: PendingOrder, now: str) -> PendingOrder:
        # Status only moves forward through receipt, never through an edit.
        return replace(
            incoming,
            status=existing.status,
            received_at=existing.received_at,
            created_at=existing.created_at,
            updated_at=now,
        )

    def list_by_status(self, user_id: str, status: str) -> List[PendingOrder]:
        if status not in ORDER_STATUSES:
            raise ValueError(f"Unknown order status {status!r}")
        return [order for order in self.list(user_id) if order.status == status]


__all__ = [
    "CLOTHES_PREFIX",
    "OUTFITS_PREFIX",
    "PENDING_ORDERS_PREFIX",
    "CollectionRepository",
    "ClothingRepository",
    "OutfitRepository",
    "PendingOrderRepository",
]
