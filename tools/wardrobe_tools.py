"""Wardrobe operations for the presentation layer, including cross-collection rules."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Dict, List, Mapping, Optional

from pydantic import ValidationError

from wardrobe_app.config import DEFAULT_USER_ID
from wardrobe_app.logging_config import get_logger, log_event
from logic.locking import UserLockRegistry
from logic.validation import ClothingForm, OrderForm, OutfitForm, validation_failure
from memory.identity_provider import IdentityProvider
from models.common import utc_now
from models.outfit import Outfit
from models.pending_order import ORDER_RECEIVED, PendingOrder
from models.results import ErrorKind, OperationResult
from tools.kv_store import KeyValueStore, StorageError
from tools.observability import instrument_operation
from tools.repositories import ClothingRepository, OutfitRepository, PendingOrderRepository

logger = get_logger(__name__)


def _storage_failure(action: str) -> OperationResult:
    log_event(logger, logging.ERROR, "wardrobe_storage_failed", action=action, exc_info=True)
    return OperationResult.fail(ErrorKind.STORAGE_FAILURE, f"Could not save the {action}")


class WardrobeTools:
    """Validates client input and applies it to the user's collections.

    Every method takes an optional ``user_id``; when omitted the session's
    current user is used, falling back to ``default_user_id`` when nobody is
    logged in.
    """

    def __init__(
        self,
        store: KeyValueStore,
        identity: Optional[IdentityProvider] = None,
        locks: Optional[UserLockRegistry] = None,
        default_user_id: str = DEFAULT_USER_ID,
    ) -> None:
        self.store = store
        self.identity = identity
        self.locks = locks or UserLockRegistry()
        self.default_user_id = default_user_id
        self.clothes = ClothingRepository(store, self.locks)
        self.outfits = OutfitRepository(store, self.locks)
        self.orders = PendingOrderRepository(store, self.locks)

    def resolve_user_id(self, user_id: Optional[str] = None) -> str:
        if user_id:
            return user_id
        if self.identity is not None:
            current = self.identity.get_current_user_id()
            if current:
                return current
        return self.default_user_id

    # -- clothing ----------------------------------------------------------

    @instrument_operation("list_clothes")
    def list_clothes(
        self, user_id: Optional[str] = None, filters: Optional[Dict[str, Any]] = None
    ) -> List[Dict[str, Any]]:
        owner = self.resolve_user_id(user_id)
        items = self.clothes.search(owner, filters) if filters else self.clothes.list(owner)
        return [item.to_dict() for item in items]

    @instrument_operation("clothing_facets")
    def clothing_facets(self, user_id: Optional[str] = None) -> Dict[str, List[str]]:
        return self.clothes.facets(self.resolve_user_id(user_id))

    @instrument_operation("add_clothing")
    def add_clothing(self, form_data: Mapping[str, Any], user_id: Optional[str] = None) -> OperationResult:
        try:
            item = ClothingForm.model_validate(dict(form_data)).to_item()
        except ValidationError as exc:
            return validation_failure("Invalid clothing item", exc)
        try:
            item_id = self.clothes.add(item, self.resolve_user_id(user_id))
        except StorageError:
            return _storage_failure("clothing item")
        return OperationResult.ok(item_id, "Clothing item added")

    @instrument_operation("update_clothing")
    def update_clothing(
        self, item_id: str, form_data: Mapping[str, Any], user_id: Optional[str] = None
    ) -> OperationResult:
        owner = self.resolve_user_id(user_id)
        try:
            edited = ClothingForm.model_validate(dict(form_data)).to_item()
        except ValidationError as exc:
            return validation_failure("Invalid clothing item", exc)
        if not self.clothes.update(replace(edited, id=item_id), owner):
            return OperationResult.fail(ErrorKind.NOT_FOUND, "Clothing item not found")
        return OperationResult.ok(item_id, "Clothing item updated")

    @instrument_operation("delete_clothing")
    def delete_clothing(self, item_id: str, user_id: Optional[str] = None) -> bool:
        """Delete an item and strip its snapshots from every outfit of the same user.

        Both writes happen under the user's lock; they are still two separate
        writes, so an interruption in between leaves outfits holding a stale
        snapshot of the deleted item.
        """

        owner = self.resolve_user_id(user_id)
        with self.locks.hold(owner):
            if not self.clothes.delete(item_id, owner):
                return False

            outfits = self.outfits.list(owner)
            updated: List[Outfit] = []
            touched = 0
            for outfit in outfits:
                if item_id in outfit.item_ids():
                    updated.append(outfit.without_item(item_id))
                    touched += 1
                else:
                    updated.append(outfit)

            if touched:
                try:
                    self.outfits.save_all(updated, owner)
                except StorageError:
                    log_event(
                        logger,
                        logging.ERROR,
                        "outfit_cascade_failed",
                        item_id=item_id,
                        outfits=touched,
                        exc_info=True,
                    )
                else:
                    log_event(logger, logging.INFO, "outfit_cascade_applied", item_id=item_id, outfits=touched)
        return True

    # -- outfits -----------------------------------------------------------

    @instrument_operation("list_outfits")
    def list_outfits(self, user_id: Optional[str] = None) -> List[Dict[str, Any]]:
        return [outfit.to_dict() for outfit in self.outfits.list(self.resolve_user_id(user_id))]

    def _build_outfit(self, form_data: Mapping[str, Any], owner: str) -> Outfit | OperationResult:
        try:
            form = OutfitForm.model_validate(dict(form_data))
        except ValidationError as exc:
            return validation_failure("Invalid outfit", exc)
        wardrobe = {item.id: item for item in self.clothes.list(owner)}
        missing = [item_id for item_id in form.item_ids if item_id not in wardrobe]
        if missing:
            return OperationResult.fail(ErrorKind.NOT_FOUND, f"Unknown clothing items: {missing}")
        # Outfits keep a copy of each item as it is right now.
        snapshots = [wardrobe[item_id] for item_id in dict.fromkeys(form.item_ids)]
        return Outfit(name=form.name, items=snapshots)

    @instrument_operation("add_outfit")
    def add_outfit(self, form_data: Mapping[str, Any], user_id: Optional[str] = None) -> OperationResult:
        owner = self.resolve_user_id(user_id)
        outfit = self._build_outfit(form_data, owner)
        if isinstance(outfit, OperationResult):
            return outfit
        try:
            outfit_id = self.outfits.add(outfit, owner)
        except StorageError:
            return _storage_failure("outfit")
        return OperationResult.ok(outfit_id, "Outfit saved")

    @instrument_operation("update_outfit")
    def update_outfit(
        self, outfit_id: str, form_data: Mapping[str, Any], user_id: Optional[str] = None
    ) -> OperationResult:
        owner = self.resolve_user_id(user_id)
        outfit = self._build_outfit(form_data, owner)
        if isinstance(outfit, OperationResult):
            return outfit
        if not self.outfits.update(replace(outfit, id=outfit_id), owner):
            return OperationResult.fail(ErrorKind.NOT_FOUND, "Outfit not found")
        return OperationResult.ok(outfit_id, "Outfit updated")

    @instrument_operation("delete_outfit")
    def delete_outfit(self, outfit_id: str, user_id: Optional[str] = None) -> bool:
        return self.outfits.delete(outfit_id, self.resolve_user_id(user_id))

    # -- pending orders ----------------------------------------------------

    @instrument_operation("list_orders")
    def list_orders(self, user_id: Optional[str] = None, status: Optional[str] = None) -> List[Dict[str, Any]]:
        owner = self.resolve_user_id(user_id)
        orders = self.orders.list_by_status(owner, status) if status else self.orders.list(owner)
        return [{**order.to_dict(), "total": order.total()} for order in orders]

    @instrument_operation("add_order")
    def add_order(self, form_data: Mapping[str, Any], user_id: Optional[str] = None) -> OperationResult:
        try:
            order = OrderForm.model_validate(dict(form_data)).to_order()
        except ValidationError as exc:
            return validation_failure("Invalid order", exc)
        try:
            order_id = self.orders.add(order, self.resolve_user_id(user_id))
        except StorageError:
            return _storage_failure("order")
        return OperationResult.ok(order_id, "Order added")

    @instrument_operation("update_order")
    def update_order(
        self, order_id: str, form_data: Mapping[str, Any], user_id: Optional[str] = None
    ) -> OperationResult:
        owner = self.resolve_user_id(user_id)
        try:
            edited = OrderForm.model_validate(dict(form_data)).to_order()
        except ValidationError as exc:
            return validation_failure("Invalid order", exc)
        if not self.orders.update(replace(edited, id=order_id), owner):
            return OperationResult.fail(ErrorKind.NOT_FOUND, "Order not found")
        return OperationResult.ok(order_id, "Order updated")

    @instrument_operation("delete_order")
    def delete_order(self, order_id: str, user_id: Optional[str] = None) -> bool:
        return self.orders.delete(order_id, self.resolve_user_id(user_id))

    def _restore_orders(self, snapshot: List[PendingOrder], owner: str, order_id: str) -> None:
        try:
            self.orders.save_all(snapshot, owner)
        except StorageError:
            log_event(logger, logging.ERROR, "order_restore_failed", order_id=order_id, exc_info=True)
        else:
            log_event(logger, logging.WARNING, "order_receipt_rolled_back", order_id=order_id)

    @instrument_operation("receive_order")
    def receive_order(self, order_id: str, user_id: Optional[str] = None) -> OperationResult:
        """Mark an order received and add its line items to the wardrobe.

        Runs entirely under the user's lock, so a repeated call sees the
        ``received`` status and cannot add the items twice.
        If the wardrobe write fails the order is written back as pending.
        """

        owner = self.resolve_user_id(user_id)
        with self.locks.hold(owner):
            try:
                orders = self.orders.load(owner)
            except StorageError:
                return _storage_failure("order")

            index = next((i for i, order in enumerate(orders) if order.id == order_id), None)
            if index is None:
                return OperationResult.fail(ErrorKind.NOT_FOUND, "Order not found")
            order = orders[index]
            if order.is_received:
                return OperationResult.fail(ErrorKind.ALREADY_RECEIVED, "This order has already been received")

            snapshot = list(orders)
            now = utc_now()
            orders[index] = replace(order, status=ORDER_RECEIVED, received_at=now, updated_at=now)
            new_items = [line.to_clothing_item() for line in order.items]
            try:
                self.orders.save_all(orders, owner)
            except StorageError:
                return _storage_failure("received order")
            try:
                item_ids = self.clothes.extend(new_items, owner)
            except StorageError:
                # Put the order back to pending so the receipt can be retried.
                self._restore_orders(snapshot, owner, order_id)
                return _storage_failure("received order")

        log_event(logger, logging.INFO, "order_received", order_id=order_id, items_added=len(item_ids))
        return OperationResult.ok(
            {"order_id": order_id, "items_added": len(item_ids), "item_ids": item_ids},
            f"{len(item_ids)} item(s) added to your wardrobe",
        )


__all__ = ["WardrobeTools"]
