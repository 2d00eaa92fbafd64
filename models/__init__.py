"""Model package exports."""

from models.account import Account
from models.clothing_item import ClothingItem
from models.outfit import Outfit
from models.pending_order import ORDER_PENDING, ORDER_RECEIVED, OrderLineItem, PendingOrder
from models.results import ErrorKind, OperationResult

__all__ = [
    "Account",
    "ClothingItem",
    "ErrorKind",
    "OperationResult",
    "ORDER_PENDING",
    "ORDER_RECEIVED",
    "OrderLineItem",
    "Outfit",
    "PendingOrder",
]
