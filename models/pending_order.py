"""Pending purchase orders and their line items."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from typing import Any, Dict, List, Optional

from models.clothing_item import ClothingItem
from models.common import coerce_price, pick_fields, require_fields

ORDER_PENDING = "pending"
ORDER_RECEIVED = "received"
ORDER_STATUSES = (ORDER_PENDING, ORDER_RECEIVED)


@dataclass
class OrderLineItem:
    """One garment expected in an order."""

    name: str
    category: str
    color: str
    subcategory: Optional[str] = None
    price: Optional[float] = None
    id: Optional[str] = None

    def __post_init__(self) -> None:
        self.price = coerce_price(self.price)

    def to_clothing_item(self) -> ClothingItem:
        """Build the wardrobe item created when the order arrives."""

        return ClothingItem(
            name=self.name,
            category=self.category,
            color=self.color,
            subcategory=self.subcategory,
            price=self.price if self.price is not None else 0.0,
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "OrderLineItem":
        require_fields(data, ["name", "category", "color"], "OrderLineItem")
        return cls(**pick_fields(data, (f.name for f in fields(cls))))


@dataclass
class PendingOrder:
    name: str
    items: List[OrderLineItem] = field(default_factory=list)
    store: Optional[str] = None
    expected_date: Optional[str] = None
    tracking_number: Optional[str] = None
    note: Optional[str] = None
    status: str = ORDER_PENDING
    id: str = ""
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    received_at: Optional[str] = None

    def __post_init__(self) -> None:
        if self.status not in ORDER_STATUSES:
            raise ValueError(f"Unknown order status {self.status!r}")
        self.items = [
            item if isinstance(item, OrderLineItem) else OrderLineItem.from_dict(item)
            for item in self.items or []
        ]

    @property
    def is_received(self) -> bool:
        return self.status == ORDER_RECEIVED

    def total(self) -> float:
        return sum(item.price or 0.0 for item in self.items)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PendingOrder":
        require_fields(data, ["name"], "PendingOrder")
        payload = pick_fields(data, (f.name for f in fields(cls)))
        payload["items"] = list(payload.get("items") or [])
        return cls(**payload)


__all__ = [
    "ORDER_PENDING",
    "ORDER_RECEIVED",
    "ORDER_STATUSES",
    "OrderLineItem",
    "PendingOrder",
]
