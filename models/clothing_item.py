"""Clothing item data model."""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from typing import Any, Dict, Optional

from models.common import coerce_price, pick_fields, require_fields


@dataclass
class ClothingItem:
    """A garment in one user's wardrobe."""

    name: str
    category: str
    color: str
    subcategory: Optional[str] = None
    season: Optional[str] = None
    price: Optional[float] = None
    image_url: Optional[str] = None
    id: str = ""
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    def __post_init__(self) -> None:
        self.price = coerce_price(self.price)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ClothingItem":
        require_fields(data, ["name", "category", "color"], "ClothingItem")
        return cls(**pick_fields(data, (f.name for f in fields(cls))))


__all__ = ["ClothingItem"]
