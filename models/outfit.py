"""Outfit data model.

Outfits embed full clothing snapshots rather than ids, so an outfit renders on
its own even after the source items change. Deleting a clothing item is the
one case that reaches back into outfits (see ``WardrobeTools.delete_clothing``).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from models.clothing_item import ClothingItem
from models.common import require_fields


@dataclass
class Outfit:
    name: str
    items: List[ClothingItem] = field(default_factory=list)
    id: str = ""
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    def __post_init__(self) -> None:
        self.items = [
            item if isinstance(item, ClothingItem) else ClothingItem.from_dict(item)
            for item in self.items or []
        ]

    def item_ids(self) -> List[str]:
        return [item.id for item in self.items]

    def without_item(self, item_id: str) -> "Outfit":
        """Return a copy with every snapshot of ``item_id`` removed."""

        kept = [item for item in self.items if item.id != item_id]
        return Outfit(
            name=self.name,
            items=kept,
            id=self.id,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "items": [item.to_dict() for item in self.items],
            "id": self.id,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Outfit":
        require_fields(data, ["name"], "Outfit")
        return cls(
            name=str(data["name"]),
            items=list(data.get("items") or []),
            id=str(data.get("id") or ""),
            created_at=data.get("created_at"),
            updated_at=data.get("updated_at"),
        )


__all__ = ["Outfit"]
