"""Shared helpers for record identifiers and timestamps."""

from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List
from uuid import uuid4


def utc_now() -> str:
    """Current UTC time as an ISO-8601 string with millisecond precision."""

    return datetime.now(timezone.utc).isoformat(timespec="milliseconds")


def new_record_id() -> str:
    return uuid4().hex


def pick_fields(data: Dict[str, Any], allowed: Iterable[str]) -> Dict[str, Any]:
    """Drop keys a dataclass does not declare so older documents still load."""

    allowed_set = set(allowed)
    return {key: value for key, value in data.items() if key in allowed_set}


def require_fields(data: Dict[str, Any], required: List[str], kind: str) -> None:
    missing = [name for name in required if data.get(name) in (None, "")]
    if missing:
        raise ValueError(f"Missing required fields for {kind}: {missing}")


def coerce_price(value: Any) -> float | None:
    """Normalise a stored or typed price; ``None`` stays "no price"."""

    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ValueError("price must be a number")
    if isinstance(value, str):
        value = value.strip().replace(",", ".")
    price = float(value)
    if not math.isfinite(price):
        raise ValueError("price must be a finite number")
    if price < 0:
        raise ValueError("price cannot be negative")
    return price


__all__ = ["utc_now", "new_record_id", "pick_fields", "require_fields", "coerce_price"]
