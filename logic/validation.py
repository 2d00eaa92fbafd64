"""Pydantic schemas that validate and coerce raw form input from the client."""

from __future__ import annotations

import math
import re
from datetime import date
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from models.clothing_item import ClothingItem
from models.pending_order import OrderLineItem, PendingOrder
from models.results import ErrorKind, OperationResult

_PRICE_PATTERN = re.compile(r"^[0-9]*[.,]?[0-9]*$")
_EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+$"
_COLOR_PATTERN = r"^#[0-9a-fA-F]{6}$"
MIN_PASSWORD_LENGTH = 6


def parse_price(raw: Any) -> Optional[float]:
    """Turn typed input such as ``"12,50"`` into a float; blank means no price."""

    if raw is None:
        return None
    if isinstance(raw, bool):
        raise ValueError("price must be a number")
    if isinstance(raw, (int, float)):
        if not math.isfinite(raw):
            raise ValueError("price must be a finite number")
        if raw < 0:
            raise ValueError("price cannot be negative")
        return float(raw)
    text = str(raw).strip()
    if not text:
        return None
    if not _PRICE_PATTERN.match(text) or text in {".", ","}:
        raise ValueError("price must contain digits and at most one ',' or '.' separator")
    return float(text.replace(",", "."))


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


class ClothingForm(BaseModel):
    """Clothing add/edit form."""

    name: str = Field(min_length=1)
    category: str = Field(min_length=1)
    color: str = Field(min_length=1)
    subcategory: Optional[str] = None
    season: Optional[str] = None
    price: Optional[float] = None
    image_url: Optional[str] = None

    @field_validator("name", "category", "color", mode="before")
    @classmethod
    def _strip_required(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @field_validator("subcategory", "season", "image_url", mode="before")
    @classmethod
    def _optional_text(cls, value: Any) -> Any:
        return _blank_to_none(value)

    @field_validator("price", mode="before")
    @classmethod
    def _parse_price(cls, value: Any) -> Optional[float]:
        return parse_price(value)

    def to_item(self) -> ClothingItem:
        return ClothingItem(**self.model_dump())


class OrderLineForm(BaseModel):
    name: str = Field(min_length=1)
    category: str = Field(min_length=1)
    color: str = Field(min_length=1)
    subcategory: Optional[str] = None
    price: float = 0.0

    @field_validator("name", "category", "color", mode="before")
    @classmethod
    def _strip_required(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @field_validator("subcategory", mode="before")
    @classmethod
    def _optional_text(cls, value: Any) -> Any:
        return _blank_to_none(value)

    @field_validator("price", mode="before")
    @classmethod
    def _parse_price(cls, value: Any) -> float:
        # Order lines persist a concrete price; absent means free.
        parsed = parse_price(value)
        return 0.0 if parsed is None else parsed


class OrderForm(BaseModel):
    """Pending order add/edit form; at least one line item is required."""

    name: str = Field(min_length=1)
    items: List[OrderLineForm] = Field(min_length=1)
    store: Optional[str] = None
    expected_date: Optional[date] = None
    tracking_number: Optional[str] = None
    note: Optional[str] = None

    @field_validator("name", mode="before")
    @classmethod
    def _strip_name(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @field_validator("store", "expected_date", "tracking_number", "note", mode="before")
    @classmethod
    def _optional_text(cls, value: Any) -> Any:
        return _blank_to_none(value)

    def to_order(self) -> PendingOrder:
        return PendingOrder(
            name=self.name,
            items=[OrderLineItem(**line.model_dump()) for line in self.items],
            store=self.store,
            expected_date=self.expected_date.isoformat() if self.expected_date else None,
            tracking_number=self.tracking_number,
            note=self.note,
        )


class OutfitForm(BaseModel):
    """Outfit form: a name plus the ids of the clothing items to snapshot."""

    name: str = Field(min_length=1)
    item_ids: List[str] = Field(min_length=1)

    @field_validator("name", mode="before")
    @classmethod
    def _strip_name(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value


class RegistrationForm(BaseModel):
    username: str = Field(min_length=1)
    email: str = Field(pattern=_EMAIL_PATTERN)
    password: str = Field(min_length=MIN_PASSWORD_LENGTH)
    confirm_password: Optional[str] = None
    name: Optional[str] = None
    color: Optional[str] = Field(default=None, pattern=_COLOR_PATTERN)

    @field_validator("username", "email", mode="before")
    @classmethod
    def _strip(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @field_validator("name", "color", mode="before")
    @classmethod
    def _optional_text(cls, value: Any) -> Any:
        return _blank_to_none(value)

    @model_validator(mode="after")
    def _passwords_match(self) -> "RegistrationForm":
        if self.confirm_password is not None and self.confirm_password != self.password:
            raise ValueError("passwords do not match")
        return self


class ProfileUpdateForm(BaseModel):
    """Profile edit; omitted or blank fields keep their stored values."""

    username: Optional[str] = None
    email: Optional[str] = Field(default=None, pattern=_EMAIL_PATTERN)
    name: Optional[str] = None
    color: Optional[str] = Field(default=None, pattern=_COLOR_PATTERN)
    password: Optional[str] = Field(default=None, min_length=MIN_PASSWORD_LENGTH)

    @field_validator("username", "email", "name", "color", mode="before")
    @classmethod
    def _optional_text(cls, value: Any) -> Any:
        value = _blank_to_none(value)
        return value.strip() if isinstance(value, str) else value

    @field_validator("password", mode="before")
    @classmethod
    def _optional_password(cls, value: Any) -> Any:
        return _blank_to_none(value)

    def changes(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


class LoginForm(BaseModel):
    username_or_email: str = Field(min_length=1)
    password: str = Field(min_length=1)


def validation_failure(message: str, exc: ValidationError) -> OperationResult:
    """Translate Pydantic errors into an ``invalid_input`` result."""

    result = OperationResult.fail(ErrorKind.INVALID_INPUT, message)
    result.value = exc.errors(include_url=False, include_context=False)
    return result


__all__ = [
    "ClothingForm",
    "LoginForm",
    "MIN_PASSWORD_LENGTH",
    "OrderForm",
    "OrderLineForm",
    "OutfitForm",
    "ProfileUpdateForm",
    "RegistrationForm",
    "parse_price",
    "validation_failure",
]
