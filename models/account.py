"""Registered account model."""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Dict, Optional

from models.common import pick_fields, require_fields

_SECRET_FIELDS = ("password_hash", "password")
# Records written by the first release of the app used camelCase keys.
_LEGACY_KEYS = {"isAdmin": "is_admin", "createdAt": "created_at", "updatedAt": "updated_at"}


@dataclass
class Account:
    """A registered user. ``password`` only exists on legacy plaintext records."""

    id: str
    username: str
    email: str
    name: str
    color: str
    is_admin: bool = False
    password_hash: Optional[str] = None
    password: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    def matches_identifier(self, identifier: str) -> bool:
        needle = identifier.strip().lower()
        return needle in {self.username.lower(), self.email.lower()}

    def public_view(self) -> Dict[str, Any]:
        """Account fields safe to cache as the current session."""

        return {key: value for key, value in self.to_dict().items() if key not in _SECRET_FIELDS}

    def to_dict(self) -> Dict[str, Any]:
        payload = {f.name: getattr(self, f.name) for f in fields(self)}
        if payload["password"] is None:
            payload.pop("password")
        return payload

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Account":
        require_fields(data, ["id", "username", "email"], "Account")
        for legacy_key, key in _LEGACY_KEYS.items():
            if legacy_key in data and key not in data:
                data = {**data, key: data[legacy_key]}
        payload = pick_fields(data, (f.name for f in fields(cls)))
        payload.setdefault("name", payload["username"])
        payload.setdefault("color", "#3498db")
        payload["is_admin"] = bool(payload.get("is_admin", False))
        return cls(**payload)


__all__ = ["Account"]
