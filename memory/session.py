"""Explicit current-user session backed by the key/value store."""
from __future__ import annotations

from typing import Any, Dict, Optional

from tools.kv_store import KeyValueStore, read_json, write_json

CURRENT_USER_KEY = "currentUser"


class Session:
    """Caches the active user's public record.

    Reads only consult the in-memory copy. Call :meth:`refresh` to pick up
    changes written to the store by anything other than this object.
    """

    def __init__(self, store: KeyValueStore, key: str = CURRENT_USER_KEY) -> None:
        self.store = store
        self.key = key
        self._user: Optional[Dict[str, Any]] = None

    def load(self) -> Optional[Dict[str, Any]]:
        payload = read_json(self.store, self.key, default=None)
        self._user = payload if isinstance(payload, dict) else None
        return self.current_user

    refresh = load

    def set(self, user: Dict[str, Any]) -> None:
        write_json(self.store, self.key, user)
        self._user = dict(user)

    def clear(self) -> None:
        self.store.remove(self.key)
        self._user = None

    @property
    def current_user(self) -> Optional[Dict[str, Any]]:
        return dict(self._user) if self._user else None

    @property
    def user_id(self) -> Optional[str]:
        return self._user.get("id") if self._user else None

    @property
    def is_admin(self) -> bool:
        return bool(self._user and self._user.get("is_admin"))


__all__ = ["CURRENT_USER_KEY", "Session"]
