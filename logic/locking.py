"""Per-user locks serialising read-modify-write cycles on whole documents."""

from __future__ import annotations

import contextlib
import threading
from typing import Dict, Iterator, List


class UserLockRegistry:
    """Hands out one re-entrant lock per user id.

    Re-entrant so a cascade can hold the user's lock while the repository
    calls it makes acquire it again. An entry only lives while some thread
    holds or waits on it, so the registry does not grow with every user id
    ever seen.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        # user id -> [lock, number of holders and waiters]
        self._entries: Dict[str, List] = {}

    def __len__(self) -> int:
        with self._guard:
            return len(self._entries)

    def _checkout(self, user_id: str) -> threading.RLock:
        with self._guard:
            entry = self._entries.get(user_id)
            if entry is None:
                entry = [threading.RLock(), 0]
                self._entries[user_id] = entry
            entry[1] += 1
            return entry[0]

    def _checkin(self, user_id: str) -> None:
        with self._guard:
            entry = self._entries[user_id]
            entry[1] -= 1
            if entry[1] == 0:
                del self._entries[user_id]

    @contextlib.contextmanager
    def hold(self, user_id: str) -> Iterator[None]:
        lock = self._checkout(user_id)
        try:
            with lock:
                yield
        finally:
            self._checkin(user_id)


__all__ = ["UserLockRegistry"]
