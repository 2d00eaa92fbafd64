"""Identity providers deciding whose collections are read and written.

Only the account-based provider is live. The older tap-to-select roster, which
kept the current user in a module-level global, is gone; its default roster
survives as the seeded accounts below and its ``init()`` step as
:meth:`AccountIdentityProvider.init` plus the explicit :class:`Session`.
"""
from __future__ import annotations

import hmac
import logging
import random
import threading
from typing import Any, Dict, List, Mapping, Optional

from pydantic import ValidationError

from wardrobe_app.logging_config import get_logger, log_event
from logic.passwords import hash_password, verify_password
from logic.validation import ProfileUpdateForm, RegistrationForm, validation_failure
from memory.session import Session
from models.account import Account
from models.common import new_record_id, utc_now
from models.results import ErrorKind, OperationResult
from tools.kv_store import KeyValueStore, StorageError, read_json, write_json

logger = get_logger(__name__)

USERS_KEY = "appUsers"
DEFAULT_ACCOUNTS: List[Dict[str, Any]] = [
    {
        "id": "user1",
        "username": "moi",
        "password": "password123",
        "name": "Moi",
        "email": "moi@example.com",
        "color": "#3498db",
        "is_admin": False,
    },
    {
        "id": "admin1",
        "username": "admin",
        "password": "admin123",
        "name": "Admin",
        "email": "admin@example.com",
        "color": "#8e44ad",
        "is_admin": True,
    },
]

DUPLICATE_IDENTITY_MESSAGE = "This username or email address is already in use"


def random_avatar_color() -> str:
    return f"#{random.randint(0, 0xFFFFFF):06x}"


class IdentityProvider:
    """Answers "who is active" and allows switching."""

    def init(self) -> bool:
        raise NotImplementedError

    def get_current_user(self) -> Optional[Dict[str, Any]]:
        raise NotImplementedError

    def get_current_user_id(self) -> Optional[str]:
        raise NotImplementedError

    def is_logged_in(self) -> bool:
        return self.get_current_user_id() is not None

    def is_current_user_admin(self) -> bool:
        raise NotImplementedError

    def logout(self) -> bool:
        raise NotImplementedError


class AccountIdentityProvider(IdentityProvider):
    """Registered accounts with hashed passwords, stored as one JSON array."""

    def __init__(
        self,
        store: KeyValueStore,
        session: Session | None = None,
        *,
        seed_defaults: bool = True,
        password_iterations: int = 120_000,
    ) -> None:
        self.store = store
        self.session = session if session is not None else Session(store)
        self.seed_defaults = seed_defaults
        self.password_iterations = password_iterations
        self._roster_lock = threading.RLock()

    # -- persistence -------------------------------------------------------

    def _load_accounts(self) -> List[Account]:
        documents = read_json(self.store, USERS_KEY, default=[])
        if not isinstance(documents, list):
            raise StorageError(f"Document under {USERS_KEY!r} is not a list")
        try:
            return [Account.from_dict(doc) for doc in documents]
        except (AttributeError, ValueError, TypeError) as exc:
            raise StorageError(f"Malformed account under {USERS_KEY!r}") from exc

    def _save_accounts(self, accounts: List[Account]) -> None:
        write_json(self.store, USERS_KEY, [account.to_dict() for account in accounts])

    def _storage_failure(self, action: str) -> OperationResult:
        log_event(logger, logging.ERROR, "identity_storage_failed", action=action, exc_info=True)
        return OperationResult.fail(ErrorKind.STORAGE_FAILURE, f"An error occurred during {action}")

    def _seed_accounts(self) -> List[Account]:
        now = utc_now()
        seeded = []
        for raw in DEFAULT_ACCOUNTS:
            payload = {key: value for key, value in raw.items() if key != "password"}
            payload["password_hash"] = hash_password(raw["password"], self.password_iterations)
            payload["created_at"] = now
            seeded.append(Account.from_dict(payload))
        return seeded

    # -- lifecycle ---------------------------------------------------------

    def init(self) -> bool:
        """Seed the default accounts on first run and load the persisted session."""

        try:
            with self._roster_lock:
                if self.seed_defaults and self.store.get(USERS_KEY) is None:
                    self._save_accounts(self._seed_accounts())
                    log_event(logger, logging.INFO, "default_accounts_seeded", count=len(DEFAULT_ACCOUNTS))
            self.session.load()
        except StorageError:
            log_event(logger, logging.ERROR, "identity_init_failed", exc_info=True)
            return False
        return True

    def list_users(self) -> List[Dict[str, Any]]:
        try:
            return [account.public_view() for account in self._load_accounts()]
        except StorageError:
            log_event(logger, logging.ERROR, "identity_storage_failed", action="list_users", exc_info=True)
            return []

    # -- session accessors ---------------------------------------------------

    def get_current_user(self) -> Optional[Dict[str, Any]]:
        return self.session.current_user

    def get_current_user_id(self) -> Optional[str]:
        return self.session.user_id

    def is_current_user_admin(self) -> bool:
        return self.session.is_admin

    def logout(self) -> bool:
        try:
            self.session.clear()
        except StorageError:
            log_event(logger, logging.ERROR, "identity_storage_failed", action="logout", exc_info=True)
            return False
        return True

    # -- account operations --------------------------------------------------

    @staticmethod
    def _collides(account: Account, username: str, email: str) -> bool:
        return account.username.lower() == username.lower() or account.email.lower() == email.lower()

    def register(self, fields: Mapping[str, Any]) -> OperationResult:
        """Create an account; ``conflict`` if the username or email is taken."""

        try:
            form = RegistrationForm.model_validate(dict(fields))
        except ValidationError as exc:
            return validation_failure("Invalid registration details", exc)

        with self._roster_lock:
            try:
                accounts = self._load_accounts()
                if any(self._collides(account, form.username, form.email) for account in accounts):
                    return OperationResult.fail(ErrorKind.CONFLICT, DUPLICATE_IDENTITY_MESSAGE)

                account = Account(
                    id=new_record_id(),
                    username=form.username,
                    email=form.email,
                    name=form.name or form.username,
                    color=form.color or random_avatar_color(),
                    is_admin=False,
                    password_hash=hash_password(form.password, self.password_iterations),
                    created_at=utc_now(),
                )
                accounts.append(account)
                self._save_accounts(accounts)
            except StorageError:
                return self._storage_failure("registration")

        log_event(logger, logging.INFO, "account_registered", account_id=account.id)
        return OperationResult.ok(account.public_view())

    def _check_password(self, account: Account, password: str) -> bool:
        if account.password_hash:
            return verify_password(password, account.password_hash)
        if account.password is not None:
            return hmac.compare_digest(account.password.encode("utf-8"), password.encode("utf-8"))
        return False

    def login(self, username_or_email: str, password: str) -> OperationResult:
        """Start a session for the matching account."""

        with self._roster_lock:
            try:
                accounts = self._load_accounts()
                account = next(
                    (
                        candidate
                        for candidate in accounts
                        if candidate.matches_identifier(username_or_email)
                        and self._check_password(candidate, password)
                    ),
                    None,
                )
                if account is None:
                    return OperationResult.fail(
                        ErrorKind.INVALID_CREDENTIAL, "Incorrect username or password"
                    )
                if account.password is not None:
                    account.password_hash = hash_password(password, self.password_iterations)
                    account.password = None
                    self._save_accounts(accounts)
                    log_event(logger, logging.INFO, "legacy_password_upgraded", account_id=account.id)
                self.session.set(account.public_view())
            except StorageError:
                return self._storage_failure("login")

        return OperationResult.ok(account.public_view())

    def update_profile(self, user_id: str, fields: Mapping[str, Any]) -> OperationResult:
        """Merge profile changes, keeping the admin flag and, unless replaced, the password."""

        try:
            changes = ProfileUpdateForm.model_validate(dict(fields)).changes()
        except ValidationError as exc:
            return validation_failure("Invalid profile details", exc)

        with self._roster_lock:
            try:
                accounts = self._load_accounts()
                index = next((i for i, account in enumerate(accounts) if account.id == user_id), None)
                if index is None:
                    return OperationResult.fail(ErrorKind.NOT_FOUND, "User not found")

                current = accounts[index]
                username = changes.get("username", current.username)
                email = changes.get("email", current.email)
                if any(
                    self._collides(other, username, email)
                    for i, other in enumerate(accounts)
                    if i != index
                ):
                    return OperationResult.fail(ErrorKind.CONFLICT, DUPLICATE_IDENTITY_MESSAGE)

                current.username = username
                current.email = email
                current.name = changes.get("name", current.name)
                current.color = changes.get("color", current.color)
                if "password" in changes:
                    current.password_hash = hash_password(changes["password"], self.password_iterations)
                    current.password = None
                current.updated_at = utc_now()
                self._save_accounts(accounts)

                persisted_session = self.session.refresh()
                if persisted_session and persisted_session.get("id") == user_id:
                    self.session.set(current.public_view())
            except StorageError:
                return self._storage_failure("profile update")

        return OperationResult.ok(current.public_view())


__all__ = [
    "AccountIdentityProvider",
    "DEFAULT_ACCOUNTS",
    "IdentityProvider",
    "USERS_KEY",
    "random_avatar_color",
]
