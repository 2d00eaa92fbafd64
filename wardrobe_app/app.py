"""Wardrobe Keeper app bootstrap."""

import logging

from wardrobe_app.config import AppConfig
from wardrobe_app.logging_config import configure_logging, get_logger, log_event
from logic.locking import UserLockRegistry
from memory.identity_provider import AccountIdentityProvider
from memory.session import Session
from tools.kv_store import KeyValueStore, build_store
from tools.wardrobe_tools import WardrobeTools


LOGGER = get_logger(__name__)


class WardrobeApp:
    """Wires together the store, session, identity provider and wardrobe tools."""

    def __init__(self, config: AppConfig | None = None, store: KeyValueStore | None = None) -> None:
        self.config = config or AppConfig.from_env()
        configure_logging(self.config.log_level)

        self.store = store or build_store(self.config.storage_backend, self.config.storage_path)
        self.locks = UserLockRegistry()
        self.session = Session(self.store)
        self.identity = AccountIdentityProvider(
            self.store,
            self.session,
            seed_defaults=self.config.seed_default_accounts,
            password_iterations=self.config.password_iterations,
        )
        self.wardrobe = WardrobeTools(
            self.store,
            identity=self.identity,
            locks=self.locks,
            default_user_id=self.config.default_user_id,
        )
        self.ready = False

    def start(self) -> bool:
        """Run the one-off startup step: seed accounts and load the saved session."""

        self.ready = self.identity.init()
        log_event(
            LOGGER,
            logging.INFO,
            "app_started",
            storage_backend=self.config.storage_backend,
            environment=self.config.environment or "local",
            logged_in=self.identity.is_logged_in(),
            ready=self.ready,
        )
        return self.ready

    def status(self) -> dict:
        user = self.identity.get_current_user()
        return {
            "status": "ok" if self.ready else "degraded",
            "environment": self.config.environment or "local",
            "storage_backend": self.config.storage_backend,
            "current_user": user["id"] if user else None,
        }


__all__ = ["WardrobeApp"]
