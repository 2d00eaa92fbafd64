"""Configuration helpers for the Wardrobe Keeper app."""

from dataclasses import dataclass
from pathlib import Path
import os
from typing import Optional

DEFAULT_USER_ID = "default-user"
DEFAULT_PASSWORD_ITERATIONS = 120_000
STORAGE_BACKENDS = ("json", "sqlite", "memory")


def _as_bool(value: object, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in {"1", "true", "yes", "on"}


@dataclass
class AppConfig:
    """Configuration values for the wardrobe backend.

    Everything has a local default so the app boots without any environment
    set up; a deployment overrides the storage location and backend.
    """

    storage_backend: str = "json"
    storage_path: Optional[str] = None
    default_user_id: str = DEFAULT_USER_ID
    seed_default_accounts: bool = True
    password_iterations: int = DEFAULT_PASSWORD_ITERATIONS
    log_level: Optional[str] = None
    environment: str | None = None

    def __post_init__(self) -> None:
        backend = (self.storage_backend or "json").strip().lower()
        if backend not in STORAGE_BACKENDS:
            raise ValueError(f"Unsupported storage backend {self.storage_backend!r}")
        self.storage_backend = backend
        if self.password_iterations < 1:
            raise ValueError("password_iterations must be positive")

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Build a config from environment variables or an environment YAML file.

        Environment specific YAML lives in ``config/environments/<env>.yaml`` by
        default and is merged with environment variables, which always win.
        """

        env_name = os.getenv("APP_ENV")
        config_path = os.getenv("APP_CONFIG_PATH")
        config_dir = Path(os.getenv("WARDROBE_CONFIG_DIR", "config/environments"))
        yaml_config: dict = {}

        if config_path:
            path = Path(config_path)
        elif env_name:
            path = config_dir / f"{env_name}.yaml"
        else:
            path = None

        if path and path.exists():
            yaml_config = cls._load_yaml_config(path)

        def get_value(key: str, default: Optional[str] = None) -> Optional[str]:
            env_key = key.upper()
            return os.getenv(env_key, yaml_config.get(key, default))

        storage_backend = get_value("storage_backend", "json")
        storage_path = get_value("storage_path")
        default_user_id = get_value("default_user_id", DEFAULT_USER_ID)
        seed_default_accounts = get_value("seed_default_accounts")
        password_iterations = get_value("password_iterations")
        log_level = get_value("log_level")

        return cls(
            storage_backend=str(storage_backend or "json"),
            storage_path=storage_path,
            default_user_id=str(default_user_id or DEFAULT_USER_ID),
            seed_default_accounts=_as_bool(seed_default_accounts, True),
            password_iterations=int(password_iterations or DEFAULT_PASSWORD_ITERATIONS),
            log_level=log_level,
            environment=env_name,
        )

    @staticmethod
    def _load_yaml_config(path: Path) -> dict:
        """Parse flat ``key: value`` lines; nesting and lists are not supported."""

        config: dict[str, str] = {}
        for line in path.read_text().splitlines():
            stripped = line.strip()
            if not stripped or stripped.startswith("#"):
                continue
            if ":" not in stripped:
                continue
            key, raw_value = stripped.split(":", 1)
            value = raw_value.strip()
            if (value.startswith("\"") and value.endswith("\"")) or (
                value.startswith("'") and value.endswith("'")
            ):
                value = value[1:-1]
            config[key.strip()] = value
        return config
