import os
import threading
from typing import Literal
from urllib.parse import urlparse

from dotenv import load_dotenv
from pydantic import BaseModel, Field


load_dotenv()

StorageBackend = Literal["memory", "redis"]

_TRUE_WORDS = {"1", "true", "yes", "on"}
_FALSE_WORDS = {"0", "false", "no", "off"}


def _parse_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name, str(default)).strip().lower()
    if raw in _TRUE_WORDS:
        return True
    if raw in _FALSE_WORDS:
        return False
    raise ValueError(f"{name} must be a boolean value")


class Settings(BaseModel):
    app_name: str = Field(default="Access Matrix")
    debug: bool = Field(default=False)
    log_level: str = Field(default="INFO")
    storage_backend: StorageBackend = Field(default="memory")
    redis_url: str = Field(default="redis://localhost:6379/0")
    storage_key_prefix: str = Field(default="")
    enforce_invariants_on_write: bool = Field(default=False)
    allow_unmapped_paths: bool = Field(default=True)

    @classmethod
    def from_env(cls) -> "Settings":
        storage_backend = os.getenv(
            "STORAGE_BACKEND", cls.model_fields["storage_backend"].default
        ).strip().lower()
        if storage_backend not in {"memory", "redis"}:
            raise ValueError("STORAGE_BACKEND must be 'memory' or 'redis'")

        redis_url = os.getenv("REDIS_URL", cls.model_fields["redis_url"].default).strip()
        if storage_backend == "redis":
            parsed = urlparse(redis_url)
            if parsed.scheme not in {"redis", "rediss"}:
                raise ValueError("REDIS_URL must start with 'redis://' or 'rediss://'")
            if not parsed.hostname:
                raise ValueError("REDIS_URL must include hostname")

        return cls(
            app_name=os.getenv("APP_NAME", cls.model_fields["app_name"].default),
            debug=os.getenv("DEBUG", "false").lower() == "true",
            log_level=os.getenv("LOG_LEVEL", cls.model_fields["log_level"].default).strip().upper(),
            storage_backend=storage_backend,
            redis_url=redis_url,
            storage_key_prefix=os.getenv(
                "STORAGE_KEY_PREFIX", cls.model_fields["storage_key_prefix"].default
            ),
            enforce_invariants_on_write=_parse_bool(
                "ENFORCE_INVARIANTS_ON_WRITE",
                cls.model_fields["enforce_invariants_on_write"].default,
            ),
            allow_unmapped_paths=_parse_bool(
                "ALLOW_UNMAPPED_PATHS",
                cls.model_fields["allow_unmapped_paths"].default,
            ),
        )


_settings_instance: Settings | None = None
_settings_lock = threading.Lock()


def get_settings() -> Settings:
    """Get settings instance, creating it on first access.

    Importing this module never validates the environment; validation
    happens on first access.

    Raises:
        ValueError: If environment variables are invalid
    """
    global _settings_instance

    if _settings_instance is not None:
        return _settings_instance

    with _settings_lock:
        if _settings_instance is None:
            _settings_instance = Settings.from_env()

    return _settings_instance


def _reset_for_testing() -> None:
    global _settings_instance
    with _settings_lock:
        _settings_instance = None

