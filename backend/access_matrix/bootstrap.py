"""Wiring of settings, logging, storage and the permission services."""
from __future__ import annotations

import logging

from .auth.catalog import DEFAULT_CATALOG, ModuleCatalog
from .config import Settings, get_settings
from .domain.ports.storage import KeyValueStorage
from .infra.memory import InMemoryKeyValueStorage
from .infra.redis import RedisKeyValueStorage
from .services.authorization import AuthorizationQueries
from .services.permission_store import PermissionStore

logger = logging.getLogger("access_matrix")


def _resolve_log_level(value: str) -> int:
    level = logging.getLevelName(value.upper())
    return level if isinstance(level, int) else logging.INFO


def configure_logging(settings: Settings | None = None) -> int:
    settings = settings or get_settings()
    log_level = _resolve_log_level(settings.log_level)
    if not logging.getLogger().handlers:
        logging.basicConfig(
            level=log_level,
            format="%(asctime)s %(levelname)s %(name)s %(message)s",
        )
    logger.setLevel(log_level)
    if settings.debug:
        logger.warning("DEBUG=true; do not use in production")
    return log_level


def build_storage(settings: Settings | None = None) -> KeyValueStorage:
    settings = settings or get_settings()
    if settings.storage_backend == "redis":
        logger.info("Using Redis permission storage")
        return RedisKeyValueStorage.from_url(settings.redis_url)
    logger.info("Using in-memory permission storage")
    return InMemoryKeyValueStorage()


def build_store(
    settings: Settings | None = None,
    *,
    storage: KeyValueStorage | None = None,
    catalog: ModuleCatalog = DEFAULT_CATALOG,
) -> PermissionStore:
    settings = settings or get_settings()
    if storage is None:
        storage = build_storage(settings)
    return PermissionStore(
        storage,
        catalog,
        enforce_invariants=settings.enforce_invariants_on_write,
        key_prefix=settings.storage_key_prefix,
    )


def build_queries(
    store: PermissionStore,
    settings: Settings | None = None,
) -> AuthorizationQueries:
    settings = settings or get_settings()
    return AuthorizationQueries(
        store,
        store.catalog,
        allow_unmapped_paths=settings.allow_unmapped_paths,
    )
