"""Authoritative role -> module -> grant matrix with write-through persistence.

The store is an explicit object handed to every consumer; there is no
ambient lookup. It reads its state from the injected key-value storage once,
on construction, and writes it back synchronously on every mutation.
"""
from __future__ import annotations

import json
import logging
from typing import Final, Mapping

from pydantic import TypeAdapter, ValidationError

from ..auth.catalog import DEFAULT_CATALOG, ModuleCatalog, default_role_permissions
from ..domain.invariants import validate_role_mapping
from ..domain.ports.storage import KeyValueStorage
from ..domain.types import ModuleMapping, ModulePermissions, Role, RolePermissions
from ..errors import StorageError

logger = logging.getLogger(__name__)

ROLE_PERMISSIONS_KEY: Final[str] = "role_permissions_v2"
ACTIVE_ROLE_KEY: Final[str] = "user_role"

DEFAULT_ACTIVE_ROLE: Final[Role] = Role.ADMIN

# Session labels from the authentication layer; case-sensitive
SESSION_ROLE_LABELS: Final[dict[str, Role]] = {
    "Administrator": Role.ADMIN,
    "Manager": Role.MANAGER,
    "User": Role.USER,
}

_MATRIX_ADAPTER: Final[TypeAdapter[RolePermissions]] = TypeAdapter(RolePermissions)


def role_from_label(label: str | None) -> Role:
    if not label:
        return Role.USER
    return SESSION_ROLE_LABELS.get(label, Role.USER)


def _copy_matrix(matrix: Mapping[Role, ModuleMapping]) -> RolePermissions:
    # Grants are frozen; copying the dict levels is enough
    return {role: dict(mapping) for role, mapping in matrix.items()}


class PermissionStore:
    """Owns the active role and the full permission matrix.

    Args:
        storage: Key-value port used for loading and write-through
        catalog: Module catalog supplying the default matrix
        enforce_invariants: Validate every written mapping against the view
            prerequisite rule. Off by default: the bulk editor only produces
            consistent mappings and the store trusts its callers.
        key_prefix: Namespace prepended to both storage keys
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        catalog: ModuleCatalog = DEFAULT_CATALOG,
        *,
        enforce_invariants: bool = False,
        key_prefix: str = "",
    ) -> None:
        self._storage = storage
        self._catalog = catalog
        self._enforce_invariants = enforce_invariants
        self._matrix_key = f"{key_prefix}{ROLE_PERMISSIONS_KEY}"
        self._role_key = f"{key_prefix}{ACTIVE_ROLE_KEY}"
        self._active_role = self._load_active_role()
        self._matrix = self._load_matrix()

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def _read(self, key: str) -> str | None:
        try:
            return self._storage.get(key)
        except StorageError as exc:
            logger.warning("permission_store_read_failed key=%s error=%s", key, exc)
            return None

    def _load_active_role(self) -> Role:
        raw = self._read(self._role_key)
        if raw is None:
            return DEFAULT_ACTIVE_ROLE
        try:
            return Role(raw)
        except ValueError:
            logger.warning(
                "permission_store_invalid_role key=%s value=%r fallback=%s",
                self._role_key,
                raw,
                DEFAULT_ACTIVE_ROLE.value,
            )
            return DEFAULT_ACTIVE_ROLE

    def _load_matrix(self) -> RolePermissions:
        raw = self._read(self._matrix_key)
        if raw is None:
            logger.info("permission_store_defaults key=%s reason=missing", self._matrix_key)
            return default_role_permissions(self._catalog)
        try:
            # Strict: "yes" or 1 for a flag is malformed data, not a grant
            return _MATRIX_ADAPTER.validate_json(raw, strict=True)
        except ValidationError as exc:
            logger.warning(
                "permission_store_defaults key=%s reason=malformed errors=%d",
                self._matrix_key,
                exc.error_count(),
            )
            return default_role_permissions(self._catalog)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _dump_matrix(self, matrix: RolePermissions) -> str:
        return _MATRIX_ADAPTER.dump_json(matrix).decode("utf-8")

    def _prepare_mapping(self, role: Role, mapping: Mapping[str, ModulePermissions]) -> ModuleMapping:
        """Single choke point for every mapping written into the matrix."""
        prepared = dict(mapping)
        if self._enforce_invariants:
            validate_role_mapping(prepared, role=role)
        return prepared

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def active_role(self) -> Role:
        return self._active_role

    @property
    def catalog(self) -> ModuleCatalog:
        return self._catalog

    @property
    def matrix(self) -> RolePermissions:
        return _copy_matrix(self._matrix)

    def get_module_permissions(self, role: Role | str, module_id: str) -> ModulePermissions:
        permissions = self._matrix.get(Role(role), {}).get(module_id)
        if permissions is None:
            return ModulePermissions.none()
        return permissions

    def get_role_permissions(self, role: Role | str) -> ModuleMapping:
        return dict(self._matrix.get(Role(role), {}))

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def set_active_role(self, role: Role | str) -> None:
        role = Role(role)
        self._storage.set(self._role_key, role.value)
        previous = self._active_role
        self._active_role = role
        logger.info("active_role_changed previous=%s role=%s", previous.value, role.value)

    def update_role_permissions(self, role: Role | str, new_mapping: Mapping[str, ModulePermissions]) -> None:
        """Replace the whole mapping of ``role``; no field-level merge."""
        role = Role(role)
        prepared = self._prepare_mapping(role, new_mapping)
        matrix = _copy_matrix(self._matrix)
        matrix[role] = prepared
        self._storage.set(self._matrix_key, self._dump_matrix(matrix))
        self._matrix = matrix
        logger.info("role_permissions_updated role=%s modules=%d", role.value, len(prepared))

    def reset_to_defaults(self) -> None:
        matrix = default_role_permissions(self._catalog)
        self._storage.set(self._matrix_key, self._dump_matrix(matrix))
        self._matrix = matrix
        logger.info("role_permissions_reset roles=%d", len(matrix))

    def sync_role_label(self, label: str | None) -> Role:
        """Adopt the role declared by the authenticated session."""
        role = role_from_label(label)
        if label and label not in SESSION_ROLE_LABELS:
            logger.warning("unknown_session_role label=%r fallback=%s", label, role.value)
        self.set_active_role(role)
        return role


def dumps_matrix(matrix: RolePermissions) -> str:
    """Human-readable JSON of a matrix, as stored under ``role_permissions_v2``."""
    return json.dumps(_MATRIX_ADAPTER.dump_python(matrix, mode="json"), indent=2)
