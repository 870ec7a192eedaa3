from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Literal

from ..auth.catalog import DEFAULT_CATALOG, ModuleCatalog
from ..domain.types import CrudOperation, ModulePermissions
from .permission_store import PermissionStore

logger = logging.getLogger(__name__)

Fallback = Literal["redirect", "message", "hide"]

HOME_PATH = "/"


@dataclass(frozen=True)
class PermissionCheck:
    can_view: bool
    can_create: bool
    can_update: bool
    can_delete: bool


@dataclass(frozen=True)
class GuardDecision:
    allowed: bool
    fallback: Fallback = "message"
    redirect_to: str | None = None


class AuthorizationQueries:
    """Read-only authorization answers for the store's active role.

    Nothing is cached: every call reads the store as it is now, so role
    switches and committed edits are visible immediately.
    """

    def __init__(
        self,
        store: PermissionStore,
        catalog: ModuleCatalog = DEFAULT_CATALOG,
        *,
        allow_unmapped_paths: bool = True,
    ) -> None:
        self._store = store
        self._catalog = catalog
        self._allow_unmapped_paths = allow_unmapped_paths

    def get_module_permissions(self, module_id: str) -> ModulePermissions:
        return self._store.get_module_permissions(self._store.active_role, module_id)

    def has_permission(self, module_id: str, operation: CrudOperation | str = CrudOperation.VIEW) -> bool:
        return self.get_module_permissions(module_id).allows(operation)

    def unmapped_path_allowed(self, path: str) -> bool:
        """Policy for routes no catalog module claims.

        Allowed by default, which keeps public routes reachable but also
        lets through any route someone forgot to register. Flip with
        ``ALLOW_UNMAPPED_PATHS=false``.
        """
        logger.debug("unmapped_path path=%s allowed=%s", path, self._allow_unmapped_paths)
        return self._allow_unmapped_paths

    def can_access_path(self, path: str) -> bool:
        module = self._catalog.find_by_path(path)
        if module is None:
            return self.unmapped_path_allowed(path)
        return self.has_permission(module.id, CrudOperation.VIEW)

    def get_allowed_paths(self) -> list[str]:
        return [
            module.path
            for module in self._catalog
            if self.has_permission(module.id, CrudOperation.VIEW)
        ]

    def permission_check(self, module_id: str) -> PermissionCheck:
        permissions = self.get_module_permissions(module_id)
        return PermissionCheck(
            can_view=permissions.view,
            can_create=permissions.create,
            can_update=permissions.update,
            can_delete=permissions.delete,
        )

    def check_access(
        self,
        *,
        permission_id: str | None = None,
        operation: CrudOperation | str = CrudOperation.VIEW,
        path: str | None = None,
    ) -> bool:
        """An explicit module permission wins; otherwise the current path decides."""
        if permission_id:
            return self.has_permission(permission_id, operation)
        if path is None:
            raise ValueError("check_access needs a permission_id or a path")
        return self.can_access_path(path)

    def guard(
        self,
        *,
        permission_id: str | None = None,
        operation: CrudOperation | str = CrudOperation.VIEW,
        path: str | None = None,
        fallback: Fallback = "message",
    ) -> GuardDecision:
        allowed = self.check_access(permission_id=permission_id, operation=operation, path=path)
        if allowed:
            return GuardDecision(allowed=True, fallback=fallback)
        return GuardDecision(
            allowed=False,
            fallback=fallback,
            redirect_to=HOME_PATH if fallback == "redirect" else None,
        )
