"""Conversions between backend permission names and structured grants.

Backend permissions are flat strings of the form ``"<module_id>.<action>"``.
These helpers are structural transforms only; they never enforce the view
prerequisite rule.
"""
from __future__ import annotations

from typing import Any, Iterable, Mapping

from ..domain.types import CrudOperation, ModuleMapping, ModulePermissions
from ..schemas.permission import BackendRole

_CRUD_ACTIONS = frozenset(op.value for op in CrudOperation)


def _permission_name(record: Any) -> str:
    if isinstance(record, Mapping):
        return str(record["name"])
    return str(record.name)


def split_permission_name(name: str) -> tuple[str, str]:
    # First separator only: "sales.view.extra" has action "view.extra", which
    # is unknown and grants nothing. Do not switch to split(".").
    module_id, _, action = name.partition(".")
    return module_id, action


def map_api_permissions(permissions: Iterable[Any]) -> ModuleMapping:
    """Group backend permission records by module.

    Args:
        permissions: Records exposing a ``name`` (attribute or mapping key)

    Returns:
        Module id -> grant. Modules appear in first-seen order; unknown
        actions leave the module present with its flags untouched.
    """
    flags: dict[str, dict[str, bool]] = {}
    for record in permissions:
        module_id, action = split_permission_name(_permission_name(record))
        module_flags = flags.setdefault(module_id, {op.value: False for op in CrudOperation})
        if action in _CRUD_ACTIONS:
            module_flags[action] = True
    return {module_id: ModulePermissions(**values) for module_id, values in flags.items()}


def to_permission_names(mapping: Mapping[str, ModulePermissions]) -> list[str]:
    """Inverse of ``map_api_permissions``: one name per granted flag."""
    names: list[str] = []
    for module_id, permissions in mapping.items():
        for op in CrudOperation:
            if permissions.allows(op):
                names.append(f"{module_id}.{op.value}")
    return names


def build_permission_id_map(roles: Iterable[BackendRole]) -> dict[str, int]:
    id_map: dict[str, int] = {}
    for role in roles:
        for permission in role.permissions:
            if permission.id is not None:
                id_map[permission.name] = permission.id
    return id_map


def resolve_permission_ids(names: Iterable[str], id_map: Mapping[str, int]) -> list[int]:
    # Names the backend never issued have no id and cannot be assigned
    return [id_map[name] for name in names if name in id_map]


def state_from_backend_role(role: BackendRole) -> ModuleMapping:
    """Draft mapping for every module listed under the role's categories."""
    assigned = {permission.name for permission in role.permissions}
    state: ModuleMapping = {}
    for permissions in role.permissions_by_category.values():
        for permission in permissions:
            module_id, _ = split_permission_name(permission.name)
            if module_id in state:
                continue
            state[module_id] = ModulePermissions(
                **{op.value: f"{module_id}.{op.value}" in assigned for op in CrudOperation}
            )
    return state


def category_modules_from_roles(roles: Iterable[BackendRole]) -> dict[str, list[str]]:
    """Category -> module ids merged across all roles, de-duplicated, first-seen order."""
    categories: dict[str, list[str]] = {}
    for role in roles:
        for category, permissions in role.permissions_by_category.items():
            modules = categories.setdefault(category, [])
            for permission in permissions:
                module_id, _ = split_permission_name(permission.name)
                if module_id not in modules:
                    modules.append(module_id)
    return categories
