"""
Interactive editing of one role's permission row.

Edits are expressed as actions and applied by ``reduce_draft``, a pure
function from (draft, action) to a new draft. Every transition re-applies
the view prerequisite rule, so a draft that starts consistent stays
consistent:

- ToggleCell flips one flag, then cascades (view off clears the rest,
  anything else on grants view).
- ToggleCategory is a bulk toggle: when every module of the category
  already has the operation it turns it off, otherwise it turns it on.
- ToggleModule selects or clears all four flags of one module.

``BulkEditEngine`` wraps the reducer with a draft, a dirty flag and the
commit/discard lifecycle against the permission store.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Mapping, Union

from ..auth.catalog import DEFAULT_CATALOG, ModuleCatalog
from ..domain.invariants import cascade
from ..domain.types import CrudOperation, ModuleMapping, ModulePermissions, Role
from .permission_mapper import to_permission_names
from .permission_store import PermissionStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ToggleCell:
    module_id: str
    operation: CrudOperation


@dataclass(frozen=True)
class ToggleCategory:
    category: str
    operation: CrudOperation


@dataclass(frozen=True)
class ToggleModule:
    module_id: str


Action = Union[ToggleCell, ToggleCategory, ToggleModule]


def _current(draft: Mapping[str, ModulePermissions], module_id: str) -> ModulePermissions:
    return draft.get(module_id) or ModulePermissions.none()


def _toggle_cell(draft: Mapping[str, ModulePermissions], action: ToggleCell) -> ModuleMapping:
    operation = CrudOperation(action.operation)
    current = _current(draft, action.module_id)
    flipped = current.with_flag(operation, not current.allows(operation))
    updated = dict(draft)
    updated[action.module_id] = cascade(flipped, operation)
    return updated


def _toggle_category(
    draft: Mapping[str, ModulePermissions],
    action: ToggleCategory,
    category_modules: Mapping[str, list[str]],
) -> ModuleMapping:
    operation = CrudOperation(action.operation)
    modules = category_modules.get(action.category, [])
    if not modules:
        return dict(draft)

    all_enabled = all(_current(draft, module_id).allows(operation) for module_id in modules)
    updated = dict(draft)
    for module_id in modules:
        current = _current(draft, module_id)
        if operation is CrudOperation.VIEW:
            updated[module_id] = (
                ModulePermissions.none() if all_enabled else current.with_flag(CrudOperation.VIEW, True)
            )
        elif all_enabled:
            updated[module_id] = current.with_flag(operation, False)
        else:
            updated[module_id] = current.model_copy(update={operation.value: True, "view": True})
    return updated


def _toggle_module(draft: Mapping[str, ModulePermissions], action: ToggleModule) -> ModuleMapping:
    current = _current(draft, action.module_id)
    updated = dict(draft)
    updated[action.module_id] = (
        ModulePermissions.none() if current.all_enabled() else ModulePermissions.full()
    )
    return updated


def reduce_draft(
    draft: Mapping[str, ModulePermissions],
    action: Action,
    category_modules: Mapping[str, list[str]],
) -> ModuleMapping:
    """Apply ``action`` to ``draft`` and return the new draft. ``draft`` is left untouched."""
    if isinstance(action, ToggleCell):
        return _toggle_cell(draft, action)
    if isinstance(action, ToggleCategory):
        return _toggle_category(draft, action, category_modules)
    if isinstance(action, ToggleModule):
        return _toggle_module(draft, action)
    raise TypeError(f"Unsupported draft action: {action!r}")


class BulkEditEngine:
    """Editing session over a draft copy of one role's permissions."""

    def __init__(
        self,
        store: PermissionStore,
        role: Role | str,
        catalog: ModuleCatalog = DEFAULT_CATALOG,
        *,
        category_modules: Mapping[str, list[str]] | None = None,
    ) -> None:
        self._store = store
        self._role = Role(role)
        if category_modules is None:
            self._category_modules = catalog.categories()
        else:
            self._category_modules = {cat: list(ids) for cat, ids in category_modules.items()}
        self._draft: ModuleMapping = store.get_role_permissions(self._role)
        self._dirty = False

    @property
    def role(self) -> Role:
        return self._role

    @property
    def draft(self) -> ModuleMapping:
        return dict(self._draft)

    @property
    def dirty(self) -> bool:
        return self._dirty

    @property
    def categories(self) -> dict[str, list[str]]:
        return {cat: list(ids) for cat, ids in self._category_modules.items()}

    def dispatch(self, action: Action) -> ModuleMapping:
        updated = reduce_draft(self._draft, action, self._category_modules)
        if updated != self._draft:
            self._dirty = True
        self._draft = updated
        return self.draft

    def toggle_permission(self, module_id: str, operation: CrudOperation | str) -> ModuleMapping:
        return self.dispatch(ToggleCell(module_id, CrudOperation(operation)))

    def toggle_all_in_category(self, category: str, operation: CrudOperation | str) -> ModuleMapping:
        return self.dispatch(ToggleCategory(category, CrudOperation(operation)))

    def select_all_for_module(self, module_id: str) -> ModuleMapping:
        return self.dispatch(ToggleModule(module_id))

    def permission_names(self) -> list[str]:
        return to_permission_names(self._draft)

    def commit(self) -> None:
        # Store errors propagate and leave the draft dirty
        self._store.update_role_permissions(self._role, self._draft)
        self._dirty = False
        logger.info("draft_committed role=%s modules=%d", self._role.value, len(self._draft))

    def discard(self) -> None:
        self._draft = self._store.get_role_permissions(self._role)
        self._dirty = False
        logger.debug("draft_discarded role=%s", self._role.value)

    def switch_role(self, role: Role | str) -> None:
        """Start editing another role; unsaved changes are dropped."""
        if self._dirty:
            logger.info("draft_dropped role=%s reason=switch_role", self._role.value)
        self._role = Role(role)
        self.discard()
