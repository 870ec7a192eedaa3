"""
Module catalog - every functional area the application exposes.

Each module has a stable id (also the prefix of backend permission names,
e.g. "sales.view"), a display label, the route it lives under and the
category the role editor groups it by.

The catalog is built once at import and never mutated. Default role
matrices derived from it are seed values only: the permission store uses
them when nothing has been persisted yet or the persisted matrix is
unreadable.
"""
from __future__ import annotations

from typing import Final, Iterable, Iterator

from ..domain.invariants import validate_role_mapping
from ..domain.types import Module, ModuleMapping, ModulePermissions, Role, RolePermissions
from ..errors import CatalogError


# ============================================================================
# MODULES - DECLARED ORDER IS NAVIGATION ORDER
# ============================================================================

ALL_MODULES: Final[tuple[Module, ...]] = (
    Module(id="dashboard", label="Dashboard", path="/", category="Main"),
    Module(id="accounts", label="Chart of Accounts", path="/accounts", category="Finance"),
    Module(id="contact_receivable", label="Receivable", path="/contact/receivable", category="Contact"),
    Module(id="contact_vendors", label="Vendors", path="/contact/vendors", category="Contact"),
    Module(id="contact_others", label="Others", path="/contact/others", category="Contact"),
    Module(id="inventory_overview", label="Inventory Overview", path="/inventory", category="Inventory"),
    Module(id="inventory_raw", label="Raw Inventory", path="/inventory/raw", category="Inventory"),
    Module(id="inventory_design", label="Design Inventory", path="/inventory/design", category="Inventory"),
    Module(id="inventory_katae", label="Katae Product", path="/inventory/katae", category="Inventory"),
    Module(id="inventory_finished", label="Finished Product", path="/inventory/finished", category="Inventory"),
    Module(id="setup_units", label="Units", path="/setup/units", category="Setup"),
    Module(id="setup_machines", label="Machines", path="/setup/machines", category="Setup"),
    Module(id="setup_expense", label="Expense Categories", path="/setup/expense-categories", category="Setup"),
    Module(id="purchase", label="Purchase", path="/purchase", category="Operations"),
    Module(id="purchase_return", label="Purchase Return", path="/purchase-return", category="Operations"),
    Module(id="sales", label="Sales", path="/sales", category="Operations"),
    Module(id="katae_issued", label="Issued Katae", path="/katae/issued", category="Katae"),
    Module(id="katae_receive", label="Katae Receive", path="/katae/receive", category="Katae"),
    Module(id="karahi_list", label="Karahi List", path="/karahi/list", category="Karahi"),
    Module(id="karahi_issue_material", label="Karahi Issue Material", path="/karahi/issue-material", category="Karahi"),
    Module(id="karahi_ledger", label="Karahi Ledger", path="/karahi/ledger", category="Karahi"),
    Module(id="karahi_material_opening", label="Karahi Material Opening", path="/karahi/material-opening", category="Karahi"),
    Module(id="report_purchase", label="Purchase Report", path="/reports/purchase", category="Reports"),
    Module(id="report_payment", label="Payment Report", path="/reports/payment", category="Reports"),
    Module(id="report_katae_issue", label="Katae Issue Report", path="/reports/katae/issue", category="Reports"),
    Module(id="report_katae_receive", label="Katae Receive Report", path="/reports/katae/receive", category="Reports"),
    Module(id="settings", label="Settings", path="/settings", category="Admin"),
    Module(id="role_management", label="Role Management", path="/settings/roles", category="Admin"),
    Module(id="security", label="Security", path="/settings/security", category="Admin"),
)

SETUP_CATEGORY: Final[str] = "Setup"
ADMIN_CATEGORY: Final[str] = "Admin"

# Categories where a plain user only reads
READ_ONLY_USER_CATEGORIES: Final[frozenset[str]] = frozenset({"Finance", "Reports"})

# Modules with no create/update/delete semantics for plain users
VIEW_ONLY_USER_MODULES: Final[frozenset[str]] = frozenset({"dashboard"})

# Admin-category modules a manager may still open
MANAGER_VIEWABLE_ADMIN_MODULES: Final[frozenset[str]] = frozenset({"settings"})

ROLE_DISPLAY_LABELS: Final[dict[Role, str]] = {
    Role.ADMIN: "Admin",
    Role.MANAGER: "Manager",
    Role.USER: "User",
}


class ModuleCatalog:
    """Ordered, read-only registry of modules with id and path lookups."""

    def __init__(self, modules: Iterable[Module]):
        self._modules: tuple[Module, ...] = tuple(modules)
        self._by_id: dict[str, Module] = {}
        self._by_path: dict[str, Module] = {}
        for module in self._modules:
            if module.id in self._by_id:
                raise CatalogError(
                    f"Duplicate module id '{module.id}'",
                    details={"module_id": module.id},
                )
            if module.path in self._by_path:
                raise CatalogError(
                    f"Duplicate module path '{module.path}' "
                    f"(used by '{self._by_path[module.path].id}' and '{module.id}')",
                    details={"path": module.path},
                )
            self._by_id[module.id] = module
            self._by_path[module.path] = module

    def __iter__(self) -> Iterator[Module]:
        return iter(self._modules)

    def __len__(self) -> int:
        return len(self._modules)

    def __contains__(self, module_id: object) -> bool:
        return module_id in self._by_id

    @property
    def modules(self) -> tuple[Module, ...]:
        return self._modules

    def get(self, module_id: str) -> Module | None:
        return self._by_id.get(module_id)

    def find_by_path(self, path: str) -> Module | None:
        return self._by_path.get(path)

    def categories(self) -> dict[str, list[str]]:
        """Category -> module ids, both in first-appearance order."""
        grouped: dict[str, list[str]] = {}
        for module in self._modules:
            grouped.setdefault(module.category, []).append(module.id)
        return grouped

    def modules_in_category(self, category: str) -> list[str]:
        return [module.id for module in self._modules if module.category == category]


DEFAULT_CATALOG: Final[ModuleCatalog] = ModuleCatalog(ALL_MODULES)


# ============================================================================
# DEFAULT ROLE MATRICES (for seeding only)
# ============================================================================

def _admin_defaults(catalog: ModuleCatalog) -> ModuleMapping:
    return {module.id: ModulePermissions.full() for module in catalog}


def _manager_defaults(catalog: ModuleCatalog) -> ModuleMapping:
    mapping: ModuleMapping = {}
    for module in catalog:
        if module.category == ADMIN_CATEGORY:
            if module.id in MANAGER_VIEWABLE_ADMIN_MODULES:
                mapping[module.id] = ModulePermissions.view_only()
            else:
                mapping[module.id] = ModulePermissions.none()
        elif module.category == SETUP_CATEGORY:
            # Setup records are shared master data: no deletes
            mapping[module.id] = ModulePermissions(view=True, create=True, update=True)
        else:
            mapping[module.id] = ModulePermissions.full()
    return mapping


def _user_defaults(catalog: ModuleCatalog) -> ModuleMapping:
    mapping: ModuleMapping = {}
    for module in catalog:
        if module.category in (ADMIN_CATEGORY, SETUP_CATEGORY):
            mapping[module.id] = ModulePermissions.none()
        elif module.category in READ_ONLY_USER_CATEGORIES or module.id in VIEW_ONLY_USER_MODULES:
            mapping[module.id] = ModulePermissions.view_only()
        else:
            mapping[module.id] = ModulePermissions(view=True, create=True)
    return mapping


def default_role_permissions(catalog: ModuleCatalog = DEFAULT_CATALOG) -> RolePermissions:
    """Build a fresh copy of the seed matrix for every role."""
    return {
        Role.ADMIN: _admin_defaults(catalog),
        Role.MANAGER: _manager_defaults(catalog),
        Role.USER: _user_defaults(catalog),
    }


def humanize_module_id(module_id: str) -> str:
    """Label for modules that only come from backend data: "karahi_ledger" -> "Karahi Ledger"."""
    return " ".join(word[:1].upper() + word[1:] for word in module_id.split("_") if word)


def _validate_defaults() -> None:
    """Validate the seed matrix at module import time (fail-fast)."""
    for role, mapping in default_role_permissions().items():
        validate_role_mapping(mapping, role=role)


_validate_defaults()
