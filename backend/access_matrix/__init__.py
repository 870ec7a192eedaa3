from .auth.catalog import ALL_MODULES, DEFAULT_CATALOG, ModuleCatalog, default_role_permissions
from .domain.types import CrudOperation, Module, ModulePermissions, Role
from .services.authorization import AuthorizationQueries
from .services.bulk_edit import BulkEditEngine
from .services.permission_mapper import map_api_permissions
from .services.permission_store import PermissionStore

__all__ = [
    "ALL_MODULES",
    "DEFAULT_CATALOG",
    "AuthorizationQueries",
    "BulkEditEngine",
    "CrudOperation",
    "Module",
    "ModuleCatalog",
    "ModulePermissions",
    "PermissionStore",
    "Role",
    "default_role_permissions",
    "map_api_permissions",
]
