from __future__ import annotations

from enum import Enum
from typing import Dict, Final

from pydantic import BaseModel, ConfigDict, Field


class Role(str, Enum):
    """Role a session acts under; indexes the permission matrix."""

    ADMIN = "admin"
    MANAGER = "manager"
    USER = "user"


class CrudOperation(str, Enum):
    VIEW = "view"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


# Operations gated behind view
DEPENDENT_OPERATIONS: Final[tuple[CrudOperation, ...]] = (
    CrudOperation.CREATE,
    CrudOperation.UPDATE,
    CrudOperation.DELETE,
)

DEFAULT_CATEGORY: Final[str] = "Other"


class Module(BaseModel):
    id: str = Field(..., min_length=1)
    label: str
    path: str
    category: str = DEFAULT_CATEGORY

    model_config = ConfigDict(frozen=True)


class ModulePermissions(BaseModel):
    """Grant of the four CRUD operations for one (role, module) pair."""

    view: bool = False
    create: bool = False
    update: bool = False
    delete: bool = False

    model_config = ConfigDict(frozen=True)

    @classmethod
    def none(cls) -> "ModulePermissions":
        return cls()

    @classmethod
    def full(cls) -> "ModulePermissions":
        return cls(view=True, create=True, update=True, delete=True)

    @classmethod
    def view_only(cls) -> "ModulePermissions":
        return cls(view=True)

    def allows(self, operation: CrudOperation | str) -> bool:
        return bool(getattr(self, CrudOperation(operation).value))

    def with_flag(self, operation: CrudOperation | str, value: bool) -> "ModulePermissions":
        return self.model_copy(update={CrudOperation(operation).value: value})

    def all_enabled(self) -> bool:
        return self.view and self.create and self.update and self.delete


ModuleMapping = Dict[str, ModulePermissions]
RolePermissions = Dict[Role, ModuleMapping]
