"""
Domain invariants for permission grants.

View is the prerequisite gate for every other operation on a module:
- if any of create/update/delete is granted, view must be granted;
- if view is not granted, create/update/delete must not be granted.

Both statements describe the same constraint. The bulk editor keeps drafts
consistent by cascading on every edit; the checks here are the validation
side of that rule, used by the store's write path when hardening is enabled
and by the default matrix at import time.
"""

import logging
from typing import Any, Mapping

from .types import DEPENDENT_OPERATIONS, CrudOperation, ModulePermissions

logger = logging.getLogger(__name__)

VIEW_PREREQUISITE = "view_prerequisite"


class InvariantViolation(Exception):
    """
    Raised when a grant breaks the view prerequisite rule.

    Carries the invariant name and the offending context.
    """

    def __init__(self, message: str, *, invariant: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.invariant = invariant
        self.details = details or {}

        logger.error(
            "invariant_violation invariant=%s message=%s details=%s",
            invariant,
            message,
            details,
        )


def is_consistent(permissions: ModulePermissions) -> bool:
    if permissions.view:
        return True
    return not any(permissions.allows(op) for op in DEPENDENT_OPERATIONS)


def validate_module_permissions(module_id: str, permissions: ModulePermissions) -> None:
    """
    Validate a single module grant.

    Args:
        module_id: Module the grant belongs to (for the error context)
        permissions: Grant to check

    Raises:
        InvariantViolation: If a dependent operation is granted without view
    """
    if is_consistent(permissions):
        return
    granted = [op.value for op in DEPENDENT_OPERATIONS if permissions.allows(op)]
    raise InvariantViolation(
        f"Module '{module_id}' grants {', '.join(granted)} without view",
        invariant=VIEW_PREREQUISITE,
        details={"module_id": module_id, "granted": granted},
    )


def validate_role_mapping(mapping: Mapping[str, ModulePermissions], *, role: Any = None) -> None:
    """
    Validate every grant of one role's mapping, failing on the first bad module.

    Raises:
        InvariantViolation: If any module grant is inconsistent
    """
    for module_id, permissions in mapping.items():
        try:
            validate_module_permissions(module_id, permissions)
        except InvariantViolation as exc:
            if role is not None:
                exc.details["role"] = str(getattr(role, "value", role))
            raise


def cascade(permissions: ModulePermissions, operation: CrudOperation) -> ModulePermissions:
    """
    Re-apply the view rule after ``operation`` was changed on ``permissions``.

    Turning view off clears the dependent operations; turning a dependent
    operation on grants view.
    """
    operation = CrudOperation(operation)
    if operation is CrudOperation.VIEW:
        if not permissions.view:
            return ModulePermissions.none()
        return permissions
    if permissions.allows(operation) and not permissions.view:
        return permissions.with_flag(CrudOperation.VIEW, True)
    return permissions
