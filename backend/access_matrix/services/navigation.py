from __future__ import annotations

from typing import Iterable

from pydantic import BaseModel, ConfigDict

from ..auth.catalog import ModuleCatalog
from ..domain.types import CrudOperation
from .authorization import AuthorizationQueries


class NavItem(BaseModel):
    label: str
    path: str | None = None
    permission_id: str | None = None
    children: tuple["NavItem", ...] = ()

    model_config = ConfigDict(frozen=True)


NavItem.model_rebuild()


def _visible(item: NavItem, queries: AuthorizationQueries) -> bool:
    if item.permission_id is None:
        return True
    return queries.has_permission(item.permission_id, CrudOperation.VIEW)


def filter_navigation(items: Iterable[NavItem], queries: AuthorizationQueries) -> list[NavItem]:
    """Drop menu entries the active role cannot view.

    A group survives only while at least one of its children does.
    """
    visible: list[NavItem] = []
    for item in items:
        if item.children:
            children = tuple(child for child in item.children if _visible(child, queries))
            if not children:
                continue
            visible.append(item.model_copy(update={"children": children}))
        elif _visible(item, queries):
            visible.append(item)
    return visible


def navigation_from_catalog(catalog: ModuleCatalog) -> list[NavItem]:
    items: list[NavItem] = []
    for category, module_ids in catalog.categories().items():
        modules = [catalog.get(module_id) for module_id in module_ids]
        leaves = tuple(
            NavItem(label=module.label, path=module.path, permission_id=module.id)
            for module in modules
            if module is not None
        )
        if len(leaves) == 1:
            items.append(leaves[0])
        else:
            items.append(NavItem(label=category, children=leaves))
    return items
