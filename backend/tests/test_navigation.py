"""
Tests for permission-filtered navigation menus.
"""
from access_matrix.auth.catalog import DEFAULT_CATALOG, ModuleCatalog
from access_matrix.domain.types import Module, ModulePermissions, Role
from access_matrix.services.navigation import NavItem, filter_navigation, navigation_from_catalog

MENU = [
    NavItem(label="Dashboard", path="/", permission_id="dashboard"),
    NavItem(label="Help", path="/help"),
    NavItem(
        label="Setup",
        children=(
            NavItem(label="Units", path="/setup/units", permission_id="setup_units"),
            NavItem(label="Machines", path="/setup/machines", permission_id="setup_machines"),
        ),
    ),
    NavItem(
        label="Settings",
        children=(
            NavItem(label="General", path="/settings", permission_id="settings"),
            NavItem(label="Roles", path="/settings/roles", permission_id="role_management"),
        ),
    ),
]


class TestFilterNavigation:
    def test_admin_sees_everything(self, queries):
        assert filter_navigation(MENU, queries) == MENU

    def test_group_without_visible_children_is_dropped(self, store, queries):
        store.set_active_role(Role.USER)
        labels = [item.label for item in filter_navigation(MENU, queries)]
        assert labels == ["Dashboard", "Help"]

    def test_group_keeps_only_visible_children(self, store, queries):
        store.set_active_role(Role.MANAGER)
        result = filter_navigation(MENU, queries)
        settings_group = next(item for item in result if item.label == "Settings")
        assert [child.label for child in settings_group.children] == ["General"]

    def test_entries_without_permission_always_visible(self, store, queries):
        store.update_role_permissions(Role.ADMIN, {"dashboard": ModulePermissions.none()})
        result = filter_navigation(MENU, queries)
        assert [item.label for item in result] == ["Help"]

    def test_input_items_not_modified(self, store, queries):
        store.set_active_role(Role.MANAGER)
        filter_navigation(MENU, queries)
        assert len(MENU[3].children) == 2


class TestNavigationFromCatalog:
    def test_single_module_category_is_a_leaf(self):
        items = navigation_from_catalog(DEFAULT_CATALOG)
        assert items[0] == NavItem(label="Dashboard", path="/", permission_id="dashboard")

    def test_multi_module_category_becomes_group(self):
        items = {item.label: item for item in navigation_from_catalog(DEFAULT_CATALOG)}
        admin = items["Admin"]
        assert admin.path is None
        assert [child.permission_id for child in admin.children] == [
            "settings",
            "role_management",
            "security",
        ]

    def test_custom_catalog(self):
        catalog = ModuleCatalog([
            Module(id="a", label="A", path="/a", category="One"),
            Module(id="b", label="B", path="/b", category="Two"),
            Module(id="c", label="C", path="/c", category="Two"),
        ])
        items = navigation_from_catalog(catalog)
        assert [item.label for item in items] == ["A", "Two"]
        assert [child.path for child in items[1].children] == ["/b", "/c"]
