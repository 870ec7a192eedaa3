"""
Tests for the draft reducer and the bulk edit engine.

Every transition must keep the view prerequisite rule: create, update or
delete granted implies view granted.
"""
import pytest
from hypothesis import given, settings, strategies as st

from access_matrix.auth.catalog import DEFAULT_CATALOG
from access_matrix.domain.invariants import is_consistent
from access_matrix.domain.types import CrudOperation, ModulePermissions, Role
from access_matrix.errors import StorageError
from access_matrix.services.bulk_edit import (
    BulkEditEngine,
    ToggleCategory,
    ToggleCell,
    ToggleModule,
    reduce_draft,
)
from access_matrix.services.permission_store import PermissionStore

CATEGORIES = {"Ops": ["sales", "purchase"], "Empty": []}

FULL = ModulePermissions.full()
NONE = ModulePermissions.none()


class TestToggleCell:
    """Single-flag flips with cascade."""

    def test_cascade_down_when_view_turned_off(self):
        draft = {"sales": FULL}
        result = reduce_draft(draft, ToggleCell("sales", CrudOperation.VIEW), CATEGORIES)
        assert result["sales"] == NONE

    def test_cascade_up_when_create_turned_on(self):
        draft = {"sales": NONE}
        result = reduce_draft(draft, ToggleCell("sales", CrudOperation.CREATE), CATEGORIES)
        assert result["sales"] == ModulePermissions(view=True, create=True)

    def test_turning_off_dependent_keeps_view(self):
        draft = {"sales": FULL}
        result = reduce_draft(draft, ToggleCell("sales", CrudOperation.DELETE), CATEGORIES)
        assert result["sales"] == ModulePermissions(view=True, create=True, update=True)

    def test_turning_on_view_touches_nothing_else(self):
        result = reduce_draft({}, ToggleCell("sales", CrudOperation.VIEW), CATEGORIES)
        assert result == {"sales": ModulePermissions.view_only()}

    def test_missing_entry_treated_as_no_permissions(self):
        result = reduce_draft({}, ToggleCell("new_module", CrudOperation.UPDATE), CATEGORIES)
        assert result == {"new_module": ModulePermissions(view=True, update=True)}

    def test_reducer_does_not_mutate_input(self):
        draft = {"sales": FULL}
        reduce_draft(draft, ToggleCell("sales", CrudOperation.VIEW), CATEGORIES)
        assert draft == {"sales": FULL}


class TestToggleCategory:
    """Bulk toggles over every module of a category."""

    def test_view_on_when_not_all_enabled(self):
        draft = {"sales": ModulePermissions.view_only(), "purchase": NONE}
        result = reduce_draft(draft, ToggleCategory("Ops", CrudOperation.VIEW), CATEGORIES)
        assert result["sales"] == ModulePermissions.view_only()
        assert result["purchase"] == ModulePermissions.view_only()

    def test_view_off_resets_modules(self):
        draft = {"sales": FULL, "purchase": ModulePermissions(view=True, create=True)}
        result = reduce_draft(draft, ToggleCategory("Ops", CrudOperation.VIEW), CATEGORIES)
        assert result["sales"] == NONE
        assert result["purchase"] == NONE

    def test_operation_on_forces_view(self):
        draft = {"sales": NONE, "purchase": ModulePermissions(view=True, update=True)}
        result = reduce_draft(draft, ToggleCategory("Ops", CrudOperation.DELETE), CATEGORIES)
        assert result["sales"] == ModulePermissions(view=True, delete=True)
        assert result["purchase"] == ModulePermissions(view=True, update=True, delete=True)

    def test_operation_off_clears_only_that_operation(self):
        draft = {"sales": FULL, "purchase": ModulePermissions(view=True, create=True)}
        result = reduce_draft(draft, ToggleCategory("Ops", CrudOperation.CREATE), CATEGORIES)
        assert result["sales"] == ModulePermissions(view=True, update=True, delete=True)
        assert result["purchase"] == ModulePermissions.view_only()

    def test_modules_outside_category_untouched(self):
        draft = {"accounts": FULL}
        result = reduce_draft(draft, ToggleCategory("Ops", CrudOperation.VIEW), CATEGORIES)
        assert result["accounts"] == FULL

    @pytest.mark.parametrize("category", ["Empty", "Unknown"])
    def test_empty_category_is_noop(self, category):
        draft = {"sales": ModulePermissions.view_only()}
        assert reduce_draft(draft, ToggleCategory(category, CrudOperation.VIEW), CATEGORIES) == draft

    @pytest.mark.parametrize("operation", list(CrudOperation))
    def test_double_toggle_restores_operation(self, operation):
        draft = {"sales": NONE, "purchase": NONE}
        once = reduce_draft(draft, ToggleCategory("Ops", operation), CATEGORIES)
        twice = reduce_draft(once, ToggleCategory("Ops", operation), CATEGORIES)
        for module_id in CATEGORIES["Ops"]:
            assert twice[module_id].allows(operation) == draft[module_id].allows(operation)


class TestToggleModule:
    """Select-all / clear-all for one module."""

    def test_all_enabled_becomes_none(self):
        assert reduce_draft({"sales": FULL}, ToggleModule("sales"), CATEGORIES)["sales"] == NONE

    def test_none_becomes_all_enabled(self):
        assert reduce_draft({"sales": NONE}, ToggleModule("sales"), CATEGORIES)["sales"] == FULL

    def test_partial_becomes_all_enabled(self):
        draft = {"sales": ModulePermissions(view=True, create=True)}
        assert reduce_draft(draft, ToggleModule("sales"), CATEGORIES)["sales"] == FULL


def test_unsupported_action_rejected():
    with pytest.raises(TypeError, match="Unsupported draft action"):
        reduce_draft({}, object(), CATEGORIES)


_module_ids = st.sampled_from([m.id for m in DEFAULT_CATALOG][:6] + ["unlisted"])
_operations = st.sampled_from(list(CrudOperation))
_actions = st.one_of(
    st.builds(ToggleCell, _module_ids, _operations),
    st.builds(ToggleCategory, st.sampled_from(list(DEFAULT_CATALOG.categories()) + ["Nope"]), _operations),
    st.builds(ToggleModule, _module_ids),
)


@settings(max_examples=200, deadline=None)
@given(st.lists(_actions, max_size=30))
def test_every_action_sequence_keeps_drafts_consistent(actions):
    draft = {}
    categories = DEFAULT_CATALOG.categories()
    for action in actions:
        draft = reduce_draft(draft, action, categories)
        assert all(is_consistent(p) for p in draft.values())


@settings(max_examples=100, deadline=None)
@given(st.lists(st.tuples(_module_ids, _operations), max_size=30))
def test_toggle_permission_sequences_keep_view_prerequisite(cells):
    draft = {}
    for module_id, operation in cells:
        draft = reduce_draft(draft, ToggleCell(module_id, operation), {})
        for permissions in draft.values():
            if permissions.create or permissions.update or permissions.delete:
                assert permissions.view


class TestBulkEditEngine:
    """Draft lifecycle against the store."""

    def test_draft_starts_from_store(self, store):
        engine = BulkEditEngine(store, Role.MANAGER)
        assert engine.draft == store.get_role_permissions(Role.MANAGER)
        assert engine.dirty is False
        assert engine.categories == DEFAULT_CATALOG.categories()

    def test_edits_stay_local_until_commit(self, store):
        engine = BulkEditEngine(store, Role.MANAGER)
        engine.toggle_permission("sales", "view")

        assert engine.dirty is True
        assert engine.draft["sales"] == NONE
        assert store.get_module_permissions(Role.MANAGER, "sales") == FULL

    def test_commit_writes_whole_draft(self, storage, store):
        engine = BulkEditEngine(store, Role.USER)
        engine.toggle_all_in_category("Admin", CrudOperation.VIEW)
        engine.select_all_for_module("setup_units")
        engine.commit()

        assert engine.dirty is False
        assert store.get_role_permissions(Role.USER) == engine.draft
        assert store.get_module_permissions(Role.USER, "security") == ModulePermissions.view_only()
        assert PermissionStore(storage).get_module_permissions(Role.USER, "setup_units") == FULL

    def test_discard_restores_store_state(self, store):
        engine = BulkEditEngine(store, Role.ADMIN)
        engine.select_all_for_module("sales")
        engine.discard()

        assert engine.dirty is False
        assert engine.draft["sales"] == FULL

    def test_empty_category_does_not_mark_dirty(self, store):
        engine = BulkEditEngine(store, Role.ADMIN)
        engine.toggle_all_in_category("Nonexistent", "view")
        assert engine.dirty is False

    def test_draft_property_is_a_copy(self, store):
        engine = BulkEditEngine(store, Role.ADMIN)
        engine.draft["sales"] = NONE
        assert engine.draft["sales"] == FULL
        assert engine.dirty is False

    def test_independent_drafts_do_not_interfere(self, store):
        first = BulkEditEngine(store, Role.USER)
        second = BulkEditEngine(store, Role.USER)
        first.toggle_permission("sales", "view")
        assert second.draft["sales"] == ModulePermissions(view=True, create=True)

    def test_last_commit_wins_for_same_role(self, store):
        first = BulkEditEngine(store, Role.USER)
        second = BulkEditEngine(store, Role.USER)
        first.toggle_permission("sales", "view")
        second.toggle_permission("sales", "delete")
        first.commit()
        second.commit()
        assert store.get_module_permissions(Role.USER, "sales") == ModulePermissions(
            view=True, create=True, delete=True
        )

    def test_switch_role_reloads_draft(self, store):
        engine = BulkEditEngine(store, Role.ADMIN)
        engine.toggle_permission("sales", "view")
        engine.switch_role(Role.USER)

        assert engine.role is Role.USER
        assert engine.dirty is False
        assert engine.draft == store.get_role_permissions(Role.USER)

    def test_custom_category_grouping(self, store):
        engine = BulkEditEngine(store, Role.USER, category_modules={"Backend": ["sales", "accounts"]})
        engine.toggle_all_in_category("Backend", CrudOperation.DELETE)
        assert engine.draft["sales"].delete is True
        assert engine.draft["accounts"] == ModulePermissions(view=True, delete=True)

    def test_permission_names_reflect_draft(self, store):
        store.update_role_permissions(Role.USER, {"sales": ModulePermissions.view_only()})
        engine = BulkEditEngine(store, Role.USER)
        engine.toggle_permission("sales", "update")
        assert engine.permission_names() == ["sales.view", "sales.update"]

    def test_failed_commit_keeps_draft_dirty(self, store, monkeypatch):
        engine = BulkEditEngine(store, Role.USER)
        engine.toggle_permission("sales", "view")

        def fail(*args, **kwargs):
            raise StorageError()

        monkeypatch.setattr(store, "update_role_permissions", fail)
        with pytest.raises(StorageError):
            engine.commit()
        assert engine.dirty is True
