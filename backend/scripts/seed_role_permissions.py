"""
Seed the configured storage with the default role permission matrix.

Run once when bringing up a new environment. An existing matrix is left
alone unless --force is given.

Usage:
    python -m scripts.seed_role_permissions [--force]
"""
import sys
import os

# Add parent directory to path to import access_matrix modules
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from access_matrix.auth.catalog import DEFAULT_CATALOG, ROLE_DISPLAY_LABELS
from access_matrix.bootstrap import build_storage, build_store, configure_logging
from access_matrix.config import get_settings
from access_matrix.errors import StorageError, to_payload
from access_matrix.services.permission_mapper import to_permission_names
from access_matrix.services.permission_store import ROLE_PERMISSIONS_KEY, dumps_matrix


def seed_role_permissions(force: bool = False) -> int:
    settings = get_settings()
    configure_logging(settings)

    storage = build_storage(settings)
    matrix_key = f"{settings.storage_key_prefix}{ROLE_PERMISSIONS_KEY}"

    print(f"Seeding role permissions into '{settings.storage_backend}' storage...")
    print(f"  Modules: {len(DEFAULT_CATALOG)}")
    print(f"  Categories: {', '.join(DEFAULT_CATALOG.categories())}")
    if settings.storage_backend == "memory":
        print("  WARNING: STORAGE_BACKEND=memory; seeded permissions are lost when this script exits")

    try:
        if storage.get(matrix_key) is not None and not force:
            print(f"  Key '{matrix_key}' already exists, skipping (use --force to overwrite)")
            return 0

        store = build_store(settings, storage=storage)
        store.reset_to_defaults()
    except StorageError as exc:
        print(f"  ERROR: {to_payload(exc)}")
        return 1

    for role, mapping in store.matrix.items():
        granted = to_permission_names(mapping)
        print(f"  ✓ {ROLE_DISPLAY_LABELS[role]}: {len(granted)} permissions")

    if settings.debug:
        print(dumps_matrix(store.matrix))

    print("\n✅ Role permission seeding completed successfully!")
    return 0


if __name__ == "__main__":
    sys.exit(seed_role_permissions(force="--force" in sys.argv[1:]))
