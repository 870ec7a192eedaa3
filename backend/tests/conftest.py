"""Shared test fixtures and configuration."""
import pytest

from access_matrix.auth.catalog import DEFAULT_CATALOG
from access_matrix.infra.memory import InMemoryKeyValueStorage
from access_matrix.services.authorization import AuthorizationQueries
from access_matrix.services.permission_store import PermissionStore


@pytest.fixture
def storage():
    """Empty in-memory key-value storage."""
    return InMemoryKeyValueStorage()


@pytest.fixture
def store(storage):
    """Store loaded from empty storage (defaults, admin active)."""
    return PermissionStore(storage, DEFAULT_CATALOG)


@pytest.fixture
def queries(store):
    return AuthorizationQueries(store, DEFAULT_CATALOG)
