"""Pytest configuration and shared fixtures."""

import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import pytest
from unittest.mock import MagicMock

from repokit.config.settings import Settings
from repokit.models.validation import ValidationResult
from repokit.storage.database import Database
from repokit.storage.repository import Repository
from repokit.storage.store_handle import StoreHandle
from tests.entities import Gadget, Widget


@pytest.fixture
def settings():
    """In-memory SQLite settings fixture."""
    return Settings(database_url="sqlite+pysqlite:///:memory:")


@pytest.fixture
def database(settings):
    """Connected database with all entity tables."""
    db = Database(settings)
    db.connect()
    db.create_tables()
    yield db
    db.disconnect()


@pytest.fixture
def handle(database):
    """Store handle bound to the test database."""
    store_handle = database.get_handle(Widget())
    yield store_handle
    store_handle.close()


@pytest.fixture
def widget_repo(handle):
    """Widget repository on the shared handle."""
    return Repository(Widget, handle=handle)


@pytest.fixture
def gadget_repo(handle):
    """Gadget repository on the shared handle."""
    return Repository(Gadget, handle=handle)


@pytest.fixture
def mock_handle():
    """Mock store handle that reports every entity as valid."""
    store_handle = MagicMock(spec=StoreHandle)
    store_handle.get_validation_result.return_value = ValidationResult()
    store_handle.identity_of.return_value = (1,)
    return store_handle
