import pytest

from crud_app.auth.session_manager import SessionManager
from crud_app.services.catalog_service import CatalogService
from crud_app.services.store import Store
from crud_app.storage.local_storage import MemoryStorage

# Minimum bcrypt cost keeps the suite fast
TEST_ROUNDS = 4


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def store(storage):
    return Store(storage, bcrypt_rounds=TEST_ROUNDS)


@pytest.fixture
def sessions(store, storage):
    return SessionManager(store, storage)


@pytest.fixture
def catalog(store, sessions):
    return CatalogService(store, sessions)


@pytest.fixture
def bob_fields():
    return {
        "username": "bob",
        "email": "b@x.com",
        "password": "secret1",
        "confirm_password": "secret1",
        "name": "Bob",
    }
