import dataclasses

import pytest
from fastapi.testclient import TestClient

from database import Base, make_engine, make_session_factory
from main import create_app
from security import UserDirectory
from settings import get_settings
from store import InMemoryCashCardStore, SqlCashCardStore

OWNER = ("sarah1", "abc123")
NON_OWNER = ("hank-owns-no-cards", "qrs456")


@pytest.fixture(scope="session")
def directory():
    """Users shared by all tests (argon2 hashing is slow)."""
    users = UserDirectory()
    users.add(OWNER[0], OWNER[1], ["CARD-OWNER"])
    users.add(NON_OWNER[0], NON_OWNER[1], ["NON-OWNER"])
    return users


@pytest.fixture
def settings():
    return dataclasses.replace(get_settings(), card_owner_role="CARD-OWNER", csrf_protection_enabled=False)


@pytest.fixture
def sql_store():
    engine = make_engine("sqlite://", echo=False)
    Base.metadata.create_all(engine)
    yield SqlCashCardStore(make_session_factory(engine))
    engine.dispose()


@pytest.fixture(params=["memory", "sql"])
def store(request):
    """Run each test against both store backends."""
    if request.param == "memory":
        return InMemoryCashCardStore()
    return request.getfixturevalue("sql_store")


@pytest.fixture
def app(store, directory, settings):
    return create_app(store=store, directory=directory, settings=settings)


@pytest.fixture
def client(app):
    """Create test client."""
    return TestClient(app)
