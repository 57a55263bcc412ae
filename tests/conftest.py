"""
Shared fixtures: an in-memory SQLite store per test, the services bound to
it, and a TestClient whose session factory points at the same store.
"""

import os
import tempfile

os.environ.setdefault("AUTH_SECRET", "test-secret-key-with-at-least-32-characters")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("MEDIA_ROOT", tempfile.mkdtemp(prefix="catalog-media-"))

import pytest
from sqlalchemy.pool import StaticPool

from app import models
from app.db import Base, build_engine, build_session_factory, get_session_factory
from app.security import create_access_token
from app.services.accounts import AccountsService
from app.services.catalog_engine import CatalogEngine
from app.services.catalog_queries import CatalogQueries
from app.services.master_data import MasterDataService

from factories import user_payload


@pytest.fixture
def engine():
    engine = build_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
def catalog(session_factory):
    return CatalogEngine(session_factory)


@pytest.fixture
def queries(session_factory):
    return CatalogQueries(session_factory)


@pytest.fixture
def master_data(session_factory):
    return MasterDataService(session_factory)


@pytest.fixture
def accounts(session_factory):
    return AccountsService(session_factory)


@pytest.fixture
def user(accounts) -> models.User:
    return accounts.register_user(user_payload())


@pytest.fixture
def merchant(accounts, user) -> models.Merchant:
    return accounts.create_merchant(user.id, {"name": "Toko Budi", "address": "Jl. Merdeka 1"})


@pytest.fixture
def category(master_data) -> models.Category:
    return master_data.create_category({"name": "Pakaian", "type": "Kaos"})


@pytest.fixture
def colour(master_data) -> models.Colour:
    return master_data.create_colour({"name": "Merah", "hex": "#FF0000"})


@pytest.fixture
def size(master_data) -> models.Size:
    return master_data.create_size({"name": "M", "length": 65, "width": 35, "height": 45})


@pytest.fixture
def client(session_factory):
    from fastapi.testclient import TestClient

    from app.main import app

    app.dependency_overrides[get_session_factory] = lambda: session_factory
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(user) -> dict:
    return {"Authorization": f"Bearer {create_access_token({'sub': user.id})}"}
