import os

# Le lifespan ne doit pas chercher Redis pendant les tests
os.environ.setdefault("DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS", "1")

import pytest
from typing import Generator
import jwt
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import NullPool

from storefront import config as app_config
from storefront.app import app as fastapi_app
from storefront.admin import repository as settings_repository
from storefront.infra import database

JWT_TEST_SECRET = "test-jwt-secret"

# Marquage automatique selon le dossier
def pytest_collection_modifyitems(config, items):
    for item in items:
        nodeid = item.nodeid.replace("\\", "/")
        if "tests/unit/" in nodeid:
            item.add_marker(pytest.mark.unit)
        elif "tests/integration/" in nodeid:
            item.add_marker(pytest.mark.integration)

@pytest.fixture(scope="session")
def app():
    return fastapi_app

@pytest.fixture()
def client(app) -> Generator[TestClient, None, None]:
    with TestClient(app) as c:
        yield c

# Environnement neutre: ni Supabase, ni Postgres, ni clés Stripe réelles
@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch):
    monkeypatch.setattr("storefront.infra.supabase_client.is_configured", lambda: False)
    monkeypatch.setattr(database, "DATABASE_URL", "")
    monkeypatch.setattr(app_config, "STRIPE_SECRET_KEY", "")
    monkeypatch.setattr(app_config, "STRIPE_PUBLISHABLE_KEY", "")
    monkeypatch.setattr(app_config, "STRIPE_WEBHOOK_SECRET", "")
    monkeypatch.setattr(app_config, "ADMIN_SETTINGS_JSON", "")
    monkeypatch.setattr(app_config, "JWT_SECRET", JWT_TEST_SECRET)
    monkeypatch.setattr(app_config, "SITE_ORIGIN", "https://example.com")
    monkeypatch.delenv("LOCAL_RATE_LIMIT_FALLBACK", raising=False)
    database.use_engine(None)
    settings_repository.reset_memory_store()
    yield
    database.use_engine(None)
    settings_repository.reset_memory_store()

@pytest.fixture
def make_token():
    def _make(**claims) -> str:
        return jwt.encode(claims, JWT_TEST_SECRET, algorithm="HS256")
    return _make

@pytest.fixture
def admin_headers(make_token):
    return {"Authorization": f"Bearer {make_token(sub='admin-1', role='admin')}"}

@pytest.fixture
async def sqlite_engine(tmp_path):
    """
    Base SQLite temporaire (aiosqlite) branchée comme datastore transactionnel.
    NullPool: aucune connexion ne survit à la boucle d'événements qui l'a ouverte.
    """
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'shop.db'}", poolclass=NullPool)
    await database.init_models(engine)
    database.use_engine(engine)
    yield engine
    database.use_engine(None)
    await engine.dispose()
