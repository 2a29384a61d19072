# tests/conftest.py
import os

import pytest
from fastapi.testclient import TestClient

# Demo mode for every test: no database, no Shopify token, no PageSpeed calls
os.environ["DATABASE_URL"] = ""
os.environ["SHOPIFY_ACCESS_TOKEN"] = ""
os.environ["PAGESPEED_ENABLED"] = "false"
os.environ["IMAGE_OPTIMIZER_MODE"] = "estimate"
os.environ["RUN_MIGRATIONS"] = "false"

from app.core.config import Settings, get_settings, clear_settings_cache
from app.database import build_engine, build_sessionmaker, create_all
from app.main import app
from app.services.storage import DatabaseStorage, MemoryStorage

clear_settings_cache()

TEST_SQLITE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
def settings():
    """Provide test settings"""
    return Settings(
        DATABASE_URL="",
        SHOPIFY_API_KEY="test_key",
        SHOPIFY_API_SECRET="test_secret",
        SHOPIFY_ACCESS_TOKEN="",
        APP_URL="https://optimizer.example.com",
        PAYPAL_CLIENT_ID="paypal_id",
        PAYPAL_CLIENT_SECRET="paypal_secret",
        PAGESPEED_ENABLED=False,
        IMAGE_OPTIMIZER_MODE="estimate",
    )


@pytest.fixture
def memory_storage():
    return MemoryStorage()


@pytest.fixture(params=["memory", "sqlite"])
async def storage(request):
    """Both storage backends, so each contract test runs twice"""
    if request.param == "memory":
        yield MemoryStorage()
        return

    engine = build_engine(TEST_SQLITE_URL)
    await create_all(engine)
    db_storage = DatabaseStorage(build_sessionmaker(engine), engine=engine)
    yield db_storage
    await db_storage.close()


@pytest.fixture
def test_client(settings):
    """Provide a test client with overridden settings and in-memory storage"""
    def override_settings():
        return settings

    app.dependency_overrides[get_settings] = override_settings
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def app_storage(test_client):
    """The storage the running app was started with"""
    return test_client.app.state.storage


@pytest.fixture
def scanned_store(test_client):
    """Scan result for the demo catalog of my-store.myshopify.com"""
    response = test_client.post("/api/scan", json={"url": "my-store.myshopify.com"})
    assert response.status_code == 200
    return response.json()


@pytest.fixture
def mock_httpx(mocker):
    """Patch httpx.AsyncClient; returns the object whose .request/.get the code awaits"""
    mock_client = mocker.patch("httpx.AsyncClient")
    inner = mock_client.return_value.__aenter__.return_value
    inner.request = mocker.AsyncMock()
    inner.get = mocker.AsyncMock()
    return inner


@pytest.fixture
def make_response(mocker):
    """Factory for MagicMocks shaped like an httpx.Response"""
    def _make(status_code=200, json_data=None, text="", links=None, content=None):
        response = mocker.MagicMock()
        response.status_code = status_code
        response.json.return_value = json_data if json_data is not None else {}
        response.text = text
        response.links = links or {}
        response.content = content if content is not None else (b"{}" if json_data is not None else b"")
        return response
    return _make
