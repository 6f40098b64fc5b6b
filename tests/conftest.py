import httpx
import pytest
from httpx import ASGITransport

STORE_URL = "https://store.test"
REST_URL = f"{STORE_URL}/rest/v1"


@pytest.fixture
def mock_env(monkeypatch):
    monkeypatch.setenv("SUPABASE_URL", STORE_URL)
    monkeypatch.setenv("SUPABASE_KEY", "test-service-key")
    monkeypatch.setenv("BUSINESS_TIMEZONE", "America/New_York")
    monkeypatch.setenv("CALLS_REFRESH_SECONDS", "0")


@pytest.fixture
async def client(mock_env):
    from callboard.main import app, lifespan

    async with lifespan(app):
        async with httpx.AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://test",
        ) as c:
            yield c
