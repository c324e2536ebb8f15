"""
Shared fixtures: clients bound to the in-memory CMS API and an authenticated
console TestClient.
"""
import pytest
from fastapi.testclient import TestClient

from app.api_client import create_http_client, get_http_client
from app.main import app
from app.services.media import get_media_uploader
from app.utils.auth import create_access_token
from app.utils.rate_limit import limiter
from tests.fake_cms import BASE_URL, FakeCmsApi, FakeUploader


@pytest.fixture(autouse=True)
def reset_rate_limits():
    limiter.reset()
    yield


@pytest.fixture
def cms_api():
    return FakeCmsApi()


@pytest.fixture
async def http(cms_api):
    client = create_http_client(base_url=BASE_URL, transport=cms_api.transport())
    yield client
    await client.aclose()


@pytest.fixture
def uploader():
    return FakeUploader()


@pytest.fixture
def auth_headers():
    token = create_access_token({"role": "admin", "sub": "cms_admin"})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def console(cms_api, uploader, auth_headers):
    """TestClient for the console with the CMS API and uploader replaced by fakes."""

    async def override_http_client():
        async with create_http_client(base_url=BASE_URL, transport=cms_api.transport()) as client:
            yield client

    app.dependency_overrides[get_http_client] = override_http_client
    app.dependency_overrides[get_media_uploader] = lambda: uploader
    client = TestClient(app, headers=auth_headers)
    yield client
    app.dependency_overrides.clear()


@pytest.fixture
def anonymous(cms_api):
    """Console TestClient without credentials."""

    async def override_http_client():
        async with create_http_client(base_url=BASE_URL, transport=cms_api.transport()) as client:
            yield client

    app.dependency_overrides[get_http_client] = override_http_client
    yield TestClient(app)
    app.dependency_overrides.clear()
