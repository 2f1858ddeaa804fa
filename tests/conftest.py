"""Pytest configuration and fixtures for the storefront service."""

import io

import pytest
import pytest_asyncio
from fakeredis import aioredis as fakeredis
from httpx import ASGITransport, AsyncClient
from PIL import Image

from storefront.config import settings
from storefront.errors import StorageUploadError
from storefront.services.clients.object_storage import ObjectStorage, get_object_storage
from storefront.services.storage.redis_client import get_redis_client

ADMIN_PASSWORD = "admin-secret"
STOREFRONT_PASSWORD = "shop-secret"


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: marks tests as integration tests")
    config.addinivalue_line("markers", "unit: marks tests as unit tests")
    config.addinivalue_line("markers", "asyncio: marks tests as async tests")


class InMemoryObjectStorage(ObjectStorage):
    """Object storage double keeping uploads in a dict."""

    base_url = "https://cdn.test"

    def __init__(self) -> None:
        self.objects: dict[tuple[str, str], bytes] = {}
        self.uploads: list[dict] = []
        self.fail_paths: set[str] = set()

    async def upload(self, bucket, path, data, *, content_type, upsert=True):
        if path in self.fail_paths:
            raise StorageUploadError(f"{bucket}/{path}", "simulated outage")
        if not upsert and (bucket, path) in self.objects:
            raise StorageUploadError(f"{bucket}/{path}", "already exists")
        self.objects[(bucket, path)] = data
        self.uploads.append(
            {"bucket": bucket, "path": path, "content_type": content_type, "upsert": upsert}
        )
        return self.public_url(bucket, path)

    def public_url(self, bucket, path):
        return f"{self.base_url}/{bucket}/{path}"

    async def remove(self, bucket, path):
        self.objects.pop((bucket, path), None)


def make_png(size=(64, 64), color=(200, 30, 30, 255)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGBA", size, color).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture(autouse=True)
def gate_passwords():
    """Seed gate passwords and keep bcrypt cheap."""
    originals = (settings.ADMIN_PASSWORD, settings.STOREFRONT_PASSWORD, settings.BCRYPT_ROUNDS)
    settings.ADMIN_PASSWORD = ADMIN_PASSWORD
    settings.STOREFRONT_PASSWORD = STOREFRONT_PASSWORD
    settings.BCRYPT_ROUNDS = 4
    yield
    settings.ADMIN_PASSWORD, settings.STOREFRONT_PASSWORD, settings.BCRYPT_ROUNDS = originals


@pytest.fixture()
def storage():
    """Provide in-memory object storage to the app."""
    from storefront.main import app

    stub = InMemoryObjectStorage()
    app.dependency_overrides[get_object_storage] = lambda: stub
    yield stub
    app.dependency_overrides.pop(get_object_storage, None)


@pytest.fixture()
def png_bytes() -> bytes:
    return make_png()


@pytest.fixture()
def admin_headers() -> dict[str, str]:
    return {"X-Admin-Password": ADMIN_PASSWORD}


@pytest_asyncio.fixture()
async def redis_client():
    """Provide a fake Redis client for each test."""
    from storefront.main import app

    client = fakeredis.FakeRedis(decode_responses=True)
    app.dependency_overrides[get_redis_client] = lambda: client
    try:
        yield client
    finally:
        await client.flushdb()
        await client.aclose()
        app.dependency_overrides.pop(get_redis_client, None)


@pytest_asyncio.fixture()
async def client(redis_client, storage):
    """Return an HTTPX async client pointing at the FastAPI app."""
    from storefront.main import app

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://testserver",
    ) as test_client:
        yield test_client


@pytest.fixture()
def image_factory():
    """Build PNG payloads of a given size and colour."""
    return make_png


@pytest.fixture()
def memory_storage() -> InMemoryObjectStorage:
    """Standalone in-memory storage for service-level tests."""
    return InMemoryObjectStorage()
