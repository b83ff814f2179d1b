import os
import sys
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Ensure project root is on sys.path
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from storage_gateway.core.config import get_settings
from storage_gateway.services import storage as storage_service
from storage_gateway.services.storage import StoredObject


class DummyStorage(storage_service.StorageService):
    """In-memory backend keyed by (bucket, key)."""

    scheme = "memory"

    def __init__(self) -> None:  # type: ignore[super-init-not-called]
        self.settings = get_settings()
        self.objects: dict[tuple[str, str], StoredObject] = {}
        self.failing_keys: set[str] = set()
        self.put_calls = 0

    def create_presigned_put(self, bucket, key, content_type, expires_in=300):  # type: ignore[override]
        return f"https://example.com/put/{bucket}/{key}?expires={expires_in}"

    async def get_object(self, bucket, key):  # type: ignore[override]
        return self.objects.get((bucket, key))

    async def put_object(self, bucket, key, data, content_type=None, metadata=None):  # type: ignore[override]
        self.put_calls += 1
        self.objects[(bucket, key)] = StoredObject(
            body=data,
            content_type=content_type,
            metadata=dict(metadata or {}),
            etag=f'"etag-{len(data)}"',
        )

    async def delete_object(self, bucket, key):  # type: ignore[override]
        if key in self.failing_keys:
            raise RuntimeError(f"cannot delete {key}")
        self.objects.pop((bucket, key), None)

    async def check_bucket(self, bucket):  # type: ignore[override]
        if bucket.startswith("missing"):
            raise RuntimeError("NoSuchBucket")


@pytest.fixture(scope="session", autouse=True)
def configure_environment():
    os.environ["ENV"] = "test"
    os.environ["TOKEN_SECRET_KEY"] = "test-secret"
    os.environ["STORAGE_BACKEND"] = "s3"
    os.environ["S3_ACCESS_KEY"] = "test"
    os.environ["S3_SECRET_KEY"] = "test"
    os.environ["PROJECTS_BUCKET"] = "test-projects"
    os.environ["AVATARS_BUCKET"] = "test-avatars"
    os.environ["EXPORTS_BUCKET"] = "test-exports"
    os.environ["FEEDBACK_BUCKET"] = "test-feedback"
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def storage(configure_environment):
    return DummyStorage()


@pytest.fixture
def app_instance(storage):
    from storage_gateway.main import create_app

    return create_app(storage=storage)


@pytest_asyncio.fixture
async def client(app_instance):
    transport = ASGITransport(app=app_instance)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client
