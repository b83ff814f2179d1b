import pytest

from storage_gateway.core.config import get_settings
from storage_gateway.core.errors import UnknownBucket
from storage_gateway.services.buckets import BucketName, BucketResolver


@pytest.fixture
def resolver():
    return BucketResolver(get_settings())


@pytest.mark.parametrize(
    ("name", "physical", "public"),
    [
        ("projects", "test-projects", False),
        ("avatars", "test-avatars", True),
        ("exports", "test-exports", False),
        ("feedback", "test-feedback", False),
    ],
)
def test_resolves_known_buckets(resolver, name, physical, public):
    binding = resolver.resolve(name)
    assert binding.name == BucketName(name)
    assert binding.physical_name == physical
    assert binding.is_public is public


@pytest.mark.parametrize("name", ["", "Projects", "uploads", None])
def test_rejects_unknown_buckets(resolver, name):
    with pytest.raises(UnknownBucket):
        resolver.resolve(name)


def test_bindings_cover_every_bucket(resolver):
    assert {binding.name for binding in resolver.bindings()} == set(BucketName)
