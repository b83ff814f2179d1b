"""Probe every configured bucket with the active storage backend.

Run with ``python -m storage_gateway.check`` (or ``storage-gateway-check``).
"""
import asyncio
import logging
import sys

from storage_gateway.core.config import get_settings
from storage_gateway.core.logging import configure_logging
from storage_gateway.services.buckets import BucketResolver
from storage_gateway.services.storage import StorageService, build_storage_service

logger = logging.getLogger(__name__)


async def check_buckets(storage: StorageService, resolver: BucketResolver) -> dict[str, str | None]:
    """Return a mapping of logical bucket name to error message (``None`` when reachable)."""
    results: dict[str, str | None] = {}
    for binding in resolver.bindings():
        try:
            await storage.check_bucket(binding.physical_name)
        except Exception as exc:
            logger.debug("Bucket check failed for %s", binding.physical_name, exc_info=True)
            results[binding.name.value] = str(exc) or type(exc).__name__
        else:
            results[binding.name.value] = None
    return results


def main() -> int:
    configure_logging()
    settings = get_settings()
    storage = build_storage_service(settings)
    resolver = BucketResolver(settings)

    print(f"Checking buckets with the {storage.scheme} backend")
    results = asyncio.run(check_buckets(storage, resolver))

    for binding in resolver.bindings():
        error = results[binding.name.value]
        status = "OK" if error is None else f"FAILED ({error})"
        print(f"{binding.name.value} -> {binding.physical_name}: {status}")
    return 0 if all(error is None for error in results.values()) else 1


if __name__ == "__main__":
    sys.exit(main())
