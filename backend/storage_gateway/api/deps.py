from fastapi import Depends, Request

from storage_gateway.core.config import Settings, get_settings
from storage_gateway.core.errors import PayloadTooLarge, UnsupportedMediaType
from storage_gateway.services.buckets import BucketResolver
from storage_gateway.services.objects import ObjectService
from storage_gateway.services.storage import StorageService

ALLOWED_IMAGE_TYPES = ("image/png", "image/jpeg", "image/gif", "image/webp")


def get_storage(request: Request) -> StorageService:
    return request.app.state.storage


def get_resolver(request: Request) -> BucketResolver:
    return request.app.state.bucket_resolver


def get_object_service(
    storage: StorageService = Depends(get_storage),
    resolver: BucketResolver = Depends(get_resolver),
    settings: Settings = Depends(get_settings),
) -> ObjectService:
    return ObjectService(storage, resolver, settings)


def _size_label(max_size: int) -> str:
    if max_size < 1024 * 1024:
        return f"{round(max_size / 1024)}KB"
    return f"{max_size / (1024 * 1024):g}MB"


def validate_image_request(request: Request, max_size: int) -> None:
    """Reject oversized or non-image uploads before the body is read."""
    content_length = request.headers.get("content-length")
    if content_length and content_length.isdigit() and int(content_length) > max_size:
        raise PayloadTooLarge(f"File too large (max {_size_label(max_size)})")

    content_type = request.headers.get("content-type")
    if request.method == "POST" and content_type and "application/json" in content_type:
        return

    if not content_type or not any(allowed in content_type for allowed in ALLOWED_IMAGE_TYPES):
        raise UnsupportedMediaType(
            f"Invalid content type: {content_type}. Only images (PNG, JPEG, GIF, WEBP) are allowed."
        )


async def read_image_body(request: Request, max_size: int) -> bytes:
    """Read the request body, failing once it exceeds ``max_size`` bytes."""
    chunks: list[bytes] = []
    received = 0
    async for chunk in request.stream():
        received += len(chunk)
        if received > max_size:
            raise PayloadTooLarge(f"File too large (max {_size_label(max_size)})")
        chunks.append(chunk)
    return b"".join(chunks)
