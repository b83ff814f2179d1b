import logging
from urllib.parse import quote

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import PlainTextResponse

from storage_gateway.api.deps import (
    get_object_service,
    read_image_body,
    validate_image_request,
)
from storage_gateway.api.errors import internal_error, plain_error
from storage_gateway.core.config import Settings, get_settings
from storage_gateway.core.errors import StorageGatewayError
from storage_gateway.schemas import ImageUploadResponse, PendingUploadResponse
from storage_gateway.services.buckets import BucketName
from storage_gateway.services.objects import ObjectService, generate_image_key
from storage_gateway.services.storage import StoredObject

logger = logging.getLogger(__name__)

router = APIRouter(tags=["avatars"])

PUBLIC_CACHE_CONTROL = "public, max-age=31536000"


def image_response(stored: StoredObject) -> Response:
    headers = {"Cache-Control": PUBLIC_CACHE_CONTROL}
    if stored.etag:
        headers["ETag"] = stored.etag
    return Response(
        content=stored.body,
        media_type=stored.content_type or "image/png",
        headers=headers,
    )


def _view_url(request: Request, key: str) -> str:
    return f"{request.app.url_path_for('view_avatar')}?key={quote(key)}"


@router.post("/upload-avatar", name="create_avatar_upload")
async def create_avatar_upload(
    request: Request,
    service: ObjectService = Depends(get_object_service),
    settings: Settings = Depends(get_settings),
):
    key = generate_image_key("avatar")
    content_type = request.headers.get("content-type")

    if not content_type or "image/" not in content_type:
        upload_url = f"{request.app.url_path_for('upload_avatar')}?key={quote(key)}"
        return PendingUploadResponse(key=key, upload_url=upload_url)

    validate_image_request(request, settings.max_image_upload_bytes)
    data = await read_image_body(request, settings.max_image_upload_bytes)
    try:
        await service.put_image(BucketName.AVATARS, key, data, content_type)
    except StorageGatewayError:
        raise
    except Exception as exc:
        logger.exception("Upload avatar error")
        return internal_error("Avatar upload failed", exc)
    return ImageUploadResponse(key=key, url=_view_url(request, key))


@router.put("/upload-avatar", name="upload_avatar", response_model=ImageUploadResponse)
async def upload_avatar(
    request: Request,
    key: str | None = None,
    service: ObjectService = Depends(get_object_service),
    settings: Settings = Depends(get_settings),
):
    if not key:
        return PlainTextResponse("Missing key parameter", status_code=400)

    validate_image_request(request, settings.max_image_upload_bytes)
    data = await read_image_body(request, settings.max_image_upload_bytes)
    try:
        await service.put_image(
            BucketName.AVATARS, key, data, request.headers.get("content-type")
        )
    except StorageGatewayError:
        raise
    except Exception as exc:
        logger.exception("Upload avatar PUT error")
        return internal_error("Avatar upload failed", exc)
    return ImageUploadResponse(key=key, url=_view_url(request, key))


@router.get("/view-avatar", name="view_avatar")
async def view_avatar(
    key: str | None = None,
    service: ObjectService = Depends(get_object_service),
):
    if not key:
        return PlainTextResponse("Missing key parameter", status_code=400)

    try:
        stored = await service.get_image(BucketName.AVATARS, key, "Avatar not found")
    except StorageGatewayError as exc:
        return plain_error(exc)
    except Exception as exc:
        logger.exception("View avatar error")
        return internal_error("Failed to load avatar", exc)
    return image_response(stored)
