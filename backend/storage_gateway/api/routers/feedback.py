import logging
from urllib.parse import quote

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import PlainTextResponse

from storage_gateway.api.deps import (
    get_object_service,
    get_storage,
    read_image_body,
    validate_image_request,
)
from storage_gateway.api.errors import internal_error, plain_error
from storage_gateway.api.routers.avatars import image_response
from storage_gateway.core.config import Settings, get_settings
from storage_gateway.core.errors import StorageGatewayError
from storage_gateway.schemas import ImageUploadResponse, PendingUploadResponse
from storage_gateway.services.buckets import BucketName
from storage_gateway.services.objects import ObjectService
from storage_gateway.services.storage import LocalStorageService, StorageService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["feedback"])


@router.post("/upload-feedback", response_model=PendingUploadResponse)
async def create_feedback_upload(
    request: Request,
    service: ObjectService = Depends(get_object_service),
):
    try:
        key, upload_url = service.create_feedback_upload()
    except Exception as exc:
        logger.exception("Feedback presign error")
        return internal_error("Failed to prepare feedback upload", exc)

    if upload_url.startswith("local://upload/"):
        upload_url = f"{request.app.url_path_for('upload_feedback')}?key={quote(key)}"
    return PendingUploadResponse(key=key, upload_url=upload_url)


@router.put("/upload-feedback", name="upload_feedback", response_model=ImageUploadResponse)
async def upload_feedback(
    request: Request,
    key: str | None = None,
    storage: StorageService = Depends(get_storage),
    service: ObjectService = Depends(get_object_service),
    settings: Settings = Depends(get_settings),
):
    # Remote backends receive feedback screenshots through their own presigned URL.
    if not isinstance(storage, LocalStorageService):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    if not key:
        return PlainTextResponse("Missing key parameter", status_code=400)

    validate_image_request(request, settings.max_image_upload_bytes)
    data = await read_image_body(request, settings.max_image_upload_bytes)
    try:
        await service.put_image(
            BucketName.FEEDBACK, key, data, request.headers.get("content-type")
        )
    except StorageGatewayError:
        raise
    except Exception as exc:
        logger.exception("Upload feedback PUT error")
        return internal_error("Feedback upload failed", exc)
    view_url = f"{request.app.url_path_for('view_feedback_image')}?key={quote(key)}"
    return ImageUploadResponse(key=key, url=view_url)


@router.get("/view-feedback-image", name="view_feedback_image")
async def view_feedback_image(
    key: str | None = None,
    service: ObjectService = Depends(get_object_service),
):
    if not key:
        return PlainTextResponse("Missing key parameter", status_code=400)

    try:
        stored = await service.get_image(BucketName.FEEDBACK, key, "Image not found")
    except StorageGatewayError as exc:
        return plain_error(exc)
    except Exception as exc:
        logger.exception("View feedback image error")
        return internal_error("Failed to load feedback image", exc)
    return image_response(stored)
