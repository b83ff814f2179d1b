import logging

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import PlainTextResponse

from storage_gateway.api.deps import get_object_service
from storage_gateway.api.errors import internal_error, plain_error
from storage_gateway.core.errors import MissingField, StorageGatewayError
from storage_gateway.schemas import (
    DeleteRequest,
    DeleteResponse,
    SignedUrlRequest,
    SignedUrlResponse,
    UploadRequest,
    UploadResponse,
)
from storage_gateway.services.objects import ObjectService, content_disposition

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/storage", tags=["storage"])


@router.delete("/delete", response_model=DeleteResponse)
async def delete_objects(
    payload: DeleteRequest,
    service: ObjectService = Depends(get_object_service),
):
    try:
        result = await service.delete_objects(payload.bucket, payload.key, payload.keys)
    except StorageGatewayError:
        raise
    except Exception as exc:
        logger.exception("Delete error")
        return internal_error("Delete failed", exc)
    return DeleteResponse(success=result.success, deleted=result.deleted, failed=result.failed)


@router.get("/download", name="download_object")
async def download_object(
    token: str | None = None,
    service: ObjectService = Depends(get_object_service),
):
    if not token:
        return PlainTextResponse("Missing token", status_code=400)

    try:
        download = await service.download(token)
        return Response(
            content=download.object.body,
            media_type=download.content_type,
            headers={
                "Cache-Control": "private, max-age=3600",
                "Content-Disposition": content_disposition(download.filename),
            },
        )
    except StorageGatewayError as exc:
        return plain_error(exc)
    except Exception:
        logger.exception("Download error")
        return PlainTextResponse("Download failed", status_code=500)


@router.post(
    "/signed-url",
    response_model=SignedUrlResponse,
    response_model_exclude_none=True,
)
async def create_signed_url(
    payload: SignedUrlRequest,
    request: Request,
    service: ObjectService = Depends(get_object_service),
):
    try:
        signed = service.create_signed_urls(
            download_endpoint=str(request.url_for("download_object")),
            upload_endpoint=str(request.url_for("upload_presigned_object")),
            bucket=payload.bucket,
            key=payload.key,
            keys=payload.keys,
            expires_in=payload.expires_in,
            action=payload.action,
            content_type=payload.content_type,
        )
        expires_at = signed.expires_at
    except StorageGatewayError:
        raise
    except Exception as exc:
        logger.exception("Signed URL error")
        return internal_error("Failed to generate signed URL", exc)

    return SignedUrlResponse(url=signed.url, urls=signed.urls, expires_at=expires_at)


@router.post("/upload", response_model=UploadResponse)
async def upload_object(
    payload: UploadRequest,
    service: ObjectService = Depends(get_object_service),
):
    try:
        binding = await service.upload_data_url(
            payload.bucket,
            payload.key,
            payload.base64_data,
            payload.metadata,
        )
    except StorageGatewayError:
        raise
    except Exception as exc:
        logger.exception("Upload error")
        return internal_error("Upload failed", exc)

    return UploadResponse(key=payload.key, bucket=payload.bucket, is_public=binding.is_public)


@router.put("/upload-presigned", name="upload_presigned_object", response_model=UploadResponse)
async def upload_presigned_object(
    request: Request,
    token: str | None = None,
    service: ObjectService = Depends(get_object_service),
):
    if not token:
        raise MissingField("Missing token")

    data = await request.body()
    try:
        payload, binding = await service.upload_with_token(
            token, data, request.headers.get("content-type")
        )
    except StorageGatewayError:
        raise
    except Exception as exc:
        logger.exception("Presigned upload error")
        return internal_error("Upload failed", exc)

    return UploadResponse(key=payload.key, bucket=payload.bucket, is_public=binding.is_public)
