from storage_gateway.schemas.storage import (
    DeleteRequest,
    DeleteResponse,
    ImageUploadResponse,
    PendingUploadResponse,
    SignedUrlRequest,
    SignedUrlResponse,
    UploadRequest,
    UploadResponse,
)

__all__ = [
    "DeleteRequest",
    "DeleteResponse",
    "SignedUrlRequest",
    "SignedUrlResponse",
    "UploadRequest",
    "UploadResponse",
    "ImageUploadResponse",
    "PendingUploadResponse",
]
