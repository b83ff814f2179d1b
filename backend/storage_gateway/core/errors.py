from fastapi import status


class StorageGatewayError(Exception):
    """Base class for request failures reported back to the caller."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    message: str = "Bad request"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.message
        super().__init__(self.message)


class MissingField(StorageGatewayError):
    message = "Missing required field"


class MissingContentType(StorageGatewayError):
    message = "contentType required for upload action"


class UnknownBucket(StorageGatewayError):
    message = "Invalid bucket"

    def __init__(self, bucket: str | None = None, message: str | None = None) -> None:
        self.bucket = bucket
        super().__init__(message or (f"Invalid bucket: {bucket}" if bucket else None))


class MalformedToken(StorageGatewayError):
    message = "Invalid token format"


class Expired(StorageGatewayError):
    status_code = status.HTTP_403_FORBIDDEN
    message = "Token expired"


class ActionMismatch(StorageGatewayError):
    message = "Invalid token action"


class InvalidDataUrl(StorageGatewayError):
    message = "Invalid base64 data URL format"


class NotFound(StorageGatewayError):
    status_code = status.HTTP_404_NOT_FOUND
    message = "File not found"


class PayloadTooLarge(StorageGatewayError):
    status_code = status.HTTP_413_REQUEST_ENTITY_TOO_LARGE
    message = "File too large"


class UnsupportedMediaType(StorageGatewayError):
    status_code = status.HTTP_415_UNSUPPORTED_MEDIA_TYPE
    message = "Invalid content type"


class InvalidStorageKey(StorageGatewayError, ValueError):
    message = "Invalid storage key"
