import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse

from storage_gateway.core.errors import StorageGatewayError, UnknownBucket

logger = logging.getLogger(__name__)


def internal_error(message: str, exc: Exception) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": message, "details": str(exc) or type(exc).__name__},
    )


def plain_error(exc: StorageGatewayError) -> PlainTextResponse:
    # Plain-text endpoints never echo the bucket name back.
    message = UnknownBucket.message if isinstance(exc, UnknownBucket) else exc.message
    return PlainTextResponse(message, status_code=exc.status_code)


async def storage_error_handler(request: Request, exc: StorageGatewayError) -> JSONResponse:
    logger.info("%s %s rejected: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.info("%s %s invalid body: %s", request.method, request.url.path, exc.errors())
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "Invalid request body"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StorageGatewayError, storage_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
