from contextlib import asynccontextmanager

from fastapi import FastAPI

from storage_gateway.api.errors import register_exception_handlers
from storage_gateway.api.middleware import RequestLoggingMiddleware
from storage_gateway.api.routers import avatars as avatars_router
from storage_gateway.api.routers import feedback as feedback_router
from storage_gateway.api.routers import storage as storage_router
from storage_gateway.core.config import get_settings
from storage_gateway.core.logging import configure_logging
from storage_gateway.services.buckets import BucketResolver
from storage_gateway.services.storage import StorageService, build_storage_service


def create_app(storage: StorageService | None = None) -> FastAPI:
    settings = get_settings()
    configure_logging()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if getattr(app.state, "storage", None) is None:
            app.state.storage = build_storage_service(settings)
        yield

    app = FastAPI(
        debug=settings.debug,
        title="Storage Gateway API",
        lifespan=lifespan,
    )
    app.state.storage = storage
    app.state.bucket_resolver = BucketResolver(settings)

    app.add_middleware(RequestLoggingMiddleware)
    register_exception_handlers(app)

    app.include_router(storage_router.router, prefix=settings.api_prefix)
    app.include_router(avatars_router.router, prefix=settings.api_prefix)
    app.include_router(feedback_router.router, prefix=settings.api_prefix)

    @app.get("/health", tags=["health"])
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    return app


app = create_app()
