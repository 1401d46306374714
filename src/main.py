from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from src.application.dtos.common_dto import HealthResponse, RootResponse
from src.domain.services.background_removal_service import BackgroundRemovalService
from src.infrastructure.api.middlewares import add_default_middlewares, add_exception_handlers
from src.infrastructure.api.routes.auth_routes import router as auth_router
from src.infrastructure.api.routes.image_routes import router as image_router
from src.infrastructure.config import Settings
from src.infrastructure.database.memory_store import MemoryStore
from src.infrastructure.database.postgres_client import PostgresClient
from src.infrastructure.database.supabase_client import create_supabase_client
from src.infrastructure.storage.local_upload_storage import LocalUploadStorage

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _lifespan(app: FastAPI):
    upload_dir = app.state.uploads.upload_dir
    try:
        upload_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        # uploads will fail with a 500 until this is fixed
        logger.warning("Upload directory %s is not usable: %s", upload_dir, exc)
    yield
    if app.state.pg_client is not None:
        app.state.pg_client.close()


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or Settings.from_env()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    app = FastAPI(
        title="Cutout Backend",
        version="0.1.0",
        description="""
        ## Cutout Backend API

        Upload images, keep a reference to each file, and view or delete them.
        Every upload goes through a (placeholder) background removal step.

        ### Authentication
        All image endpoints require a Bearer token in the Authorization header:
        ```
        Authorization: Bearer your-jwt-token
        ```

        ### Error Responses
        - **400 Bad Request**: Missing or rejected file, or a non-multipart form
        - **401 Unauthorized**: Missing or invalid authentication token
        - **404 Not Found**: Image does not exist or belongs to another user
        - **500 Internal Server Error**: Unexpected server error
        """,
        lifespan=_lifespan,
    )

    app.state.settings = settings
    app.state.store = MemoryStore()
    app.state.supabase = create_supabase_client(settings)
    app.state.pg_client = PostgresClient() if settings.use_local_db else None
    app.state.uploads = LocalUploadStorage(
        upload_dir=settings.upload_dir,
        public_prefix=settings.upload_public_prefix,
    )
    app.state.background_removal = BackgroundRemovalService(
        delay_seconds=settings.processing_delay_seconds,
        public_prefix=settings.upload_public_prefix,
    )
    if settings.in_memory:
        logger.info("No database configured, using the in-memory store")

    add_default_middlewares(app, settings)
    add_exception_handlers(app)

    @app.get(
        "/",
        response_model=RootResponse,
        summary="API Root",
        description="Get basic information about the API",
    )
    def root():
        """Get API root information."""
        return RootResponse(status="ok", service="cutout-backend", version=app.version)

    @app.get(
        "/health",
        response_model=HealthResponse,
        summary="Health Check",
        description="Check if the API service is running and healthy",
    )
    def health():
        """Check API health status."""
        return HealthResponse(status="healthy")

    app.include_router(auth_router)
    app.include_router(image_router)
    app.mount(
        settings.upload_public_prefix,
        StaticFiles(directory=settings.upload_dir, check_dir=False),
        name="uploads",
    )
    return app


app = create_app()
