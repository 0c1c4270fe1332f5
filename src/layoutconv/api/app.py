"""FastAPI application with lifespan, error mapping and router mounting."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from layoutconv import __version__
from layoutconv.api.routes import catalog, health, sessions
from layoutconv.core.config import AppSettings
from layoutconv.core.exceptions import (
    CacheError,
    CatalogError,
    ConfigurationError,
    CoreFieldError,
    DuplicateFieldError,
    ExtractionError,
    FileStoreError,
    InputError,
    LayoutConvError,
    OutputFieldError,
    SessionError,
    SessionNotFoundError,
    UnsupportedFileTypeError,
)
from layoutconv.core.logging_config import configure_logging, get_logger
from layoutconv.core.protocols import ICacheBackend, IFileStore, IModelProvider
from layoutconv.ingest.loader import DatasetLoader
from layoutconv.ingest.pdf_extractor import PdfTableExtractor, create_model_provider
from layoutconv.persistence import create_cache, create_file_store
from layoutconv.session import SessionRegistry

logger = get_logger(__name__)

# Most specific first; the first isinstance match wins.
_STATUS_BY_ERROR: tuple[tuple[type[LayoutConvError], int], ...] = (
    (SessionNotFoundError, status.HTTP_404_NOT_FOUND),
    (UnsupportedFileTypeError, status.HTTP_415_UNSUPPORTED_MEDIA_TYPE),
    (InputError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (ExtractionError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (ConfigurationError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (DuplicateFieldError, status.HTTP_409_CONFLICT),
    (CoreFieldError, status.HTTP_409_CONFLICT),
    (CatalogError, status.HTTP_400_BAD_REQUEST),
    (OutputFieldError, status.HTTP_400_BAD_REQUEST),
    (SessionError, status.HTTP_409_CONFLICT),
    (CacheError, status.HTTP_502_BAD_GATEWAY),
    (FileStoreError, status.HTTP_502_BAD_GATEWAY),
)


def status_for(exc: LayoutConvError) -> int:
    for error_type, code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def layoutconv_error_handler(request: Request, exc: LayoutConvError) -> JSONResponse:
    code = status_for(exc)
    issues = [i.model_dump() for i in exc.issues] if isinstance(exc, ConfigurationError) else []
    if code >= 500:
        logger.error("Request failed", extra={"path": request.url.path, "error": str(exc)})
    return JSONResponse(status_code=code, content={"detail": str(exc), "issues": issues})


def create_app(
    settings: AppSettings | None = None,
    *,
    cache: ICacheBackend | None = None,
    file_store: IFileStore | None = None,
    model_provider: IModelProvider | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Backends not passed in are built from settings when the app starts.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Initialize and tear down application resources."""
        app_settings = settings or AppSettings()
        configure_logging(level=app_settings.log_level)
        app_cache = cache if cache is not None else create_cache(app_settings)
        provider = model_provider if model_provider is not None else create_model_provider(app_settings.extraction)
        extractor = PdfTableExtractor(provider, cache=app_cache, cache_ttl=app_settings.extraction.cache_ttl_seconds)

        registry = SessionRegistry(config=app_settings.conversion)
        app.state.settings = app_settings
        app.state.registry = registry
        app.state.loader = DatasetLoader(registry.catalog, extractor)
        app.state.file_store = file_store if file_store is not None else create_file_store(app_settings)
        logger.info(
            "layoutconv API started",
            extra={"environment": app_settings.environment, "cache_backend": app_settings.cache_backend},
        )
        yield

    app = FastAPI(
        title="layoutconv Flat-File Conversion Service",
        version=__version__,
        lifespan=lifespan,
    )
    app.add_exception_handler(LayoutConvError, layoutconv_error_handler)
    app.include_router(health.router)
    app.include_router(catalog.router, prefix="/catalog")
    app.include_router(sessions.router, prefix="/sessions")
    return app
