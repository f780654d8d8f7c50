"""
================================================================================
FILE: tenant_rag/api/main.py
================================================================================

PURPOSE:
    FastAPI application factory. Creates and configures the FastAPI app,
    registers routes, exception handlers and the request-id middleware, and
    builds the backend (settings -> container -> RAG service) once at startup.

STARTUP SEQUENCE (lifespan):
    1. Load Settings (env / .env) unless one was passed in
    2. Configure logging (LOG_LEVEL / LOG_FORMAT)
    3. Initialize ServiceContainer - builds every provider via build_provider()
    4. Wire RAGService from the container
    5. Store all three on app.state (read by api.dependencies)

ERROR MAPPING:
    ValidationError / InvalidTenantError -> 400
    UnsupportedModelError                -> 422
    CanceledError                        -> 504
    ProviderError                        -> 502
    ConfigurationError / anything else   -> 500

KEY FACTS:
    - Startup happens ONCE; providers are never rebuilt per request
    - Error at startup = server fails to start (catches config errors early)
    - Every response carries X-Request-ID
    - Tests: create_app(settings=..., container=ServiceContainer(settings, <fakes>))
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from tenant_rag import __version__
from tenant_rag.api import routes
from tenant_rag.config.settings import Settings
from tenant_rag.container.service_container import ServiceContainer
from tenant_rag.core.exceptions import (
    CanceledError,
    ConfigurationError,
    ProviderError,
    RAGPipelineException,
    UnsupportedModelError,
    ValidationError,
)
from tenant_rag.pipeline.rag import RAGService
from tenant_rag.utils import configure_logging, generate_request_id

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

# most specific first
_STATUS_BY_ERROR = (
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (UnsupportedModelError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (CanceledError, status.HTTP_504_GATEWAY_TIMEOUT),
    (ProviderError, status.HTTP_502_BAD_GATEWAY),
    (ConfigurationError, status.HTTP_500_INTERNAL_SERVER_ERROR),
)


def status_for(exc: RAGPipelineException) -> int:
    for error_type, code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def create_app(
    settings: Optional[Settings] = None,
    container: Optional[ServiceContainer] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Pre-built settings (default: loaded from env at startup)
        container: Pre-built container (default: built from settings at startup)
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app_settings = settings or Settings()
        configure_logging(level=app_settings.log_level, log_format=app_settings.log_format)

        logger.info("=" * 80)
        logger.info("APPLICATION STARTUP")
        logger.info("=" * 80)

        app_container = container or ServiceContainer(app_settings)
        try:
            await app_container.initialize()
            service = RAGService.from_container(app_container, app_settings)
        except Exception as e:
            logger.error("STARTUP FAILED: %s", str(e), exc_info=True)
            await app_container.shutdown()
            raise

        app.state.settings = app_settings
        app.state.container = app_container
        app.state.rag_service = service
        logger.info("APPLICATION STARTUP COMPLETE (providers=%s)", app_container.describe())

        try:
            yield
        finally:
            logger.info("APPLICATION SHUTDOWN")
            await app_container.shutdown()
            app.state.rag_service = None
            logger.info("APPLICATION SHUTDOWN COMPLETE")

    app = FastAPI(
        title="Tenant RAG Backend",
        description="Tenant-aware indexing, semantic retrieval and model routing",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[REQUEST_ID_HEADER],
    )

    # =========================================================================
    # EXCEPTION HANDLERS
    # =========================================================================
    @app.exception_handler(RAGPipelineException)
    async def rag_exception_handler(request: Request, exc: RAGPipelineException):
        """Render core errors with the status their type maps to."""
        request_id = getattr(request.state, "request_id", None)
        code = status_for(exc)
        log = logger.error if code >= 500 else logger.warning
        log(
            "%s: %s",
            exc.__class__.__name__,
            exc.message,
            extra={
                "request_id": request_id,
                "error_code": exc.error_code,
                "component": exc.component,
            },
        )
        body = exc.to_dict()
        body.pop("context", None)
        body["request_id"] = request_id
        return JSONResponse(status_code=code, content=body)

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Handle unexpected exceptions."""
        request_id = getattr(request.state, "request_id", None) or generate_request_id()
        logger.error("Unexpected error: %s", str(exc), exc_info=True, extra={"request_id": request_id})
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": "InternalServerError",
                "error_code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred",
                "component": None,
                "request_id": request_id,
            },
            headers={REQUEST_ID_HEADER: request_id},
        )

    # =========================================================================
    # MIDDLEWARE
    # =========================================================================
    @app.middleware("http")
    async def add_request_id_middleware(request: Request, call_next):
        """Add unique request ID for correlation tracking."""
        request.state.request_id = request.headers.get(REQUEST_ID_HEADER) or generate_request_id()
        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request.state.request_id
        return response

    # =========================================================================
    # ROUTES
    # =========================================================================
    app.include_router(routes.router)

    return app


# Create the app instance when module is imported (settings load at startup).
app = create_app()


def main() -> None:
    """Console entry point: serve the app with uvicorn."""
    import uvicorn

    settings = Settings()
    uvicorn.run(
        "tenant_rag.api.asgi:app",
        host=settings.server_host,
        port=settings.server_port,
        log_level=settings.log_level.lower(),
    )
