"""
ClinicDesk API Main Application

FastAPI application exposing appointment filtering, appointment and
payment creation, and the billing audit trail.
"""

from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncGenerator, Callable

import structlog
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from clinicdesk import __version__
from clinicdesk.billing.audit import AuditTrail
from clinicdesk.config import get_settings, local_now
from clinicdesk.errors import (
    CreationServiceError,
    DataSourceError,
    InvalidTransitionError,
    ValidationError,
)
from clinicdesk.observability.logging import configure_logging
from clinicdesk.services.creation import (
    CreationService,
    InMemoryCreationService,
    build_creation_service,
)
from clinicdesk.services.source import (
    AppointmentSource,
    HttpAppointmentSource,
    InMemoryAppointmentSource,
)
from clinicdesk.api.routes import appointments_router, payments_router

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager for startup/shutdown events."""
    settings = get_settings()

    logger.info(
        "Starting ClinicDesk API",
        env=settings.app.env,
        debug=settings.app.debug,
        mock_backend=settings.backend.use_mock,
    )

    yield

    logger.info("Shutting down ClinicDesk API")
    await app.state.creation_service.aclose()
    await app.state.source.aclose()


def create_app(
    source: AppointmentSource | None = None,
    creation_service: CreationService | None = None,
    audit_trail: AuditTrail | None = None,
    clock: Callable[[], datetime] | None = None,
) -> FastAPI:
    """
    Build the API with its collaborators.

    Anything not passed in is built from settings: in-memory collaborators
    when `CLINIC_BACKEND_USE_MOCK` is true, the HTTP backend otherwise.
    """
    settings = get_settings()
    configure_logging(settings.app.log_level, json_output=settings.app.log_json)

    if settings.backend.use_mock:
        if creation_service is None:
            seed = source.snapshot if isinstance(source, InMemoryAppointmentSource) else None
            creation_service = InMemoryCreationService(snapshot=seed)
        if isinstance(creation_service, InMemoryCreationService):
            if source is None:
                source = InMemoryAppointmentSource(creation_service=creation_service)
            elif isinstance(source, InMemoryAppointmentSource) and source.creation_service is None:
                source.creation_service = creation_service
        if source is None:
            source = InMemoryAppointmentSource()
    else:
        source = source or HttpAppointmentSource.from_settings(settings)
        creation_service = creation_service or build_creation_service(settings)

    app = FastAPI(
        title="ClinicDesk API",
        description="Appointments and billing for the clinic staff dashboard",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.source = source
    app.state.creation_service = creation_service
    app.state.audit_trail = audit_trail if audit_trail is not None else AuditTrail()
    app.state.clock = clock or (lambda: local_now(settings))

    register_error_handlers(app)

    app.include_router(appointments_router, prefix="/v1")
    app.include_router(payments_router, prefix="/v1")

    @app.get("/", tags=["Health"])
    async def root():
        """Root endpoint with API information."""
        return {
            "name": "ClinicDesk API",
            "version": __version__,
            "docs": "/docs",
        }

    @app.get("/health", tags=["Health"])
    async def health_check():
        return {
            "status": "healthy",
            "backend": "mock" if settings.backend.use_mock else settings.backend.base_url,
        }

    return app


# =============================================================================
# Error Handlers
# =============================================================================

def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError):
        return JSONResponse(
            status_code=422,
            content={"detail": exc.message, "errors": exc.errors},
        )

    @app.exception_handler(InvalidTransitionError)
    async def invalid_transition_handler(request: Request, exc: InvalidTransitionError):
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content={"detail": str(exc), "operation": exc.operation, "mode": exc.mode},
        )

    @app.exception_handler(CreationServiceError)
    async def creation_error_handler(request: Request, exc: CreationServiceError):
        logger.error("Creation service error", path=request.url.path, error=str(exc))
        return JSONResponse(
            status_code=status.HTTP_502_BAD_GATEWAY,
            content={"detail": str(exc), "upstream_status": exc.status_code},
        )

    @app.exception_handler(DataSourceError)
    async def data_source_error_handler(request: Request, exc: DataSourceError):
        logger.error("Data source error", path=request.url.path, error=str(exc))
        return JSONResponse(
            status_code=status.HTTP_502_BAD_GATEWAY,
            content={"detail": str(exc)},
        )


app = create_app()
