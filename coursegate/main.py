"""coursegate API - Main Application."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from coursegate.config import Settings, get_settings
from coursegate.content.router import (
    courses_router,
    quizzes_router,
    resources_router,
    videos_router,
)
from coursegate.content.service import ContentService
from coursegate.core.context import get_request_id
from coursegate.core.database import init_async_cassandra, shutdown_async_cassandra
from coursegate.core.logging import configure_structlog, get_logger
from coursegate.core.middleware import RequestContextMiddleware
from coursegate.gating.router import router as timeline_router
from coursegate.gating.service import GatingService
from coursegate.health import router as health_router
from coursegate.progress.router import (
    enrollments_router,
    quiz_attempts_router,
    resource_progress_router,
    video_progress_router,
)
from coursegate.progress.service import ProgressService


# Configure logging early (before creating logger)
settings = get_settings()
configure_structlog(settings, log_dir=Path(settings.log_dir))

logger = get_logger(__name__)


def init_services(app: FastAPI, session, settings: Settings) -> None:
    """Build the services on top of a Cassandra session and expose them on
    ``app.state`` for dependency injection."""
    content_service = ContentService(
        session=session,
        keyspace=settings.cassandra_keyspace,
        policy=settings.sequencing_policy,
    )
    progress_service = ProgressService(
        session=session,
        keyspace=settings.cassandra_keyspace,
        content=content_service,
        unlock_threshold=settings.unlock_threshold_percent,
    )
    app.state.content_service = content_service
    app.state.progress_service = progress_service
    app.state.gating_service = GatingService(
        content=content_service,
        progress=progress_service,
        unlock_threshold=settings.unlock_threshold_percent,
        include_resources=settings.aggregate_includes_resources,
    )
    logger.info(
        "services_initialized",
        sequencing_policy=settings.sequencing_policy,
        unlock_threshold=settings.unlock_threshold_percent,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    settings = get_settings()
    logger.info(
        "starting_application",
        app_name=settings.app_name,
        version=settings.app_version,
        environment=settings.environment,
    )

    try:
        session = await init_async_cassandra()
        logger.info("cassandra_initialized")
        init_services(app, session, settings)
    except Exception as e:
        logger.warning(
            "database_init_skipped",
            error=str(e),
            message="Running without database connection",
        )

    yield

    # Shutdown
    logger.info("shutting_down_application")
    await shutdown_async_cassandra()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    # debug=False keeps Starlette's ServerErrorMiddleware from rendering
    # stack traces; the handlers below log details and return safe bodies.
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Sequential content gating and watch-time progress",
        debug=False,
        lifespan=lifespan,
        default_response_class=ORJSONResponse,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        openapi_url="/openapi.json" if settings.is_development else None,
    )

    # Request context middleware (must be added first - outermost)
    app.add_middleware(
        RequestContextMiddleware,
        log_requests=settings.log_requests,
        exclude_paths=settings.log_exclude_paths,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
        max_age=settings.cors_max_age,
    )

    def _get_request_id_safe(request: Request) -> str | None:
        """Get request_id from request state or context."""
        if hasattr(request.state, "request_id"):
            return request.state.request_id
        return get_request_id()

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> ORJSONResponse:
        """Handle HTTP exceptions with safe error messages."""
        request_id = _get_request_id_safe(request)

        logger.warning(
            "http_exception",
            status_code=exc.status_code,
            detail=str(exc.detail),
            path=request.url.path,
            method=request.method,
        )

        return ORJSONResponse(
            status_code=exc.status_code,
            content={
                "error": True,
                "message": str(exc.detail)
                if exc.status_code < status.HTTP_500_INTERNAL_SERVER_ERROR
                else "Internal server error",
                "status_code": exc.status_code,
                "request_id": request_id,
            },
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> ORJSONResponse:
        """Handle validation errors with safe error messages."""
        request_id = _get_request_id_safe(request)

        logger.warning(
            "validation_error",
            errors=exc.errors(),
            path=request.url.path,
            method=request.method,
        )

        return ORJSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={
                "error": True,
                "message": "Validation error",
                "status_code": 422,
                "request_id": request_id,
                "details": [
                    {
                        "field": ".".join(str(loc) for loc in err.get("loc", [])),
                        "message": err.get("msg", "Invalid value"),
                    }
                    for err in exc.errors()
                ],
            },
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(
        request: Request, exc: Exception
    ) -> ORJSONResponse:
        """Catch-all handler for unhandled exceptions.

        Full details go to the log; the response body never carries them.
        """
        request_id = _get_request_id_safe(request)

        logger.exception(
            "unhandled_exception",
            error_type=type(exc).__name__,
            error_message=str(exc),
            path=request.url.path,
            method=request.method,
        )

        return ORJSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": True,
                "message": "An unexpected error occurred. Please try again later.",
                "status_code": 500,
                "request_id": request_id,
            },
        )

    # Include routers
    app.include_router(health_router)
    app.include_router(enrollments_router)
    app.include_router(timeline_router)
    app.include_router(courses_router)
    app.include_router(video_progress_router)
    app.include_router(videos_router)
    app.include_router(quiz_attempts_router)
    app.include_router(quizzes_router)
    app.include_router(resource_progress_router)
    app.include_router(resources_router)

    @app.get("/", include_in_schema=False)
    async def root(request: Request) -> dict[str, str]:
        """Root endpoint."""
        return {
            "message": "coursegate API",
            "version": settings.app_version,
            "docs": f"{request.url}docs",
        }

    return app


app = create_app()
