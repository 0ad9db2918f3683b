"""FastAPI main application with app factory and route configuration."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import messages
from .config import Settings
from .deps import get_settings
from .errors import ErrorCode, InvalidPayloadError
from .routes import categories, tasks
from .schemas import HealthResponse, OperationResult
from .services.category_service import get_category_service, initialize_category_service
from .services.task_service import get_task_service, initialize_task_service
from .utils.logging import configure_request_logging, log_shutdown_info, log_startup_info, setup_logging

logger = logging.getLogger(__name__)

VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager for startup and shutdown events.

    Args:
        app: FastAPI application instance
    """
    settings: Settings = app.state.settings

    try:
        setup_logging(settings)
        log_startup_info(settings)

        category_service = initialize_category_service()
        logger.info("Category service initialized")

        initialize_task_service(category_repository=category_service.repository)
        logger.info("Task service initialized")

        logger.info("Application startup completed successfully")

    except Exception as e:
        logger.error(f"Error during application startup: {str(e)}")
        raise

    yield

    log_shutdown_info(settings)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Settings to run with; the environment-loaded ones by default

    Returns:
        Configured FastAPI application instance
    """
    if settings is None:
        settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Task management service with validated task lifecycle rules",
        version=VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        debug=settings.debug,
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.middleware("http")(configure_request_logging())

    # Custom exception handlers
    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """Handle HTTP exceptions with proper logging."""
        logger.warning(
            f"HTTP {exc.status_code}: {exc.detail} for {request.method} {request.url}"
        )

        return JSONResponse(
            status_code=exc.status_code,
            content={
                "success": False,
                "message": str(exc.detail),
                "status_code": exc.status_code,
                "path": str(request.url),
            },
        )

    @app.exception_handler(InvalidPayloadError)
    async def invalid_payload_handler(request: Request, exc: InvalidPayloadError):
        logger.warning(f"Invalid body for {request.method} {request.url}: {str(exc)}")

        result = OperationResult.fail(messages.INVALID_JSON, ErrorCode.INVALID_JSON)
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=result.to_response(),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ):
        """Handle query and path parameter validation errors."""
        logger.warning(
            f"Validation error for {request.method} {request.url}: {exc.errors()}"
        )

        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={
                "success": False,
                "message": messages.INVALID_INPUT,
                "error_code": ErrorCode.VALIDATION_ERROR.value,
                "details": jsonable_encoder(exc.errors()),
                "path": str(request.url),
            },
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Handle unexpected exceptions."""
        logger.error(
            f"Unexpected error for {request.method} {request.url}: {str(exc)}",
            exc_info=True,
        )

        result = OperationResult.fail(messages.INTERNAL_ERROR, ErrorCode.INTERNAL_ERROR)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=result.to_response(),
        )

    @app.get("/healthz", tags=["health"])
    async def health_check():
        """Health check endpoint for monitoring and load balancers.

        Returns:
            Health status information
        """
        task_service = get_task_service()
        category_service = get_category_service()

        health = HealthResponse(
            version=VERSION,
            services={
                "task_service": "initialized" if task_service else "not_initialized",
                "category_service": "initialized" if category_service else "not_initialized",
            },
        )
        if not task_service or not category_service:
            health.status = "degraded"

        return health.model_dump(mode="json")

    @app.get("/", tags=["root"])
    async def root():
        """Root endpoint with API information."""
        return {
            "name": settings.app_name,
            "version": VERSION,
            "docs_url": "/docs",
            "health_check": "/healthz",
            "endpoints": {
                "tasks": "/api/tasks",
                "categories": "/api/categories",
            },
        }

    app.include_router(tasks.router, prefix="/api/tasks", tags=["tasks"])
    app.include_router(categories.router, prefix="/api/categories", tags=["categories"])

    logger.info("FastAPI application created and configured")

    return app


# Create the app instance
app = create_app()
