"""FastAPI application entry point."""

import logging
import traceback
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from sqlalchemy.exc import SQLAlchemyError

from grocery.api import (
    activities,
    auth,
    categories,
    collaboration,
    items,
    lists,
    notifications,
    users,
    websocket,
)
from grocery.config import Settings, get_settings
from grocery.database import Database
from grocery.exceptions import AppError, DatabaseError, RateLimitError, ValidationError
from grocery.rate_limit import limiter

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle application startup and shutdown events."""
    logger.info(f"Starting grocery list API ({app.state.settings.environment})")
    yield
    # Shutdown: release pooled connections
    app.state.database.dispose()


def _error_response(
    request: Request, error: AppError, exc: Exception | None = None
) -> JSONResponse:
    content = {
        "success": False,
        "error": error.name,
        "message": error.message,
    }
    if error.details is not None:
        content["details"] = error.details
    if exc is not None and not request.app.state.settings.is_production:
        content["traceback"] = traceback.format_exception(exc)
    return JSONResponse(status_code=error.status_code, content=jsonable_encoder(content))


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        """Render application errors as the standard envelope."""
        if exc.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
            logger.error(f"{exc.name}: {exc.message}", exc_info=exc)
            return _error_response(request, exc, exc)
        return _error_response(request, exc)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Handle request validation errors."""
        errors = [
            {
                "field": ".".join(str(loc) for loc in error["loc"]),
                "message": error["msg"],
                "type": error["type"],
            }
            for error in exc.errors()
        ]
        return _error_response(
            request, ValidationError("Request validation failed", details=errors)
        )

    @app.exception_handler(SQLAlchemyError)
    async def sqlalchemy_exception_handler(
        request: Request, exc: SQLAlchemyError
    ) -> JSONResponse:
        """Handle database errors."""
        logger.error(f"Database error: {exc}", exc_info=True)
        return _error_response(request, DatabaseError(), exc)

    @app.exception_handler(RateLimitExceeded)
    async def rate_limit_exceeded_handler(
        request: Request, exc: RateLimitExceeded
    ) -> JSONResponse:
        """Handle requests over a per-client limit."""
        logger.warning(f"Rate limit exceeded: {get_remote_address(request)} {request.url.path}")
        return _error_response(request, RateLimitError(details={"limit": str(exc.detail)}))

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Handle unexpected errors."""
        logger.error(f"Unexpected error: {exc}", exc_info=True)
        return _error_response(request, AppError(), exc)


def create_app(settings: Settings | None = None, database: Database | None = None) -> FastAPI:
    """Build the application around an owned database pool."""
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Grocery List API",
        description="Shared grocery lists with permissions, custom categories and activity",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.database = database or Database.from_settings(settings)
    app.state.limiter = limiter

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    # Register routers; collaboration before categories so /suggestions is not
    # captured by the category id routes
    app.include_router(auth.router)
    app.include_router(lists.router)
    app.include_router(items.router)
    app.include_router(collaboration.router)
    app.include_router(categories.router)
    app.include_router(activities.router)
    app.include_router(notifications.router)
    app.include_router(users.router)
    app.include_router(websocket.router)

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy", "environment": settings.environment}

    return app


app = create_app()
