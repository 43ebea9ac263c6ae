"""
FastAPI application entry point for the MentWel authentication service.
"""
from contextlib import asynccontextmanager
from typing import Optional
from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from redis.asyncio import Redis
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging
import structlog
import uvicorn

from .api.auth import router as auth_router
from .container import Container
from .core.config import Settings, get_settings
from .core.database import DatabaseHealthCheck
from .core.exceptions import AuthServiceError
from .core.middleware import RequestTrackingMiddleware, SecurityHeadersMiddleware
from .core.redis import redis_health_check

logger = structlog.get_logger()


def configure_logging(settings: Settings) -> None:
    """Configure structured logging once for the process."""
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.ConsoleRenderer() if settings.DEBUG else structlog.processors.JSONRenderer()
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.DEBUG if settings.DEBUG else logging.INFO
        ),
        logger_factory=structlog.WriteLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def _error_body(message: str, error_code: str, details=None) -> dict:
    body = {"success": False, "message": message, "error_code": error_code}
    if details is not None:
        body["details"] = details
    return body


def register_exception_handlers(app: FastAPI, settings: Settings) -> None:
    @app.exception_handler(AuthServiceError)
    async def auth_service_exception_handler(request: Request, exc: AuthServiceError):
        """Map typed service errors to their status code."""
        if exc.status_code >= 500:
            logger.error("Service error", error_code=exc.error_code, detail=exc.detail)
        else:
            logger.info("Request rejected", error_code=exc.error_code, status_code=exc.status_code)
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(exc.detail, exc.error_code, jsonable_encoder(exc.details))
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Handle Pydantic validation errors."""
        logger.warning("Validation error", errors=len(exc.errors()), path=request.url.path)
        body = _error_body("Validation error", "VALIDATION_ERROR")
        body["errors"] = jsonable_encoder(exc.errors())
        return JSONResponse(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, content=body)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """Handle HTTP exceptions."""
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(str(exc.detail), f"HTTP_{exc.status_code}"),
            headers=getattr(exc, "headers", None)
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        """Last resort: never leak internals in production."""
        logger.exception("Unhandled error", error_type=type(exc).__name__)
        message = "Internal server error" if settings.is_production else str(exc) or "Internal server error"
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=_error_body(message, "INTERNAL_ERROR")
        )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.
    Handles startup and shutdown events.
    """
    settings: Settings = app.state.settings
    container: Container = app.state.container

    logger.info("Starting auth service", version=settings.VERSION, environment=settings.ENVIRONMENT)
    try:
        if not container.initialized:
            await container.initialize()
        yield
    finally:
        logger.info("Shutting down auth service")
        await container.cleanup()
        logger.info("Auth service shutdown complete")


def create_app(settings: Optional[Settings] = None, container: Optional[Container] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Application settings, loaded from the environment when omitted
        container: Dependency container; an already initialized one is used as is
    """
    settings = settings or get_settings()
    container = container or Container(settings)

    app = FastAPI(
        title=settings.APP_NAME,
        description="MentWel authentication service",
        version=settings.VERSION,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
        openapi_url="/openapi.json" if settings.DEBUG else None,
        lifespan=lifespan
    )
    app.state.settings = settings
    app.state.container = container

    # Middleware (last added runs first)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.BACKEND_CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
    )
    app.add_middleware(RequestTrackingMiddleware)

    register_exception_handlers(app, settings)

    @app.get("/health", tags=["health"])
    async def health_check():
        """Basic health check endpoint."""
        return {"status": "healthy", "service": "auth-service", "version": settings.VERSION}

    @app.get("/ready", tags=["health"])
    async def readiness_check():
        """Readiness check with dependency validation."""
        checks = {
            "database": await container.get(DatabaseHealthCheck).check_connection(),
            "redis": await redis_health_check(container.get(Redis)),
        }
        all_ready = all(checks.values())
        return JSONResponse(
            status_code=status.HTTP_200_OK if all_ready else status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "ready" if all_ready else "not_ready",
                "checks": checks,
                "service": "auth-service",
                "version": settings.VERSION
            }
        )

    app.include_router(auth_router, prefix=settings.API_V1_STR)
    return app


def _app_factory() -> FastAPI:
    settings = get_settings()
    configure_logging(settings)
    return create_app(settings)


def run():
    """Run the server."""
    settings = get_settings()
    uvicorn.run(
        "mentwel_auth.main:_app_factory",
        factory=True,
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level="debug" if settings.DEBUG else "info",
        access_log=False  # Use structured logging instead
    )


if __name__ == "__main__":
    run()
