"""
Main FastAPI application module.

This module creates and configures the FastAPI application instance.
Design Rationale:
- Factory pattern for app creation
- Middleware for request IDs and timing
- Domain errors mapped to HTTP status codes in one place
- Scheduler lifecycle tied to the application lifespan
"""

import time
from contextlib import asynccontextmanager
from uuid import uuid4

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import get_settings
from app.core.exceptions import MatchmakingError
from app.core.logging import configure_logging, get_logger, LoggingContext
from app.core.database import create_tables
from app.api.v1 import api_router
from app.models.schemas import ErrorResponse
from app.services.scheduler import start_scheduler, shutdown_scheduler

# Get settings and configure logging
settings = get_settings()
configure_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Creates tables on startup and runs the popularity scan scheduler while
    the application is up.
    """
    logger.info("Application starting up", app_name=settings.APP_NAME, environment=settings.ENVIRONMENT)

    try:
        await create_tables()
        logger.info("Database tables created/verified")

    except Exception as e:
        logger.error("Failed to initialize database", error=str(e))
        raise

    start_scheduler()

    yield  # Application is running

    shutdown_scheduler()
    logger.info("Application shutting down")


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", None)


def create_app() -> FastAPI:
    """
    Create and configure FastAPI application.

    Returns:
        Configured FastAPI application instance
    """
    app = FastAPI(
        title=settings.APP_NAME,
        description="Matchmaking backend: profiles, likes and dislikes, random recommendations",
        version="1.0.0",
        docs_url="/docs" if settings.ENVIRONMENT != "production" else None,
        redoc_url="/redoc" if settings.ENVIRONMENT != "production" else None,
        openapi_url="/openapi.json" if settings.ENVIRONMENT != "production" else None,
        lifespan=lifespan
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_middleware(GZipMiddleware, minimum_size=1000)

    @app.middleware("http")
    async def add_request_id(request: Request, call_next):
        """Add request ID to all requests for tracing."""
        request_id = request.headers.get("X-Request-ID") or str(uuid4())
        request.state.request_id = request_id

        with LoggingContext(request_id=request_id):
            response = await call_next(request)
            response.headers["X-Request-ID"] = request_id
            return response

    @app.middleware("http")
    async def add_process_time_header(request: Request, call_next):
        """Add processing time header to responses."""
        start_time = time.time()
        response = await call_next(request)
        process_time = time.time() - start_time
        response.headers["X-Process-Time"] = str(process_time)
        return response

    @app.exception_handler(MatchmakingError)
    async def matchmaking_exception_handler(request: Request, exc: MatchmakingError):
        """Map domain errors to their HTTP status codes."""
        logger.info(
            "Domain error",
            path=request.url.path,
            error_type=type(exc).__name__,
            status_code=exc.status_code,
            error=exc.message
        )

        headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == status.HTTP_401_UNAUTHORIZED else None
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(
                error=exc.message,
                detail=exc.detail,
                request_id=_request_id(request)
            ).model_dump(mode='json'),
            headers=headers
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Handle request validation errors."""
        logger.warning("Request validation error", path=request.url.path, errors=exc.errors())

        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content=ErrorResponse(
                error="Request validation failed",
                detail=str(exc.errors()),
                request_id=_request_id(request)
            ).model_dump(mode='json')
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """Handle HTTP exceptions."""
        logger.warning("HTTP exception", path=request.url.path, status_code=exc.status_code, detail=exc.detail)

        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(
                error=str(exc.detail),
                request_id=_request_id(request)
            ).model_dump(mode='json'),
            headers=getattr(exc, "headers", None)
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Handle general exceptions."""
        logger.error("Unhandled exception", path=request.url.path, error=str(exc), exc_info=True)

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=ErrorResponse(
                error="Internal server error",
                detail="An unexpected error occurred",
                request_id=_request_id(request)
            ).model_dump(mode='json')
        )

    app.include_router(api_router, prefix=settings.API_V1_STR)

    @app.get("/")
    async def root():
        """Root endpoint with application information."""
        return {
            "name": settings.APP_NAME,
            "version": "1.0.0",
            "docs": "/docs" if settings.ENVIRONMENT != "production" else None,
            "health": f"{settings.API_V1_STR}/health"
        }

    return app


# Create the application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.HOST,
        port=settings.PORT,
        workers=settings.WORKERS,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower()
    )
