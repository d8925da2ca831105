"""
Gloo Backend Service - Main API Server
Recipes, social features and the recipe moderation workflow
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging
import structlog
from typing import AsyncGenerator

from core.config import settings
from core.database import init_db, close_db, create_tables
from core.errors import (
    ServiceError, NotFoundError, PermissionDeniedError, ConflictError,
    ValidationFailedError, InvalidTransitionError, InvalidTokenError, IdentityLookupError,
)
from api.routes import api_router
from middleware.security import SecurityMiddleware
from middleware.logging import LoggingMiddleware, get_request_id
from services.identity_service import close_identity_provider
from utils.responses import error_response

# Configure structured logging
structlog.configure(
    processors=[
        structlog.contextvars.merge_contextvars,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.add_log_level,
        structlog.processors.JSONRenderer()
        if settings.LOG_FORMAT == "json"
        else structlog.dev.ConsoleRenderer(),
    ],
    wrapper_class=structlog.make_filtering_bound_logger(
        logging.getLevelName(settings.LOG_LEVEL.upper())
    ),
    logger_factory=structlog.WriteLoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger()

# Status codes for domain errors that reach the application unhandled
SERVICE_ERROR_STATUS = (
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (PermissionDeniedError, status.HTTP_403_FORBIDDEN),
    (InvalidTokenError, status.HTTP_401_UNAUTHORIZED),
    (IdentityLookupError, status.HTTP_502_BAD_GATEWAY),
    (ConflictError, status.HTTP_400_BAD_REQUEST),
    (ValidationFailedError, status.HTTP_400_BAD_REQUEST),
    (InvalidTransitionError, status.HTTP_400_BAD_REQUEST),
)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan events"""
    # Startup
    logger.info("Starting Gloo Backend Service", environment=settings.ENVIRONMENT)

    await init_db()
    if settings.DATABASE_AUTO_CREATE:
        await create_tables()

    logger.info("Backend service startup complete")

    yield

    # Shutdown
    logger.info("Shutting down Gloo Backend Service")
    await close_identity_provider()
    await close_db()
    logger.info("Backend service shutdown complete")


# Create FastAPI application
app = FastAPI(
    title="Gloo Backend Service",
    description="Recipe sharing with admin moderation, social features and notifications",
    version=settings.VERSION,
    docs_url="/docs" if settings.is_development else None,
    redoc_url="/redoc" if settings.is_development else None,
    lifespan=lifespan
)

app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.allowed_hosts)

# CORS Middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
    expose_headers=["X-Process-Time", "X-Request-ID"]
)

# Custom Middleware
app.add_middleware(SecurityMiddleware)
app.add_middleware(LoggingMiddleware)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Every HTTP error leaves in the response envelope"""
    return JSONResponse(
        status_code=exc.status_code,
        content=error_response(exc.detail),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    details = [
        {
            "field": ".".join(str(part) for part in error["loc"] if part != "body"),
            "message": error["msg"],
        }
        for error in exc.errors()
    ]
    logger.info("Request validation failed", path=request.url.path, errors=len(details))
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_response("Validation failed", details=details),
    )


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    status_code = next(
        (code for error_type, code in SERVICE_ERROR_STATUS if isinstance(exc, error_type)),
        status.HTTP_400_BAD_REQUEST,
    )
    if status_code >= 500:
        logger.error("Service dependency failed", path=request.url.path, error=exc.message)
    return JSONResponse(status_code=status_code, content=error_response(exc.message))


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler"""
    logger.error(
        "Unhandled exception",
        exception=str(exc),
        path=request.url.path,
        method=request.method
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_response(
            "Internal server error",
            "An unexpected error occurred",
            request_id=get_request_id(),
        )
    )


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "service": "Gloo Backend Service",
        "version": settings.VERSION,
        "status": "healthy",
        "environment": settings.ENVIRONMENT
    }


app.include_router(api_router, prefix="/api/v1")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.is_development,
        log_config=None  # Use structlog instead
    )
