"""FastAPI application for the certificate service."""

import logging
from contextlib import asynccontextmanager

import fastapi
from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded

from core.config import get_settings
from core.errors import CertforgeError, EncodingError
from core.logger import configure_logging
from core.middleware import SecurityHeadersMiddleware
from core.ratelimit import limiter, rate_limit_exceeded_handler
from core.store import create_store
from core.templates import templates
from rendering.backgrounds import close_background_client
from routes import (
    certificates_router,
    health_router,
    participants_router,
    preview_router,
    templates_router,
    verify_router,
)

configure_logging()
logger = logging.getLogger(__name__)


async def certforge_exception_handler(
    request: Request, exc: Exception
) -> JSONResponse:
    """Map the certificate error taxonomy to HTTP responses."""
    if not isinstance(exc, CertforgeError):
        return JSONResponse(status_code=500, content={"detail": "Unexpected error"})

    log = logger.error if isinstance(exc, EncodingError) else logger.warning
    log(
        "request.failed",
        extra={
            "error_type": type(exc).__name__,
            "error": exc.message,
            "path": request.url.path,
            "method": request.method,
            "status_code": exc.status_code,
        },
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last-resort handler for unhandled exceptions."""
    logger.exception(
        "unhandled.exception",
        extra={
            "exc_type": type(exc).__name__,
            "path": request.url.path,
            "method": request.method,
        },
    )
    return JSONResponse(
        status_code=500,
        content={"detail": "An unexpected error occurred. Please try again."},
    )


async def validation_exception_handler(
    request: Request, exc: Exception
) -> JSONResponse:
    """Handler for request validation errors."""
    if not isinstance(exc, RequestValidationError):
        return JSONResponse(status_code=500, content={"detail": "Unexpected error"})

    logger.warning(
        "request.validation_error",
        extra={
            "path": request.url.path,
            "method": request.method,
            "error_count": len(exc.errors()),
        },
    )
    return JSONResponse(
        status_code=422,
        content={
            "detail": "Invalid request",
            "errors": [
                f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
                for error in exc.errors()
            ],
        },
    )


@asynccontextmanager
async def lifespan(app: fastapi.FastAPI):
    """Create the record store client at startup, close clients on shutdown."""
    app.state.store = create_store()
    logger.info("init.complete", extra={"environment": _settings.environment})

    try:
        yield
    finally:
        await close_background_client()
        await app.state.store.aclose()


_settings = get_settings()

app = fastapi.FastAPI(
    title="Certificate Service API",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs" if _settings.enable_docs or _settings.debug else None,
    redoc_url="/redoc" if _settings.enable_docs or _settings.debug else None,
    openapi_url=("/openapi.json" if _settings.enable_docs or _settings.debug else None),
)

app.state.templates = templates
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
app.add_exception_handler(CertforgeError, certforge_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, global_exception_handler)

app.add_middleware(GZipMiddleware, minimum_size=500)
app.add_middleware(SecurityHeadersMiddleware)

if _settings.allowed_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "HX-Request", "HX-Target", "HX-Current-URL"],
        expose_headers=[
            "Content-Disposition",
            "X-Bulk-Success",
            "X-Bulk-Failed",
            "X-Bulk-Duplicates",
            "X-Bulk-Summary",
        ],
        max_age=600,
    )

app.include_router(health_router)
app.include_router(templates_router)
app.include_router(participants_router)
app.include_router(certificates_router)
app.include_router(verify_router)
app.include_router(preview_router)
