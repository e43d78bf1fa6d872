"""Rate limiting configuration using slowapi.

SCALABILITY NOTES:
- Production MUST use Redis: set RATELIMIT_STORAGE_URI="redis://host:port/db"
- memory:// storage does NOT work with multiple workers/replicas
"""

import logging

from fastapi import Request, Response
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.responses import JSONResponse

from core.config import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()

if (
    settings.environment != "development"
    and settings.ratelimit_storage_uri == "memory://"
):
    logger.warning(
        "SECURITY WARNING: Using in-memory rate limiting in %s environment. "
        "This does NOT work correctly with multiple workers/replicas. "
        "Set RATELIMIT_STORAGE_URI to a Redis URL for distributed rate limiting.",
        settings.environment,
    )

_using_redis = settings.ratelimit_storage_uri.startswith("redis://")

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=["100/minute"],
    storage_uri=settings.ratelimit_storage_uri,
    in_memory_fallback_enabled=_using_redis,
    key_prefix="certforge:",
)


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> Response:
    """Custom handler for rate limit exceeded errors."""
    logger.warning(
        f"Rate limit exceeded for {get_remote_address(request)}: {exc.detail}"
    )
    return JSONResponse(
        status_code=429,
        content={
            "detail": "Rate limit exceeded. Please slow down.",
            "retry_after": exc.detail,
        },
        headers={"Retry-After": str(getattr(exc, "retry_after", 60))},
    )


# Single certificate renders
EXPORT_LIMIT = "30/minute"

# Bulk archives decode one background per participant
BULK_EXPORT_LIMIT = "5/minute"
