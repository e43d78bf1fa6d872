"""Health check endpoints."""

from fastapi import APIRouter, HTTPException, Request
from starlette import status

from core.ratelimit import limiter
from core.store import Store
from schemas import DetailedHealthResponse, HealthResponse

router = APIRouter(tags=["health"])

SERVICE_NAME = "certforge-api"


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """Health check endpoint."""
    return HealthResponse(status="healthy", service=SERVICE_NAME)


@router.get("/health/detailed", response_model=DetailedHealthResponse)
@limiter.limit("30/minute")
async def health_detailed(request: Request, store: Store) -> DetailedHealthResponse:
    """Detailed health check with component status.

    Always returns 200 - check individual component statuses for health.
    """
    store_ok = await store.ping()
    return DetailedHealthResponse(
        status="healthy" if store_ok else "unhealthy",
        service=SERVICE_NAME,
        store=store_ok,
    )


@router.get(
    "/ready",
    response_model=HealthResponse,
    responses={
        503: {
            "description": "Service unavailable - record store unreachable",
            "content": {
                "application/json": {"example": {"detail": "Record store unavailable"}}
            },
        }
    },
)
@limiter.limit("30/minute")
async def ready(request: Request, store: Store) -> HealthResponse:
    """Readiness endpoint.

    Returns 200 only when the record store answers a trivial query.
    """
    if not await store.ping():
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Record store unavailable",
        )
    return HealthResponse(status="ready", service=SERVICE_NAME)
