"""Public certificate verification (QR code landing page and JSON lookup)."""

from fastapi import APIRouter, Path, Request
from fastapi.responses import HTMLResponse
from slowapi.util import get_remote_address

from core.ratelimit import limiter
from core.store import Store
from core.templates import templates
from schemas import VerificationResult
from services.participants_service import ScanContext, verify_participant

router = APIRouter(tags=["verify"])


def _scan_context(request: Request) -> ScanContext:
    return ScanContext(
        ip_address=get_remote_address(request),
        user_agent=request.headers.get("user-agent"),
        referrer=request.headers.get("referer"),
    )


@router.get("/verify/{verification_id}", response_class=HTMLResponse)
@limiter.limit("60/minute")
async def verify_page(
    request: Request,
    store: Store,
    verification_id: str = Path(min_length=1, max_length=100),
) -> HTMLResponse:
    """Landing page for scanned QR codes."""
    result = await verify_participant(store, verification_id, _scan_context(request))
    return templates.TemplateResponse(
        request,
        "pages/verify.html",
        {"result": result},
        status_code=200 if result.is_valid else 404,
    )


@router.get("/api/verify/{verification_id}", response_model=VerificationResult)
@limiter.limit("60/minute")
async def verify_endpoint(
    request: Request,
    store: Store,
    verification_id: str = Path(min_length=1, max_length=100),
) -> VerificationResult:
    """Verify a certificate by its verification ID (public endpoint)."""
    return await verify_participant(store, verification_id, _scan_context(request))
