"""Certificate export endpoints.

Route ordering note: Literal path segments (/bulk, /sample/) are defined
before parameterized segments (/{participant_id}/) to prevent routing conflicts.
"""

from typing import Literal

from fastapi import APIRouter, HTTPException, Query, Request, Response

from core.config import get_settings
from core.ratelimit import BULK_EXPORT_LIMIT, EXPORT_LIMIT, limiter
from core.store import Store
from rendering.qr import render_qr_png
from schemas import BulkExportRequest, BulkQrExportRequest, BulkResult, Template
from services.certificates_service import (
    artifact_filename,
    export_bulk,
    export_certificate,
    export_qr_bulk,
    render_preview_sample,
)
from services.participants_service import get_participant, get_participants
from services.templates_service import get_latest_template, get_template

router = APIRouter(prefix="/api/certificates", tags=["certificates"])


def _get_cache_control() -> str:
    """Get appropriate Cache-Control header value based on environment."""
    settings = get_settings()
    if settings.environment.lower() == "development":
        return "no-store"
    return "private, max-age=300"


def _bulk_headers(result: BulkResult) -> dict[str, str]:
    return {
        "X-Bulk-Success": str(result.success_count),
        "X-Bulk-Failed": str(result.failed_count),
        "X-Bulk-Duplicates": str(result.duplicate_count),
        "X-Bulk-Summary": result.summary,
    }


async def _resolve_template(store: Store, template_id: str | None) -> Template:
    """The requested template, or the most recent one when none is given."""
    if template_id:
        return await get_template(store, template_id)
    template = await get_latest_template(store)
    if template is None:
        raise HTTPException(
            status_code=404, detail="No template found. Design one first."
        )
    return template


# --- Literal path routes (before parameterized) ---


@router.post(
    "/bulk",
    responses={
        200: {"content": {"application/zip": {}}, "description": "ZIP archive"},
        404: {"description": "Template not found"},
    },
)
@limiter.limit(BULK_EXPORT_LIMIT)
async def export_bulk_endpoint(
    request: Request, body: BulkExportRequest, store: Store
) -> Response:
    """Export certificates for many participants into one ZIP archive.

    Per-participant failures do not abort the batch; counts are returned in
    the ``X-Bulk-*`` headers.
    """
    template = await _resolve_template(store, body.template_id)
    participants, lookups = await get_participants(store, body.participant_ids)
    archive_name, archive, result = await export_bulk(
        store, template, participants, body.format, result=lookups
    )

    return Response(
        content=archive,
        media_type="application/zip",
        headers={
            "Content-Disposition": f'attachment; filename="{archive_name}"',
            **_bulk_headers(result),
        },
    )


@router.post(
    "/bulk/qr",
    responses={
        200: {"content": {"application/zip": {}}, "description": "ZIP archive"},
    },
)
@limiter.limit(BULK_EXPORT_LIMIT)
async def export_qr_bulk_endpoint(
    request: Request, body: BulkQrExportRequest, store: Store
) -> Response:
    """Download QR codes only, one PNG per participant."""
    participants, lookups = await get_participants(store, body.participant_ids)
    archive_name, archive, result = await export_qr_bulk(
        participants, body.size, result=lookups
    )

    return Response(
        content=archive,
        media_type="application/zip",
        headers={
            "Content-Disposition": f'attachment; filename="{archive_name}"',
            **_bulk_headers(result),
        },
    )


@router.get(
    "/sample/{template_id}/{fmt}",
    responses={
        200: {
            "content": {"application/pdf": {}, "image/png": {}},
            "description": "Sample certificate",
        },
        404: {"description": "Template not found"},
    },
)
@limiter.limit(EXPORT_LIMIT)
async def sample_certificate_endpoint(
    request: Request,
    template_id: str,
    fmt: Literal["pdf", "png"],
    store: Store,
) -> Response:
    """Render a template with sample data, without touching any participant."""
    template = await get_template(store, template_id)
    rendered = await render_preview_sample(template, fmt)

    return Response(
        content=rendered.content,
        media_type=rendered.media_type,
        headers={
            "Content-Disposition": (
                f'inline; filename="sample-{template_id}.{rendered.extension}"'
            ),
            "Cache-Control": "no-store",
        },
    )


# --- Parameterized routes ---


@router.get(
    "/{participant_id}/qr",
    responses={
        200: {"content": {"image/png": {}}, "description": "QR code PNG"},
        404: {"description": "Participant not found"},
    },
)
@limiter.limit(EXPORT_LIMIT)
async def get_qr_endpoint(
    request: Request,
    participant_id: str,
    store: Store,
    size: int | None = Query(None, ge=200, le=2000),
) -> Response:
    """Standalone verification QR code for a participant."""
    participant = await get_participant(store, participant_id)
    png = render_qr_png(
        participant.verification_id, size or get_settings().qr_export_size
    )

    return Response(
        content=png,
        media_type="image/png",
        headers={
            "Content-Disposition": (
                f'attachment; filename="{artifact_filename("qr", participant)}"'
            ),
            "Cache-Control": _get_cache_control(),
        },
    )


@router.get(
    "/{participant_id}/{fmt}",
    responses={
        200: {
            "content": {"application/pdf": {}, "image/png": {}},
            "description": "Certificate",
        },
        404: {"description": "Participant or template not found"},
        422: {"description": "Background could not be loaded"},
    },
)
@limiter.limit(EXPORT_LIMIT)
async def export_certificate_endpoint(
    request: Request,
    participant_id: str,
    fmt: Literal["pdf", "png"],
    store: Store,
    template_id: str | None = Query(None),
) -> Response:
    """Download one participant's certificate and mark it as generated."""
    participant = await get_participant(store, participant_id)
    template = await _resolve_template(store, template_id)
    filename, rendered = await export_certificate(store, template, participant, fmt)

    return Response(
        content=rendered.content,
        media_type=rendered.media_type,
        headers={
            "Content-Disposition": f'attachment; filename="{filename}"',
            "Cache-Control": "no-store",
        },
    )
