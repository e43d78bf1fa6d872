"""Certificate export business logic.

This module handles:
- Single certificate exports (PDF/PNG) with generated-status updates
- Bulk exports into a ZIP archive with per-participant error accumulation
- QR-only downloads
- Artifact and archive naming

Rendering itself is delegated to the rendering module. Compositing is
CPU-bound, so it runs in the default thread pool executor to keep the event
loop responsive.
"""

import asyncio
import io
import logging
import re
import zipfile
from datetime import UTC, date, datetime
from functools import partial
from typing import Literal

from core.config import get_settings
from core.errors import CertforgeError
from core.store import RecordStore
from rendering.artifact import RenderedCertificate
from rendering.backgrounds import load_background
from rendering.document import render_document
from rendering.qr import encode_verification, render_qr_png
from rendering.raster import render_raster
from repositories.generation_log_repository import (
    GenerationLogRepository,
    GenerationType,
)
from repositories.participant_repository import ParticipantRepository
from schemas import BulkResult, ExportFormat, Participant, Template

logger = logging.getLogger(__name__)

ArtifactKind = Literal["pdf", "png", "qr"]

SAMPLE_NAME = "John Doe"
SAMPLE_VERIFICATION_ID = "SAMPLE-001"

CERTIFICATE_ARCHIVE = "certificates"
QR_ARCHIVE = "qr-codes"

_NON_ALNUM = re.compile(r"[^A-Za-z0-9]")


def sanitize_name(name: str) -> str:
    """Strip everything but ASCII letters and digits."""
    return _NON_ALNUM.sub("", name)


def artifact_filename(kind: ArtifactKind, participant: Participant) -> str:
    """Download name for one participant's artifact.

    Examples:
        certificate-CERT-2024-JOH-1718000000000-JohnDoe.pdf
        qr-code-CERT-2024-JOH-1718000000000-JohnDoe.png
    """
    sanitized = sanitize_name(participant.name)
    if kind == "qr":
        return f"qr-code-{participant.verification_id}-{sanitized}.png"
    prefix = get_settings().artifact_prefix
    return f"{prefix}-{participant.verification_id}-{sanitized}.{kind}"


def archive_filename(kind: str, today: date | None = None) -> str:
    today = today or datetime.now(UTC).date()
    return f"{kind}-{today.isoformat()}.zip"


def sample_participant() -> Participant:
    return Participant(
        id="sample",
        name=SAMPLE_NAME,
        verification_id=SAMPLE_VERIFICATION_ID,
    )


def _build_zip(entries: list[tuple[str, bytes]]) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for filename, content in entries:
            archive.writestr(filename, content)
    return buffer.getvalue()


async def render_certificate(
    template: Template, participant: Participant, fmt: ExportFormat
) -> RenderedCertificate:
    """Render one certificate without touching the store.

    Raises:
        RenderError: If the background cannot be loaded or composited.
        EncodingError: If the QR code or output image cannot be encoded.
    """
    settings = get_settings()
    qr = encode_verification(participant.verification_id)
    background = await load_background(
        template.background_image,
        canvas_size=(template.canvas_width, template.canvas_height),
    )

    if fmt == "pdf":
        render = partial(
            render_document,
            template,
            participant.name,
            qr,
            background,
            qr_scale=settings.qr_render_scale,
        )
    else:
        render = partial(
            render_raster,
            template,
            participant.name,
            qr,
            background,
            font_dir=settings.font_dir,
        )

    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, render)


async def export_certificate(
    store: RecordStore,
    template: Template,
    participant: Participant,
    fmt: ExportFormat,
    *,
    generation_type: GenerationType = "manual",
) -> tuple[str, RenderedCertificate]:
    """Render a certificate and mark the participant as generated.

    The status update and the completed log entry are separate store calls;
    either may fail after the render succeeded.

    Returns:
        Tuple of (artifact filename, rendered certificate)
    """
    rendered = await render_certificate(template, participant, fmt)
    filename = artifact_filename(fmt, participant)

    await ParticipantRepository(store).mark_generated(participant.id, filename)
    await GenerationLogRepository(store).create(
        participant.id,
        template_id=template.id,
        generation_type=generation_type,
        status="completed",
    )

    logger.info(
        "certificate.exported",
        extra={
            "participant_id": participant.id,
            "verification_id": participant.verification_id,
            "template_id": template.id,
            "format": fmt,
            "bytes": len(rendered.content),
        },
    )
    return filename, rendered


async def export_bulk(
    store: RecordStore,
    template: Template,
    participants: list[Participant],
    fmt: ExportFormat,
    result: BulkResult | None = None,
) -> tuple[str, bytes, BulkResult]:
    """Export every participant, one at a time, into a single ZIP.

    A participant's artifact is included only when its render and both store
    writes succeeded. Failures are counted and the loop continues. Counts are
    added to ``result`` when given (e.g. earlier lookup failures).

    Returns:
        Tuple of (archive filename, ZIP bytes, result summary)
    """
    if result is None:
        result = BulkResult()
    entries: list[tuple[str, bytes]] = []
    total = len(participants)

    for index, participant in enumerate(participants, start=1):
        try:
            filename, rendered = await export_certificate(
                store, template, participant, fmt, generation_type="bulk"
            )
        except CertforgeError as e:
            result.failed_count += 1
            result.messages.append(f"{participant.name}: {e.message}")
            logger.warning(
                "certificate.bulk.item_failed",
                extra={
                    "participant_id": participant.id,
                    "error": e.message,
                    "error_type": type(e).__name__,
                },
            )
        else:
            entries.append((filename, rendered.content))
            result.success_count += 1

        logger.info(
            "certificate.bulk.progress",
            extra={"index": index, "total": total},
        )

    loop = asyncio.get_running_loop()
    archive = await loop.run_in_executor(None, _build_zip, entries)

    logger.info(
        "certificate.bulk.completed",
        extra={
            "template_id": template.id,
            "format": fmt,
            "success": result.success_count,
            "failed": result.failed_count,
        },
    )
    return archive_filename(CERTIFICATE_ARCHIVE), archive, result


async def export_qr_bulk(
    participants: list[Participant],
    size: int | None = None,
    result: BulkResult | None = None,
) -> tuple[str, bytes, BulkResult]:
    """ZIP of standalone QR codes, one per participant."""
    size = size or get_settings().qr_export_size
    if result is None:
        result = BulkResult()
    entries: list[tuple[str, bytes]] = []
    loop = asyncio.get_running_loop()

    for participant in participants:
        try:
            png = await loop.run_in_executor(
                None, render_qr_png, participant.verification_id, size
            )
        except CertforgeError as e:
            result.failed_count += 1
            result.messages.append(f"{participant.name}: {e.message}")
            continue
        entries.append((artifact_filename("qr", participant), png))
        result.success_count += 1

    archive = await loop.run_in_executor(None, _build_zip, entries)
    return archive_filename(QR_ARCHIVE), archive, result


async def render_preview_sample(
    template: Template, fmt: ExportFormat = "pdf"
) -> RenderedCertificate:
    """Sample certificate for the designer, rendered with placeholder data."""
    return await render_certificate(template, sample_participant(), fmt)
