"""Participant business logic.

This module handles:
- Manual participant creation with duplicate-email detection
- Bulk participant import with per-row error accumulation
- Public certificate verification with scan logging

Routes should delegate all participant business logic to this module.
"""

import logging
from dataclasses import dataclass

from core.errors import (
    CertforgeError,
    DuplicateError,
    NotFoundError,
    StoreError,
    ValidationError,
)
from core.store import RecordStore
from rendering.qr import build_verification_url
from repositories.generation_log_repository import GenerationLogRepository
from repositories.participant_repository import ParticipantRepository
from repositories.scan_log_repository import ScanLogRepository
from schemas import BulkResult, Participant, ParticipantCreate, VerificationResult
from services.verification_ids import generate_verification_id

logger = logging.getLogger(__name__)

DEFAULT_ROLE = "Participant"


@dataclass(frozen=True)
class ScanContext:
    """Request metadata recorded when a verification page is visited."""

    ip_address: str | None = None
    user_agent: str | None = None
    referrer: str | None = None


async def _create_participant(
    store: RecordStore, data: ParticipantCreate
) -> Participant:
    name = (data.name or "").strip()
    if not name:
        raise ValidationError("Name is required")

    repo = ParticipantRepository(store)
    email = data.email or None
    if email and await repo.get_by_email(email):
        raise DuplicateError(f"A participant with email {email} already exists")

    verification_id = data.verification_id or None
    if verification_id and await repo.verification_id_exists(verification_id):
        logger.info(
            "participant.verification_id.taken",
            extra={"verification_id": verification_id},
        )
        verification_id = None
    if verification_id is None:
        verification_id = await generate_verification_id(
            name, repo.verification_id_exists
        )

    participant = await repo.create(
        name=name,
        email=email,
        college=data.college or None,
        role=data.role or DEFAULT_ROLE,
        verification_id=verification_id,
    )
    logger.info(
        "participant.created",
        extra={
            "participant_id": participant.id,
            "verification_id": participant.verification_id,
        },
    )
    return participant


async def add_participant(store: RecordStore, data: ParticipantCreate) -> Participant:
    """Add one participant and log a pending manual generation.

    Raises:
        ValidationError: If the name is blank.
        DuplicateError: If a participant with the same email exists.
        StoreError: If the store is unavailable.
    """
    participant = await _create_participant(store, data)

    try:
        await GenerationLogRepository(store).create(
            participant.id, generation_type="manual", status="pending"
        )
    except StoreError as e:
        logger.warning(
            "participant.generation_log.failed",
            extra={"participant_id": participant.id, "error": e.message},
        )
    return participant


async def add_participants_bulk(
    store: RecordStore, rows: list[ParticipantCreate]
) -> BulkResult:
    """Add participants one at a time, continuing past per-row failures."""
    result = BulkResult()

    for index, row in enumerate(rows, start=1):
        try:
            await _create_participant(store, row)
        except DuplicateError as e:
            result.duplicate_count += 1
            result.messages.append(f"Row {index}: {e.message}")
        except CertforgeError as e:
            result.failed_count += 1
            result.messages.append(f"Row {index}: {e.message}")
            logger.warning(
                "participant.bulk.row_failed",
                extra={"row": index, "error": e.message},
            )
        else:
            result.success_count += 1

    logger.info(
        "participant.bulk.completed",
        extra={
            "success": result.success_count,
            "failed": result.failed_count,
            "duplicates": result.duplicate_count,
        },
    )
    return result


async def get_participant(store: RecordStore, participant_id: str) -> Participant:
    participant = await ParticipantRepository(store).get_by_id(participant_id)
    if participant is None:
        raise NotFoundError(f"Participant {participant_id} not found")
    return participant


async def get_participants(
    store: RecordStore, participant_ids: list[str] | None = None
) -> tuple[list[Participant], BulkResult]:
    """Participants by ID (in the given order), or all when ``None``.

    Each ID is looked up on its own; a lookup that fails is counted in the
    returned ``BulkResult`` and skipped, so bulk callers keep going.

    Returns:
        Tuple of (participants found, lookup failures)
    """
    repo = ParticipantRepository(store)
    result = BulkResult()
    if participant_ids is None:
        return await repo.list_all(), result

    participants: list[Participant] = []
    for participant_id in participant_ids:
        try:
            participants.append(await get_participant(store, participant_id))
        except CertforgeError as e:
            result.failed_count += 1
            result.messages.append(f"{participant_id}: {e.message}")
            logger.warning(
                "participant.lookup_failed",
                extra={
                    "participant_id": participant_id,
                    "error": e.message,
                    "error_type": type(e).__name__,
                },
            )
    return participants, result


async def list_participants(store: RecordStore) -> list[Participant]:
    return await ParticipantRepository(store).list_all()


async def delete_participant(store: RecordStore, participant_id: str) -> None:
    deleted = await ParticipantRepository(store).delete(participant_id)
    if not deleted:
        raise NotFoundError(f"Participant {participant_id} not found")
    logger.info("participant.deleted", extra={"participant_id": participant_id})


async def verify_participant(
    store: RecordStore,
    verification_id: str,
    scan: ScanContext | None = None,
) -> VerificationResult:
    """Look up a verification ID and record the scan.

    A failed scan-log write is logged and never fails the verification.
    """
    verification_url = build_verification_url(verification_id)
    participant = await ParticipantRepository(store).get_by_verification_id(
        verification_id
    )

    if participant is None:
        return VerificationResult(
            is_valid=False,
            participant=None,
            verification_url=verification_url,
            message="Certificate not found. Please check the verification ID.",
        )

    scan = scan or ScanContext()
    try:
        await ScanLogRepository(store).create(
            participant.id,
            ip_address=scan.ip_address,
            user_agent=scan.user_agent,
            referrer=scan.referrer,
        )
    except StoreError as e:
        logger.warning(
            "verification.scan_log.failed",
            extra={"participant_id": participant.id, "error": e.message},
        )

    return VerificationResult(
        is_valid=True,
        participant=participant,
        verification_url=verification_url,
        message=f"Valid certificate issued to {participant.name}",
    )
