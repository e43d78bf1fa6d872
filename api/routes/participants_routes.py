"""Participant endpoints."""

from fastapi import APIRouter, Response

from core.store import Store
from schemas import BulkResult, Participant, ParticipantBulkRequest, ParticipantCreate
from services.participants_service import (
    add_participant,
    add_participants_bulk,
    delete_participant,
    get_participant,
    list_participants,
)

router = APIRouter(prefix="/api/participants", tags=["participants"])


@router.get("", response_model=list[Participant])
async def list_participants_endpoint(store: Store) -> list[Participant]:
    """All participants, most recent first."""
    return await list_participants(store)


@router.post(
    "",
    response_model=Participant,
    status_code=201,
    responses={
        409: {"description": "A participant with this email already exists"},
        422: {"description": "Name is required"},
    },
)
async def add_participant_endpoint(
    body: ParticipantCreate, store: Store
) -> Participant:
    """Add a participant and assign a verification ID."""
    return await add_participant(store, body)


@router.post("/bulk", response_model=BulkResult)
async def add_participants_bulk_endpoint(
    body: ParticipantBulkRequest, store: Store
) -> BulkResult:
    """Import many participants; per-row failures are reported, not raised."""
    return await add_participants_bulk(store, body.participants)


@router.get(
    "/{participant_id}",
    response_model=Participant,
    responses={404: {"description": "Participant not found"}},
)
async def get_participant_endpoint(participant_id: str, store: Store) -> Participant:
    return await get_participant(store, participant_id)


@router.delete(
    "/{participant_id}",
    status_code=204,
    responses={404: {"description": "Participant not found"}},
)
async def delete_participant_endpoint(participant_id: str, store: Store) -> Response:
    await delete_participant(store, participant_id)
    return Response(status_code=204)
