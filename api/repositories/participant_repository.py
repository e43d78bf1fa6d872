"""Repository for participant operations."""

from datetime import UTC, datetime
from typing import Any

from core.store import RecordStore
from repositories.utils import log_slow_query
from schemas import Participant

TABLE = "participants"


class ParticipantRepository:
    """Repository for participant records."""

    def __init__(self, store: RecordStore) -> None:
        self.store = store

    @log_slow_query("get_participant_by_id")
    async def get_by_id(self, participant_id: str) -> Participant | None:
        row = await self.store.select_one(TABLE, {"id": participant_id})
        return Participant.model_validate(row) if row else None

    @log_slow_query("get_participant_by_verification_id")
    async def get_by_verification_id(self, verification_id: str) -> Participant | None:
        """Look up a participant for public verification."""
        row = await self.store.select_one(TABLE, {"verification_id": verification_id})
        return Participant.model_validate(row) if row else None

    @log_slow_query("get_participant_by_email")
    async def get_by_email(self, email: str) -> Participant | None:
        row = await self.store.select_one(TABLE, {"email": email})
        return Participant.model_validate(row) if row else None

    async def verification_id_exists(self, verification_id: str) -> bool:
        return await self.get_by_verification_id(verification_id) is not None

    @log_slow_query("list_participants")
    async def list_all(self, *, limit: int | None = None) -> list[Participant]:
        """All participants, most recent first."""
        rows = await self.store.select(
            TABLE, order="created_at", descending=True, limit=limit
        )
        return [Participant.model_validate(row) for row in rows]

    @log_slow_query("create_participant")
    async def create(
        self,
        *,
        name: str,
        verification_id: str,
        email: str | None = None,
        college: str | None = None,
        role: str = "Participant",
    ) -> Participant:
        values: dict[str, Any] = {
            "name": name,
            "email": email,
            "college": college,
            "role": role,
            "verification_id": verification_id,
        }
        row = await self.store.insert(TABLE, values)
        return Participant.model_validate(row)

    @log_slow_query("mark_certificate_generated")
    async def mark_generated(
        self,
        participant_id: str,
        certificate_url: str,
        *,
        generated_at: datetime | None = None,
    ) -> None:
        """Set the generated-status fields after a successful export."""
        when = generated_at or datetime.now(UTC)
        await self.store.update(
            TABLE,
            {"id": participant_id},
            {
                "certificate_url": certificate_url,
                "certificate_generated_at": when.isoformat(),
            },
        )

    @log_slow_query("delete_participant")
    async def delete(self, participant_id: str) -> bool:
        rows = await self.store.delete(TABLE, {"id": participant_id})
        return bool(rows)
