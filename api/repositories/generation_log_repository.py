"""Repository for certificate generation logs."""

from typing import Literal

from core.store import RecordStore, Row
from repositories.utils import log_slow_query

TABLE = "certificate_logs"

GenerationType = Literal["manual", "bulk"]
GenerationStatus = Literal["pending", "completed", "failed"]


class GenerationLogRepository:
    """Append-only log of certificate generation events."""

    def __init__(self, store: RecordStore) -> None:
        self.store = store

    @log_slow_query("create_generation_log")
    async def create(
        self,
        participant_id: str,
        *,
        generation_type: GenerationType,
        status: GenerationStatus,
        template_id: str | None = None,
    ) -> Row:
        return await self.store.insert(
            TABLE,
            {
                "participant_id": participant_id,
                "template_id": template_id,
                "generation_type": generation_type,
                "status": status,
            },
        )

    @log_slow_query("list_generation_logs")
    async def list_for_participant(self, participant_id: str) -> list[Row]:
        return await self.store.select(
            TABLE,
            filters={"participant_id": participant_id},
            order="created_at",
            descending=True,
        )
