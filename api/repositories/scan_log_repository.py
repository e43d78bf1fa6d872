"""Repository for QR scan logs."""

from core.store import RecordStore, Row
from repositories.utils import log_slow_query

TABLE = "qr_scan_logs"


class ScanLogRepository:
    """Append-only log of verification page visits."""

    def __init__(self, store: RecordStore) -> None:
        self.store = store

    @log_slow_query("create_scan_log")
    async def create(
        self,
        participant_id: str,
        *,
        ip_address: str | None = None,
        user_agent: str | None = None,
        referrer: str | None = None,
    ) -> Row:
        return await self.store.insert(
            TABLE,
            {
                "participant_id": participant_id,
                "ip_address": ip_address,
                "user_agent": user_agent,
                "referrer": referrer,
            },
        )
