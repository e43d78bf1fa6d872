"""Repository layer for record-store operations.

Repositories encapsulate every call to the remote record store, keeping
services free of table names and column mapping. This separation provides:
- Single source of truth for store column names
- Easier testing (the store can be replaced by an in-memory fake)
- Reusable lookups across services
"""

from repositories.generation_log_repository import GenerationLogRepository
from repositories.participant_repository import ParticipantRepository
from repositories.scan_log_repository import ScanLogRepository
from repositories.template_repository import TemplateRepository
from repositories.utils import log_slow_query

__all__ = [
    "GenerationLogRepository",
    "ParticipantRepository",
    "ScanLogRepository",
    "TemplateRepository",
    "log_slow_query",
]
