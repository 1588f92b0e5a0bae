"""
Audit log for billable operation attempts.
"""

from shared.repository import BaseRepository

from .models import AuditEntry


class InMemoryAuditLog:
    """Audit log kept in a list. For testing and development."""

    def __init__(self) -> None:
        self._entries: list[AuditEntry] = []

    async def record(self, entry: AuditEntry) -> None:
        self._entries.append(entry)

    @property
    def entries(self) -> list[AuditEntry]:
        return list(self._entries)


class SupabaseAuditLog(BaseRepository[AuditEntry]):
    """Audit log stored in the processing_audit_log table."""

    async def record(self, entry: AuditEntry) -> None:
        self._db.table("processing_audit_log").insert({
            "job_id": entry.job_id,
            "user_id": entry.user_id,
            "cost": entry.cost,
            "outcome": entry.outcome.value,
            "credits_refunded": entry.credits_refunded,
            "error_code": entry.error_code,
            "error_message": entry.error_message,
            "duration_ms": entry.duration_ms,
            "created_at": entry.created_at.isoformat(),
        }).execute()
