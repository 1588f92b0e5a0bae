"""
Email send log.
"""

from shared.repository import BaseRepository

from .models import EmailLogEntry


class InMemoryEmailLog:
    def __init__(self) -> None:
        self.entries: list[EmailLogEntry] = []

    async def record(self, entry: EmailLogEntry) -> None:
        self.entries.append(entry)


class SupabaseEmailLog(BaseRepository[EmailLogEntry]):
    """Writes to the email_logs table."""

    async def record(self, entry: EmailLogEntry) -> None:
        self._db.table("email_logs").insert(entry.to_row()).execute()
