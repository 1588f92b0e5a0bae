"""
Base repository class for database access.

Provides a common abstraction layer for all Supabase-backed stores,
encapsulating client access and the row/timestamp helpers they share.
"""

from datetime import datetime
from typing import Any, Generic, Optional, TypeVar
from supabase import Client


T = TypeVar("T")


class BaseRepository(Generic[T]):
    """
    Base class for all repositories.

    Provides common functionality for database operations:
    - Supabase client access via self._db
    - Generic type parameter for model type hints

    Subclasses implement domain-specific data access methods
    and handle dict-to-Pydantic model mapping internally.

    Example:
        class SupabaseSubscriptionRepository(BaseRepository[SubscriptionMirror]):
            async def get_active_subscription(self, user_id):
                result = (
                    self._db.table("subscriptions")
                    .select("*")
                    .eq("user_id", user_id)
                    .execute()
                )
                if not result.data:
                    return None
                return self._map_row(result.data[0])
    """

    def __init__(self, db: Client) -> None:
        """
        Initialize the repository with a Supabase client.

        Args:
            db: Supabase client instance for database operations.
        """
        self._db = db

    @staticmethod
    def _first_row(data: Any) -> Optional[dict[str, Any]]:
        """RPCs return either a row list or a single row; normalize to one row."""
        if isinstance(data, list):
            return data[0] if data else None
        return data or None

    @staticmethod
    def _parse_timestamp(value: Optional[str]) -> Optional[datetime]:
        if not value:
            return None
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
