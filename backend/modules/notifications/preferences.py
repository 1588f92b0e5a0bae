"""
Email preference storage.
"""

from typing import Optional

from providers.models import EmailCategory
from shared.repository import BaseRepository

from .models import EmailPreferences


class InMemoryEmailPreferenceStore:
    """Preferences keyed by user id, with an email → user id index."""

    def __init__(self) -> None:
        self._by_user: dict[str, EmailPreferences] = {}
        self._user_by_email: dict[str, str] = {}

    def set_preferences(
        self,
        user_id: str,
        preferences: EmailPreferences,
        email: Optional[str] = None,
    ) -> None:
        self._by_user[user_id] = preferences
        if email:
            self._user_by_email[email.lower()] = user_id

    async def is_opted_out(
        self,
        category: EmailCategory,
        user_id: Optional[str] = None,
        email: Optional[str] = None,
    ) -> bool:
        if user_id is None and email:
            user_id = self._user_by_email.get(email.lower())
        if user_id is None:
            return False
        preferences = self._by_user.get(user_id)
        return preferences is not None and not preferences.allows(category)


class SupabaseEmailPreferenceStore(BaseRepository[EmailPreferences]):
    """Preferences in the email_preferences table, joined to profiles by email."""

    async def _user_id_for_email(self, email: str) -> Optional[str]:
        result = (
            self._db.table("profiles")
            .select("id")
            .eq("email", email.lower())
            .limit(1)
            .execute()
        )
        row = self._first_row(result.data)
        return row["id"] if row else None

    async def is_opted_out(
        self,
        category: EmailCategory,
        user_id: Optional[str] = None,
        email: Optional[str] = None,
    ) -> bool:
        if category == EmailCategory.TRANSACTIONAL:
            return False
        if user_id is None and email:
            user_id = await self._user_id_for_email(email)
        if user_id is None:
            return False

        result = (
            self._db.table("email_preferences")
            .select("marketing_emails, product_update_emails")
            .eq("user_id", user_id)
            .execute()
        )
        row = self._first_row(result.data)
        if row is None:
            return False
        preferences = EmailPreferences(
            marketing_emails=row.get("marketing_emails", True),
            product_update_emails=row.get("product_update_emails", True),
        )
        return not preferences.allows(category)
