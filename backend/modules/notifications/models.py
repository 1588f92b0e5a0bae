"""
Notification data models.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, EmailStr, Field

from providers.models import EmailCategory, ProviderStatus


class EmailLogStatus(str, Enum):
    SENT = "sent"
    FAILED = "failed"
    SKIPPED = "skipped"


class EmailLogEntry(BaseModel):
    """One row of the email_logs table."""

    to_email: EmailStr
    template: str
    category: EmailCategory
    status: EmailLogStatus
    user_id: Optional[str] = None
    provider: Optional[str] = None
    message_id: Optional[str] = None
    error: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = {"frozen": True}

    def to_row(self) -> dict[str, Any]:
        return {
            "to_email": self.to_email,
            "template_name": self.template,
            "email_type": self.category.value,
            "status": self.status.value,
            "user_id": self.user_id,
            "response": {
                "provider": self.provider,
                "message_id": self.message_id,
                "error": self.error,
            },
        }


class EmailPreferences(BaseModel):
    """A recipient's opt-in flags. Transactional mail has no flag."""

    marketing_emails: bool = True
    product_update_emails: bool = True

    def allows(self, category: EmailCategory) -> bool:
        if category == EmailCategory.MARKETING:
            return self.marketing_emails
        if category == EmailCategory.PRODUCT_UPDATES:
            return self.product_update_emails
        return True


class SendEmailRequest(BaseModel):
    """Body of POST /api/email/send. The recipient is always the caller."""

    subject: str = Field(..., min_length=1, max_length=998)
    html: str = Field(..., min_length=1)
    text: Optional[str] = None
    template: str = "custom"
    category: EmailCategory = EmailCategory.TRANSACTIONAL


class ProviderStatusResponse(BaseModel):
    providers: list[ProviderStatus]
