"""
Notifications module.

Transactional email delivery over a priority-ordered chain of vendors,
with recipient opt-outs and a send log.

Public API:
- IEmailService: Interface for sending email
- EmailService: Implementation over providers.FallbackSelector
- Preference stores and email logs (in-memory and Supabase)
"""

from .interfaces import IEmailLog, IEmailPreferenceStore, IEmailService
from .models import (
    EmailLogStatus,
    EmailLogEntry,
    EmailPreferences,
    SendEmailRequest,
    ProviderStatusResponse,
)
from .preferences import InMemoryEmailPreferenceStore, SupabaseEmailPreferenceStore
from .email_log import InMemoryEmailLog, SupabaseEmailLog
from .service import EmailService

__all__ = [
    # Interfaces
    "IEmailService",
    "IEmailPreferenceStore",
    "IEmailLog",
    # Models
    "EmailLogStatus",
    "EmailLogEntry",
    "EmailPreferences",
    "SendEmailRequest",
    "ProviderStatusResponse",
    # Implementations
    "InMemoryEmailPreferenceStore",
    "SupabaseEmailPreferenceStore",
    "InMemoryEmailLog",
    "SupabaseEmailLog",
    "EmailService",
]
