"""
Notifications module interface.
"""

from typing import Optional, Protocol, runtime_checkable

from providers.models import EmailCategory, ProviderStatus, SendEmailParams, SendEmailResult

from .models import EmailLogEntry


@runtime_checkable
class IEmailPreferenceStore(Protocol):
    """Lookup of recipients' email category opt-outs."""

    async def is_opted_out(
        self,
        category: EmailCategory,
        user_id: Optional[str] = None,
        email: Optional[str] = None,
    ) -> bool:
        """
        Check whether a recipient opted out of a category.

        Looks up by user id when given, otherwise by email address.
        Unknown recipients are not opted out.

        Raises:
            Any storage error; callers decide how to fail
        """
        ...


@runtime_checkable
class IEmailLog(Protocol):
    """Append-only record of send attempts."""

    async def record(self, entry: EmailLogEntry) -> None:
        ...


@runtime_checkable
class IEmailService(Protocol):
    """
    Interface for sending email through the provider fallback chain.
    """

    async def send(self, params: SendEmailParams) -> SendEmailResult:
        """
        Send an email, honouring recipient opt-outs.

        Args:
            params: Rendered email and recipient

        Returns:
            SendEmailResult; skipped=True when the recipient opted out

        Raises:
            NoProviderAvailableError: If no provider is enabled with quota left
            AllProvidersFailedError: If every available provider failed
        """
        ...

    async def get_provider_status(self) -> list[ProviderStatus]:
        """Get descriptor, usage and availability for every provider."""
        ...
