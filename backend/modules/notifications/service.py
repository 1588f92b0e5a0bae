"""
Email service implementation.

Sends through the provider fallback chain after checking recipient
opt-outs, and records every attempt in the email log.
"""

import logging
from typing import Optional

from providers.fallback import FallbackSelector
from providers.models import EmailCategory, ProviderStatus, SendEmailParams, SendEmailResult

from .interfaces import IEmailLog, IEmailPreferenceStore
from .models import EmailLogEntry, EmailLogStatus

logger = logging.getLogger(__name__)


class EmailService:
    """
    Email delivery with provider fallback.

    Preference lookups fail open: if the lookup errors, the email is sent.
    Email log writes never fail a send.
    """

    def __init__(
        self,
        selector: FallbackSelector[SendEmailParams, SendEmailResult],
        preferences: IEmailPreferenceStore,
        email_log: IEmailLog,
    ):
        self._selector = selector
        self._preferences = preferences
        self._email_log = email_log

    async def send(self, params: SendEmailParams) -> SendEmailResult:
        if await self._is_opted_out(params):
            logger.info(
                f"Skipping {params.category.value} email '{params.template}' to {params.to}: opted out"
            )
            await self._log(params, EmailLogStatus.SKIPPED)
            return SendEmailResult(
                success=True,
                skipped=True,
                skip_reason=f"Recipient opted out of {params.category.value} emails",
            )

        try:
            outcome = await self._selector.execute_with_fallback(params)
        except Exception as e:
            await self._log(params, EmailLogStatus.FAILED, error=str(e))
            raise

        result = outcome.result
        await self._log(
            params,
            EmailLogStatus.SENT,
            provider=outcome.provider,
            message_id=result.message_id,
        )
        logger.info(f"Sent email '{params.template}' to {params.to} via {outcome.provider}")
        return result

    async def get_provider_status(self) -> list[ProviderStatus]:
        providers = sorted(self._selector.providers, key=lambda p: p.priority)
        return [await p.status() for p in providers]

    async def _is_opted_out(self, params: SendEmailParams) -> bool:
        if params.category == EmailCategory.TRANSACTIONAL:
            return False
        try:
            return await self._preferences.is_opted_out(
                params.category,
                user_id=params.user_id,
                email=params.to,
            )
        except Exception as e:
            logger.warning(f"Email preference lookup failed for {params.to}, sending anyway: {e}")
            return False

    async def _log(
        self,
        params: SendEmailParams,
        status: EmailLogStatus,
        provider: Optional[str] = None,
        message_id: Optional[str] = None,
        error: Optional[str] = None,
    ) -> None:
        entry = EmailLogEntry(
            to_email=params.to,
            template=params.template,
            category=params.category,
            status=status,
            user_id=params.user_id,
            provider=provider,
            message_id=message_id,
            error=error,
        )
        try:
            await self._email_log.record(entry)
        except Exception:
            logger.error(f"Failed to write email log for {params.to}", exc_info=True)
