"""Brevo (formerly Sendinblue) transactional email."""

from typing import Any

from .email_base import BaseEmailProvider
from .models import FreeTierQuota, ProviderDescriptor, SendEmailParams

BREVO_DESCRIPTOR = ProviderDescriptor(
    name="brevo",
    priority=1,
    quota=FreeTierQuota(daily_requests=300, monthly_credits=9000),
    fallback="resend",
)


class BrevoEmailProvider(BaseEmailProvider):
    """Primary email provider."""

    endpoint = "https://api.brevo.com/v3/smtp/email"
    message_id_field = "messageId"

    def _headers(self) -> dict[str, str]:
        return {"api-key": self._api_key, "Accept": "application/json"}

    def _payload(self, params: SendEmailParams) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "sender": {"email": self._from_address, "name": self._from_name},
            "to": [{"email": params.to}],
            "subject": params.subject,
            "htmlContent": params.html,
            "tags": [params.template, params.category.value],
        }
        if params.text:
            payload["textContent"] = params.text
        if params.reply_to:
            payload["replyTo"] = {"email": params.reply_to}
        return payload
