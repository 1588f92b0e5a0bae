"""Resend transactional email."""

from typing import Any

from .email_base import BaseEmailProvider
from .models import FreeTierQuota, ProviderDescriptor, SendEmailParams

RESEND_DESCRIPTOR = ProviderDescriptor(
    name="resend",
    priority=2,
    quota=FreeTierQuota(daily_requests=100, monthly_credits=3000),
)


class ResendEmailProvider(BaseEmailProvider):
    """Fallback email provider."""

    endpoint = "https://api.resend.com/emails"
    message_id_field = "id"

    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self._api_key}"}

    def _payload(self, params: SendEmailParams) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "from": f"{self._from_name} <{self._from_address}>",
            "to": [params.to],
            "subject": params.subject,
            "html": params.html,
            # Resend tag values only allow ASCII letters, digits, _ and -
            "tags": [
                {"name": "template", "value": params.template.replace(".", "_")},
                {"name": "category", "value": params.category.value},
            ],
        }
        if params.text:
            payload["text"] = params.text
        if params.reply_to:
            payload["reply_to"] = params.reply_to
        return payload
