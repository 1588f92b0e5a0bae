"""Shared HTTP handling for transactional email vendors."""

import logging
import uuid
from abc import abstractmethod
from typing import Any

import httpx

from shared.exceptions import ProviderError

from .base import CapabilityProvider
from .models import ProviderDescriptor, SendEmailParams, SendEmailResult
from .usage import IProviderUsageTracker

logger = logging.getLogger(__name__)


class BaseEmailProvider(CapabilityProvider[SendEmailParams, SendEmailResult]):
    """Email provider that posts JSON to a vendor API.

    Subclasses supply the endpoint, auth headers, payload and the name of
    the message id field in the response.
    """

    endpoint: str = ""
    message_id_field: str = "id"

    def __init__(
        self,
        descriptor: ProviderDescriptor,
        usage: IProviderUsageTracker,
        http_client: httpx.AsyncClient,
        api_key: str,
        from_address: str,
        from_name: str,
        dry_run: bool = False,
    ):
        super().__init__(descriptor, usage)
        self._http = http_client
        self._api_key = api_key
        self._from_address = from_address
        self._from_name = from_name
        self._dry_run = dry_run

    def is_configured(self) -> bool:
        return bool(self._api_key)

    @abstractmethod
    def _headers(self) -> dict[str, str]:
        pass

    @abstractmethod
    def _payload(self, params: SendEmailParams) -> dict[str, Any]:
        pass

    async def execute(self, params: SendEmailParams) -> SendEmailResult:
        if self._dry_run:
            logger.info(f"[dry-run] {self.name} would send '{params.subject}' to {params.to}")
            return SendEmailResult(
                success=True,
                provider=self.name,
                message_id=f"dry-run-{uuid.uuid4().hex[:12]}",
            )

        try:
            response = await self._http.post(
                self.endpoint,
                headers={**self._headers(), "Content-Type": "application/json"},
                json=self._payload(params),
            )
        except httpx.HTTPError as e:
            raise ProviderError(
                f"{self.name} request failed: {e}",
                service=self.name,
                code="EMAIL_PROVIDER_UNAVAILABLE",
                unavailable=True,
            ) from e

        if response.status_code >= 400:
            raise self._error_from_response(response)

        body = response.json() if response.content else {}
        return SendEmailResult(
            success=True,
            provider=self.name,
            message_id=body.get(self.message_id_field),
        )

    def _error_from_response(self, response: httpx.Response) -> ProviderError:
        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}
        vendor_code = body.get("code") or body.get("name") or str(response.status_code)
        message = body.get("message") or response.text or "unknown error"
        return ProviderError(
            f"{self.name} rejected the email: {message}",
            service=self.name,
            vendor_code=str(vendor_code),
            code="EMAIL_SEND_FAILED",
            details={"http_status": response.status_code},
            unavailable=response.status_code == 429 or response.status_code >= 500,
        )
