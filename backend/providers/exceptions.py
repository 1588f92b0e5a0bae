"""Errors raised by provider selection."""

from typing import Optional

from shared.exceptions import ErrorKind, PixelPerfectError


class NoProviderAvailableError(PixelPerfectError):
    """No enabled provider has quota left."""

    kind = ErrorKind.NO_PROVIDER

    def __init__(self, capability: str, message: Optional[str] = None, code: Optional[str] = None):
        super().__init__(
            message or f"No {capability} providers available. All providers are disabled or quota exceeded.",
            code=code or "NO_PROVIDER_AVAILABLE",
            details={"capability": capability},
        )


class AllProvidersFailedError(NoProviderAvailableError):
    """Every available provider was tried and each one failed."""

    def __init__(self, capability: str, attempted: list[str], last_error: str):
        super().__init__(
            capability,
            message=f"All {capability} providers failed. Last error: {last_error}",
            code="ALL_PROVIDERS_FAILED",
        )
        self.details["attempted"] = attempted
        self.details["last_error"] = last_error
