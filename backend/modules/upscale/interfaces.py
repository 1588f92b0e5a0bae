"""
Upscale module interface.
"""

from typing import Protocol, runtime_checkable

from providers.models import ProcessedImage, ProcessImageParams

from .models import EstimateRequest, EstimateResponse, UpscaleRequest, UpscaleResponse


@runtime_checkable
class IImageProcessor(Protocol):
    """An inference vendor that turns one image into another."""

    async def process(self, params: ProcessImageParams) -> ProcessedImage:
        """
        Run inference on one image.

        Raises:
            ProviderError: On any vendor failure; the vendor's code is in details
        """
        ...


@runtime_checkable
class IUpscaleService(Protocol):
    """
    Interface for charged image processing.
    """

    async def estimate(self, request: EstimateRequest) -> EstimateResponse:
        """
        Price an operation without charging.

        Raises:
            ValidationError: If the quality tier or scale is not supported
        """
        ...

    async def upscale(self, user_id: str, request: UpscaleRequest) -> UpscaleResponse:
        """
        Validate, gate, charge and run an upscale.

        Args:
            user_id: Authenticated caller
            request: Image and processing options

        Returns:
            UpscaleResponse with the output URL and the balance after the debit

        Raises:
            ValidationError: For bad images, tiers or scales
            ForbiddenTierError: If the quality tier needs a higher plan
            BatchLimitExceededError: If the hourly batch cap is reached
            InsufficientCreditsError: If the balance is below the cost
            ProviderError: If inference fails (credits are refunded)
            OperationTimeoutError: If inference exceeds the timeout (credits are refunded)
        """
        ...
