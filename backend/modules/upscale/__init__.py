"""
Upscale module.

Prices, gates and charges image processing, then runs it through an
inference vendor under the credit ledger.

Public API:
- IUpscaleService: Interface for charged image processing
- IImageProcessor: Interface for inference vendors
- UpscaleService: Implementation
"""

from .interfaces import IImageProcessor, IUpscaleService
from .models import (
    EstimateRequest,
    EstimateResponse,
    UpscaleRequest,
    UpscaleResponse,
)
from .exceptions import ImageTooLargeError, InvalidImageError
from .service import (
    MAX_IMAGE_BYTES_FREE,
    MAX_IMAGE_BYTES_PAID,
    UpscaleService,
)

__all__ = [
    # Interfaces
    "IImageProcessor",
    "IUpscaleService",
    # Models
    "EstimateRequest",
    "EstimateResponse",
    "UpscaleRequest",
    "UpscaleResponse",
    # Exceptions
    "InvalidImageError",
    "ImageTooLargeError",
    # Service
    "UpscaleService",
    "MAX_IMAGE_BYTES_FREE",
    "MAX_IMAGE_BYTES_PAID",
]
