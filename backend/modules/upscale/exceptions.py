"""
Upscale exceptions.
"""

from shared.exceptions import ValidationError


class InvalidImageError(ValidationError):
    """Raised when the uploaded image cannot be decoded."""

    def __init__(self, reason: str):
        super().__init__(f"Invalid image: {reason}", code="INVALID_IMAGE")


class ImageTooLargeError(ValidationError):
    """Raised when the image exceeds the caller's tier size limit."""

    def __init__(self, size_bytes: int, max_bytes: int):
        super().__init__(
            f"Image is {size_bytes / (1024 * 1024):.1f}MB; the limit for your plan is "
            f"{max_bytes // (1024 * 1024)}MB",
            code="FILE_TOO_LARGE",
            details={"size_bytes": size_bytes, "max_bytes": max_bytes},
        )
