"""Data models shared by provider adapters."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, EmailStr, Field


class FreeTierQuota(BaseModel):
    """Free-tier caps for a provider.

    A cap of 0 means that dimension is not capped; 0/0 means always available.

    Attributes:
        daily_requests: Requests allowed per UTC day
        monthly_credits: Credits allowed per UTC calendar month
    """

    model_config = {"frozen": True}

    daily_requests: int = Field(default=0, ge=0)
    monthly_credits: int = Field(default=0, ge=0)

    @property
    def unlimited(self) -> bool:
        return self.daily_requests == 0 and self.monthly_credits == 0


class ProviderDescriptor(BaseModel):
    """Static description of a capability provider.

    Attributes:
        name: Provider name (e.g., "brevo")
        priority: Lower numbers are tried first
        enabled: Static on/off switch
        quota: Free-tier caps checked before each use
        fallback: Name of the provider to use when this one is unavailable
    """

    model_config = {"frozen": True}

    name: str
    priority: int = Field(..., ge=1)
    enabled: bool = True
    quota: FreeTierQuota = Field(default_factory=FreeTierQuota)
    fallback: Optional[str] = None


class ProviderUsage(BaseModel):
    """Usage counters for one provider.

    Counters reset lazily when read or incremented on a new UTC day or month.
    """

    provider: str
    daily_requests: int = 0
    monthly_credits: int = 0
    last_daily_reset: datetime
    last_monthly_reset: datetime


class ProviderStatus(BaseModel):
    """Descriptor, usage and availability of a provider."""

    name: str
    priority: int
    enabled: bool
    available: bool
    daily_limit: int
    monthly_limit: int
    daily_requests: int
    monthly_credits: int
    fallback: Optional[str] = None


class EmailCategory(str, Enum):
    """Email categories recipients may opt out of.

    Transactional mail is never suppressed.
    """

    TRANSACTIONAL = "transactional"
    MARKETING = "marketing"
    PRODUCT_UPDATES = "product_updates"


class SendEmailParams(BaseModel):
    """A rendered email ready to send."""

    to: EmailStr
    subject: str = Field(..., min_length=1, max_length=998)
    html: str = Field(..., min_length=1)
    text: Optional[str] = None
    template: str = Field(default="custom", description="Template name for logs")
    category: EmailCategory = EmailCategory.TRANSACTIONAL
    user_id: Optional[str] = None
    reply_to: Optional[EmailStr] = None


class SendEmailResult(BaseModel):
    """Outcome of a send."""

    success: bool
    provider: Optional[str] = None
    message_id: Optional[str] = None
    skipped: bool = False
    skip_reason: Optional[str] = None


class ProcessImageParams(BaseModel):
    """Input for an image inference call."""

    model_config = {"frozen": True}

    image: str = Field(..., description="Image as a data URL or https URL")
    model_id: str
    scale: int
    enhance_faces: bool = False
    preserve_text: bool = False
    custom_instructions: Optional[str] = None


class ProcessedImage(BaseModel):
    """Output of an image inference call."""

    image_url: str
    model_id: str
    prediction_id: Optional[str] = None
    processing_time_ms: Optional[int] = None
