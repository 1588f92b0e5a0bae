"""
Upscale request and response models.
"""

from typing import Literal, Optional

from pydantic import BaseModel, Field

from modules.billing.models import CostBreakdown, UpscaleOptions

ImageMimeType = Literal["image/jpeg", "image/png", "image/webp", "image/heic"]


class EstimateRequest(BaseModel):
    """Body of POST /api/upscale/estimate."""

    quality_tier: str = Field(default="quick", description="Quality tier key")
    scale: int = Field(default=2, description="Upscale factor (2, 4 or 8)")
    options: UpscaleOptions = Field(default_factory=UpscaleOptions)


class UpscaleRequest(EstimateRequest):
    """Body of POST /api/upscale."""

    image_data: str = Field(..., min_length=1, description="Base64 image or data URL")
    mime_type: ImageMimeType = "image/jpeg"

    def to_data_url(self) -> str:
        if self.image_data.startswith("data:"):
            return self.image_data
        return f"data:{self.mime_type};base64,{self.image_data}"

    def base64_payload(self) -> str:
        if self.image_data.startswith("data:"):
            return self.image_data.split(",", 1)[-1]
        return self.image_data


class UpscaleResponse(BaseModel):
    """Result of a charged upscale."""

    image_url: str
    job_id: str
    model_id: str
    credits_used: int
    credits_remaining: int
    low_credits: bool = Field(..., description="Remaining balance is below the warning threshold")
    processing_time_ms: Optional[int] = None
    cost: CostBreakdown


class EstimateResponse(BaseModel):
    cost: CostBreakdown
    model_id: str
