"""Image inference through the Replicate predictions API."""

import asyncio
import logging
import time
from typing import Any, Optional

import httpx

from shared.exceptions import ProviderError

from .models import ProcessedImage, ProcessImageParams

logger = logging.getLogger(__name__)

# Catalog model ids to Replicate model references ("owner/name" or "owner/name:version")
MODEL_REFS: dict[str, str] = {
    "real-esrgan": "nightmareai/real-esrgan",
    "gfpgan": "tencentarc/gfpgan:0fbacf7afc6c144e5be9767cff80f25aff23e52b0708f17e20f9879b2f21516c",
    "clarity-upscaler": (
        "philz1337x/clarity-upscaler:dfad41707589d68ecdccd1dfa600d55a208f9310748e44bfe35b4a6291453d5e"
    ),
    "nano-banana-pro": "google/nano-banana-pro",
}

TERMINAL_STATUSES = {"succeeded", "failed", "canceled"}
SAFETY_MARKERS = ("nsfw", "safety", "flagged")

SERVICE = "replicate"


def build_input(params: ProcessImageParams) -> dict[str, Any]:
    """Build the model-specific input payload for a prediction."""
    if params.model_id in ("real-esrgan", "realesrgan-anime"):
        return {
            "image": params.image,
            "scale": params.scale,
            "face_enhance": params.enhance_faces,
        }
    if params.model_id == "gfpgan":
        return {"img": params.image, "scale": params.scale, "version": "v1.4"}
    if params.model_id == "clarity-upscaler":
        return {
            "image": params.image,
            "scale_factor": params.scale,
            "prompt": params.custom_instructions or "masterpiece, best quality, highres",
        }

    # Instruction-following edit models
    prompt = f"Upscale this image to {params.scale}x resolution with enhanced sharpness and detail."
    if params.enhance_faces:
        prompt += " Restore facial details naturally."
    if params.preserve_text:
        prompt += " Keep all text and logos legible and unchanged."
    if params.custom_instructions:
        prompt += f" {params.custom_instructions}"
    return {"image_input": [params.image], "prompt": prompt}


def extract_output_url(output: Any) -> Optional[str]:
    """Get the image URL from a prediction's output (string or list of strings)."""
    if isinstance(output, str):
        return output
    if isinstance(output, list) and output and isinstance(output[0], str):
        return output[0]
    if isinstance(output, dict) and isinstance(output.get("url"), str):
        return output["url"]
    return None


class ReplicateImageProcessor:
    """Runs an upscale/edit prediction and waits for the result.

    The caller bounds total wall time; this class only polls until the
    prediction reaches a terminal state.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        api_token: str,
        default_model: str = "nightmareai/real-esrgan",
        base_url: str = "https://api.replicate.com/v1",
        poll_interval: float = 1.0,
    ):
        if not api_token:
            raise RuntimeError("Replicate API token not configured. Set REPLICATE_API_TOKEN.")
        self._http = http_client
        self._api_token = api_token
        self._default_model = default_model
        self._base_url = base_url.rstrip("/")
        self._poll_interval = poll_interval

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._api_token}",
            "Content-Type": "application/json",
        }

    def _create_request(self, params: ProcessImageParams) -> tuple[str, dict[str, Any]]:
        ref = MODEL_REFS.get(params.model_id, self._default_model)
        body: dict[str, Any] = {"input": build_input(params)}
        if ":" in ref:
            body["version"] = ref.split(":", 1)[1]
            return f"{self._base_url}/predictions", body
        return f"{self._base_url}/models/{ref}/predictions", body

    async def process(self, params: ProcessImageParams) -> ProcessedImage:
        """Run inference for one image.

        Raises:
            ProviderError: With vendor_code RATE_LIMITED or SAFETY where the
                vendor reported those, otherwise PROCESSING_FAILED
        """
        started = time.monotonic()
        url, body = self._create_request(params)
        prediction = await self._request(
            "POST", url, json=body, headers={**self._headers(), "Prefer": "wait"}
        )

        while prediction.get("status") not in TERMINAL_STATUSES:
            poll_url = (prediction.get("urls") or {}).get("get")
            if not poll_url:
                raise ProviderError(
                    "Prediction is still running but has no poll URL",
                    service=SERVICE,
                    vendor_code="NO_OUTPUT",
                    code="PROCESSING_FAILED",
                )
            await asyncio.sleep(self._poll_interval)
            prediction = await self._request("GET", poll_url, headers=self._headers())

        if prediction["status"] != "succeeded":
            raise self._prediction_error(prediction)

        image_url = extract_output_url(prediction.get("output"))
        if not image_url:
            raise ProviderError(
                "Model returned no output image",
                service=SERVICE,
                vendor_code="NO_OUTPUT",
                code="PROCESSING_FAILED",
            )

        elapsed_ms = int((time.monotonic() - started) * 1000)
        logger.info(f"Prediction {prediction.get('id')} ({params.model_id}) finished in {elapsed_ms}ms")
        return ProcessedImage(
            image_url=image_url,
            model_id=params.model_id,
            prediction_id=prediction.get("id"),
            processing_time_ms=elapsed_ms,
        )

    async def _request(self, method: str, url: str, **kwargs: Any) -> dict[str, Any]:
        try:
            response = await self._http.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            raise ProviderError(
                f"Could not reach the inference service: {e}",
                service=SERVICE,
                code="AI_UNAVAILABLE",
                unavailable=True,
            ) from e

        if response.status_code == 429:
            raise ProviderError(
                "Inference service is rate limited. Please try again shortly.",
                service=SERVICE,
                vendor_code="RATE_LIMITED",
                code="AI_UNAVAILABLE",
                unavailable=True,
            )
        if response.status_code >= 400:
            raise ProviderError(
                f"Inference request failed with status {response.status_code}",
                service=SERVICE,
                vendor_code=str(response.status_code),
                code="PROCESSING_FAILED",
                details={"http_status": response.status_code},
                unavailable=response.status_code >= 500,
            )
        return response.json()

    def _prediction_error(self, prediction: dict[str, Any]) -> ProviderError:
        error_text = str(prediction.get("error") or prediction.get("status"))
        if any(marker in error_text.lower() for marker in SAFETY_MARKERS):
            return ProviderError(
                "Image was rejected by the content safety filter",
                service=SERVICE,
                vendor_code="SAFETY",
                code="CONTENT_REJECTED",
            )
        return ProviderError(
            f"Image processing failed: {error_text}",
            service=SERVICE,
            vendor_code="PROCESSING_FAILED",
            code="PROCESSING_FAILED",
        )
