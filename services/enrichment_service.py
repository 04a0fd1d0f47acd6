"""
Image enrichment service for client prioritization.

Wraps a single OpenAI vision call that reads an uploaded image (a screenshot
of a conversation, notes about the client, ...) and classifies it into:
- a priority hint (low / medium / high)
- the number of buying-intent keywords found
- a sentiment bucket (low / mid / high)

Failure handling:
- A wrong content type, an empty image, or an oversized image raises
  ImageValidationError *before* any network call.
- Everything that goes wrong on the service side (missing API key, transport
  error, timeout, unexpected response shape) is returned as
  EnrichmentResult.unavailable(...) and logged as a warning. Enrichment must
  never block saving a priority.

Usage:
    from services.enrichment_service import analyze_image

    result = await analyze_image(image_bytes, "image/png")
    hint = result.hint  # None when unavailable
"""

from __future__ import annotations

import asyncio
import base64
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Literal, Optional

from dotenv import load_dotenv
from openai import AsyncOpenAI, OpenAIError
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from domain.enrichment import EnrichmentHint, EnrichmentResult
from domain.errors import ImageValidationError
from domain.priority import PriorityLevel, Sentiment

logger = logging.getLogger(__name__)

env_path = Path(__file__).parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DEFAULT_VISION_MODEL = "gpt-4o-mini"
DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_MAX_IMAGE_BYTES = 10 * 1024 * 1024

# Declared content type -> canonical content type. "image/jpg" is not a
# registered type but browsers still send it.
SUPPORTED_CONTENT_TYPES: Dict[str, str] = {
    "image/jpeg": "image/jpeg",
    "image/jpg": "image/jpeg",
    "image/png": "image/png",
}

_MAGIC_BYTES: Dict[str, bytes] = {
    "image/jpeg": b"\xff\xd8\xff",
    "image/png": b"\x89PNG\r\n\x1a\n",
}

SYSTEM_PROMPT = """You analyze images a salesperson uploads about a CRM client \
(chat screenshots, meeting notes, emails). Judge how urgently the salesperson \
should follow up with this client.

Respond with a single JSON object and nothing else:
{"priority": "low" | "medium" | "high",
 "keywordsCount": <number of buying-intent keywords you found, integer >= 0>,
 "sentiment": "low" | "mid" | "high"}"""

USER_PROMPT = "Analyze this image about the client and return the JSON object."


class _AnalysisPayload(BaseModel):
    """Exact shape expected back from the model; anything else is a failure."""

    model_config = ConfigDict(extra="ignore")

    priority: Literal["low", "medium", "high"]
    keywords_count: int = Field(alias="keywordsCount", ge=0, strict=True)
    sentiment: Literal["low", "mid", "high"]

    def to_hint(self) -> EnrichmentHint:
        return EnrichmentHint(
            priority=PriorityLevel(self.priority),
            keywords_count=self.keywords_count,
            sentiment=Sentiment(self.sentiment),
        )


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning(f"Ignoring invalid {name}={raw!r}; using {default}")
        return default


def validate_image(image: bytes, content_type: Optional[str], max_bytes: int = DEFAULT_MAX_IMAGE_BYTES) -> str:
    """
    Check an uploaded image before it is sent anywhere.

    Args:
        image: Raw image bytes
        content_type: Content type declared by the upload
        max_bytes: Largest accepted image size

    Returns:
        Canonical content type ("image/jpeg" or "image/png")

    Raises:
        ImageValidationError: If the image is empty, too large, not JPEG/PNG, or
            its bytes do not match the declared type
    """

    declared = (content_type or "").split(";")[0].strip().lower()
    canonical = SUPPORTED_CONTENT_TYPES.get(declared)
    if canonical is None:
        raise ImageValidationError(
            f"Unsupported image type {content_type!r}. Upload a JPG, JPEG or PNG image."
        )

    if not image:
        raise ImageValidationError("Uploaded image is empty")

    if len(image) > max_bytes:
        raise ImageValidationError(
            f"Uploaded image is {len(image)} bytes; the limit is {max_bytes} bytes"
        )

    if not image.startswith(_MAGIC_BYTES[canonical]):
        raise ImageValidationError(f"Uploaded image content is not a valid {canonical} file")

    return canonical


def _parse_response_text(text: Optional[str]) -> EnrichmentHint:
    """Parse the model's reply into a hint; raises ValueError on any other shape."""

    if not text:
        raise ValueError("empty response")

    body = text.strip()
    # Models sometimes wrap JSON in a fenced code block despite instructions.
    if body.startswith("```"):
        body = body.strip("`")
        if body.lower().startswith("json"):
            body = body[4:]

    data: Any = json.loads(body)
    if not isinstance(data, dict):
        raise ValueError("response is not a JSON object")

    return _AnalysisPayload.model_validate(data).to_hint()


class ImageEnrichmentService:
    """Best-effort image analysis through the OpenAI chat completions API."""

    def __init__(
        self,
        client: Optional[AsyncOpenAI] = None,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
        max_image_bytes: Optional[int] = None,
    ):
        """
        Initialize the enrichment service.

        Args:
            client: Pre-built AsyncOpenAI client (tests inject a fake here)
            api_key: OpenAI API key (defaults to OPENAI_API_KEY env var)
            model: Vision model (defaults to OPENAI_VISION_MODEL or gpt-4o-mini)
            timeout_seconds: Upper bound for the whole call
                (defaults to ENRICHMENT_TIMEOUT_SECONDS or 30)
            max_image_bytes: Largest accepted image
                (defaults to ENRICHMENT_MAX_IMAGE_BYTES or 10 MiB)
        """

        self.model = model or os.getenv("OPENAI_VISION_MODEL") or DEFAULT_VISION_MODEL
        self.timeout_seconds = (
            timeout_seconds
            if timeout_seconds is not None
            else _env_float("ENRICHMENT_TIMEOUT_SECONDS", DEFAULT_TIMEOUT_SECONDS)
        )
        self.max_image_bytes = (
            max_image_bytes
            if max_image_bytes is not None
            else int(_env_float("ENRICHMENT_MAX_IMAGE_BYTES", DEFAULT_MAX_IMAGE_BYTES))
        )

        self._client = client
        self._api_key = api_key or os.getenv("OPENAI_API_KEY")

    def _get_client(self) -> Optional[AsyncOpenAI]:
        if self._client is None and self._api_key:
            self._client = AsyncOpenAI(api_key=self._api_key)
        return self._client

    async def analyze(self, image: bytes, content_type: Optional[str]) -> EnrichmentResult:
        """
        Classify an image into an enrichment hint.

        Raises:
            ImageValidationError: Before any network call, if the image is not
                an acceptable JPEG/PNG.

        Returns:
            EnrichmentResult.available(hint) on success, otherwise
            EnrichmentResult.unavailable(reason).
        """

        canonical_type = validate_image(image, content_type, self.max_image_bytes)

        client = self._get_client()
        if client is None:
            logger.warning("Image enrichment skipped: OPENAI_API_KEY is not configured")
            return EnrichmentResult.unavailable("image analysis is not configured")

        data_url = f"data:{canonical_type};base64,{base64.b64encode(image).decode()}"
        messages = [
            {"role": "system", "content": SYSTEM_PROMPT},
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": USER_PROMPT},
                    {"type": "image_url", "image_url": {"url": data_url}},
                ],
            },
        ]

        try:
            response = await asyncio.wait_for(
                client.chat.completions.create(
                    model=self.model,
                    messages=messages,
                    temperature=0,
                    max_tokens=200,
                    response_format={"type": "json_object"},
                ),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.warning(
                f"Image enrichment timed out after {self.timeout_seconds}s",
                extra={"model": self.model, "image_bytes": len(image)},
            )
            return EnrichmentResult.unavailable("the image analysis timed out")
        except OpenAIError as e:
            logger.warning(
                f"Image enrichment request failed: {e}",
                extra={"model": self.model, "error_type": type(e).__name__},
            )
            return EnrichmentResult.unavailable("the image analysis service failed")
        except Exception as e:
            logger.warning(
                f"Image enrichment request failed unexpectedly: {e}",
                extra={"model": self.model, "error_type": type(e).__name__},
                exc_info=True,
            )
            return EnrichmentResult.unavailable("the image analysis service failed")

        try:
            text = response.choices[0].message.content
            hint = _parse_response_text(text)
        except (AttributeError, IndexError, TypeError, ValueError, ValidationError) as e:
            # json.JSONDecodeError is a ValueError
            logger.warning(
                f"Image enrichment returned an unexpected response: {e}",
                extra={"model": self.model},
            )
            return EnrichmentResult.unavailable("the image analysis returned an unexpected response")

        logger.info(
            f"Image enrichment: priority={hint.priority.value}, "
            f"keywords={hint.keywords_count}, sentiment={hint.sentiment.value}"
        )
        return EnrichmentResult.available(hint)


_default_service: Optional[ImageEnrichmentService] = None


def get_enrichment_service() -> ImageEnrichmentService:
    """Get the shared enrichment service configured from the environment."""
    global _default_service
    if _default_service is None:
        _default_service = ImageEnrichmentService()
    return _default_service


async def analyze_image(
    image: bytes,
    content_type: Optional[str],
    service: Optional[ImageEnrichmentService] = None,
) -> EnrichmentResult:
    """Analyze an image with the given (or shared) enrichment service."""

    return await (service or get_enrichment_service()).analyze(image, content_type)


__all__ = [
    "SUPPORTED_CONTENT_TYPES",
    "ImageEnrichmentService",
    "validate_image",
    "get_enrichment_service",
    "analyze_image",
]
