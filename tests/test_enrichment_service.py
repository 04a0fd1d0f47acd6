"""
Tests for `services/enrichment_service.py`.

Covers rules:
- Only JPEG/PNG images are accepted, and they are rejected before any call.
- A well-formed model reply becomes an available hint.
- Timeouts, API errors and malformed replies become an unavailable result,
  never an exception.
"""

from __future__ import annotations

import json
from types import SimpleNamespace

import httpx
import openai
import pytest

from conftest import JPEG_BYTES, PNG_BYTES, FakeOpenAI
from domain.enrichment import EnrichmentStatus
from domain.errors import ImageValidationError
from domain.priority import PriorityLevel, Sentiment
from services.enrichment_service import ImageEnrichmentService, validate_image

GOOD_REPLY = json.dumps({"priority": "high", "keywordsCount": 7, "sentiment": "mid"})


@pytest.mark.parametrize(
    "image, content_type, expected",
    [
        (JPEG_BYTES, "image/jpeg", "image/jpeg"),
        (JPEG_BYTES, "image/jpg", "image/jpeg"),
        (PNG_BYTES, "IMAGE/PNG", "image/png"),
    ],
)
def test_validate_image_accepts_jpeg_and_png(image: bytes, content_type: str, expected: str) -> None:
    assert validate_image(image, content_type) == expected


@pytest.mark.parametrize(
    "image, content_type",
    [
        (b"%PDF-1.7 ...", "application/pdf"),
        (b"GIF89a....", "image/gif"),
        (JPEG_BYTES, None),
        (b"", "image/png"),
        (PNG_BYTES, "image/jpeg"),  # bytes do not match the declared type
    ],
)
def test_validate_image_rejects_other_content(image: bytes, content_type) -> None:
    with pytest.raises(ImageValidationError):
        validate_image(image, content_type)


def test_validate_image_enforces_size_limit() -> None:
    with pytest.raises(ImageValidationError):
        validate_image(PNG_BYTES, "image/png", max_bytes=8)


@pytest.mark.asyncio
async def test_wrong_content_type_fails_before_calling_the_service(make_enrichment_service) -> None:
    service, completions = make_enrichment_service(content=GOOD_REPLY)

    with pytest.raises(ImageValidationError):
        await service.analyze(b"GIF89a....", "image/gif")

    assert completions.calls == []


@pytest.mark.asyncio
async def test_successful_analysis_returns_hint(make_enrichment_service) -> None:
    service, completions = make_enrichment_service(content=GOOD_REPLY)

    result = await service.analyze(PNG_BYTES, "image/png")

    assert result.status is EnrichmentStatus.AVAILABLE
    assert result.hint.priority is PriorityLevel.HIGH
    assert result.hint.keywords_count == 7
    assert result.hint.sentiment is Sentiment.MID

    assert len(completions.calls) == 1
    call = completions.calls[0]
    assert call["model"] == "test-vision"
    image_part = call["messages"][1]["content"][1]
    assert image_part["image_url"]["url"].startswith("data:image/png;base64,")


@pytest.mark.asyncio
async def test_fenced_json_reply_is_accepted(make_enrichment_service) -> None:
    service, _ = make_enrichment_service(content=f"```json\n{GOOD_REPLY}\n```")

    result = await service.analyze(JPEG_BYTES, "image/jpeg")

    assert result.is_available


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "reply",
    [
        None,
        "not json at all",
        json.dumps(["high", 7, "mid"]),
        json.dumps({"priority": "urgent", "keywordsCount": 1, "sentiment": "mid"}),
        json.dumps({"priority": "low", "keywordsCount": -2, "sentiment": "mid"}),
        json.dumps({"priority": "low", "keywordsCount": "3", "sentiment": "mid"}),
        json.dumps({"priority": "low", "sentiment": "mid"}),
    ],
)
async def test_malformed_reply_is_unavailable(make_enrichment_service, reply) -> None:
    service, _ = make_enrichment_service(content=reply)

    result = await service.analyze(JPEG_BYTES, "image/jpeg")

    assert result.status is EnrichmentStatus.UNAVAILABLE
    assert result.hint is None
    assert result.warning


@pytest.mark.asyncio
async def test_timeout_is_unavailable(make_enrichment_service) -> None:
    service, _ = make_enrichment_service(content=GOOD_REPLY, delay=1.0, timeout=0.01)

    result = await service.analyze(JPEG_BYTES, "image/jpeg")

    assert result.status is EnrichmentStatus.UNAVAILABLE
    assert "timed out" in result.reason


@pytest.mark.asyncio
async def test_api_error_is_unavailable(make_enrichment_service) -> None:
    error = openai.APIConnectionError(request=httpx.Request("POST", "https://api.openai.com/v1/chat/completions"))
    service, _ = make_enrichment_service(error=error)

    result = await service.analyze(PNG_BYTES, "image/png")

    assert result.status is EnrichmentStatus.UNAVAILABLE
    assert result.hint is None


@pytest.mark.asyncio
async def test_missing_api_key_is_unavailable(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    service = ImageEnrichmentService()

    result = await service.analyze(PNG_BYTES, "image/png")

    assert result.status is EnrichmentStatus.UNAVAILABLE


@pytest.mark.asyncio
async def test_transport_error_outside_openai_is_unavailable(make_enrichment_service) -> None:
    service, _ = make_enrichment_service(error=ConnectionResetError("peer reset"))

    result = await service.analyze(JPEG_BYTES, "image/jpeg")

    assert result.status is EnrichmentStatus.UNAVAILABLE
    assert result.hint is None
    assert result.warning


@pytest.mark.asyncio
async def test_reply_without_choices_is_unavailable() -> None:
    class NoChoicesCompletions:
        async def create(self, **kwargs):
            return SimpleNamespace(choices=None)

    service = ImageEnrichmentService(client=FakeOpenAI(NoChoicesCompletions()), model="test-vision")

    result = await service.analyze(JPEG_BYTES, "image/jpeg")

    assert result.status is EnrichmentStatus.UNAVAILABLE
    assert result.hint is None
