"""
Tests for `domain/prioritization.py` and `domain/enrichment.py`.

Covers rules:
- calculated_priority always matches the stored answers and enrichment.
- created_at must be a UTC timestamp.
- Prioritization records are immutable.
- An enrichment result carries a hint if and only if it is available.
"""

from __future__ import annotations

from dataclasses import FrozenInstanceError
from datetime import datetime, timedelta, timezone
from uuid import UUID

import pytest

from domain.enrichment import EnrichmentHint, EnrichmentResult, EnrichmentStatus
from domain.prioritization import Prioritization
from domain.priority import PriorityLevel, Sentiment
from domain.questionnaire import QuestionnaireAnswers

CLIENT = UUID("00000000-0000-0000-0000-0000000000c1")
USER = UUID("00000000-0000-0000-0000-0000000000a1")
CREATED = datetime(2025, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


def test_compute_scores_the_answers() -> None:
    record = Prioritization.compute(CLIENT, USER, QuestionnaireAnswers.from_raw("3+", "10+times"))

    assert record.calculated_priority is PriorityLevel.HIGH
    assert record.has_enrichment is False
    assert record.created_at.utcoffset() == timedelta(0)


def test_mismatched_priority_is_rejected() -> None:
    with pytest.raises(ValueError):
        Prioritization(
            prioritization_id=UUID(int=1),
            client_id=CLIENT,
            user_id=USER,
            answers=QuestionnaireAnswers.from_raw("1", "1-2times"),
            calculated_priority=PriorityLevel.HIGH,
            created_at=CREATED,
        )


def test_priority_must_account_for_enrichment() -> None:
    answers = QuestionnaireAnswers.from_raw("2", "6-9times", who_initiated="client")
    hint = EnrichmentHint(priority=PriorityLevel.HIGH, keywords_count=3, sentiment=Sentiment.HIGH)

    with pytest.raises(ValueError):
        Prioritization(
            prioritization_id=UUID(int=1),
            client_id=CLIENT,
            user_id=USER,
            answers=answers,
            calculated_priority=PriorityLevel.MEDIUM,
            created_at=CREATED,
            enrichment=hint,
        )


def test_created_at_must_be_utc() -> None:
    answers = QuestionnaireAnswers.from_raw("1", "1-2times")

    with pytest.raises(ValueError):
        Prioritization.compute(CLIENT, USER, answers, created_at=datetime(2025, 1, 1, 12, 0, 0))
    with pytest.raises(ValueError):
        Prioritization.compute(
            CLIENT, USER, answers, created_at=datetime(2025, 1, 1, 12, 0, 0, tzinfo=timezone(timedelta(hours=2)))
        )


def test_prioritization_is_immutable() -> None:
    record = Prioritization.compute(CLIENT, USER, QuestionnaireAnswers.from_raw("1", "1-2times"), created_at=CREATED)

    with pytest.raises(FrozenInstanceError):
        record.calculated_priority = PriorityLevel.HIGH  # type: ignore[misc]


@pytest.mark.parametrize("count", [-1, 1.5, True])
def test_hint_keywords_count_must_be_non_negative_int(count) -> None:
    with pytest.raises(ValueError):
        EnrichmentHint(priority=PriorityLevel.LOW, keywords_count=count, sentiment=Sentiment.LOW)


def test_enrichment_result_states() -> None:
    hint = EnrichmentHint(priority=PriorityLevel.LOW, keywords_count=0, sentiment=Sentiment.MID)

    available = EnrichmentResult.available(hint)
    unavailable = EnrichmentResult.unavailable("the image analysis timed out")
    skipped = EnrichmentResult.skipped()

    assert available.is_available and available.hint is hint and available.warning is None
    assert unavailable.status is EnrichmentStatus.UNAVAILABLE and unavailable.hint is None
    assert "timed out" in unavailable.warning
    assert skipped.hint is None and skipped.warning is None


def test_enrichment_result_rejects_inconsistent_state() -> None:
    with pytest.raises(ValueError):
        EnrichmentResult(status=EnrichmentStatus.AVAILABLE)
