"""
Domain: Prioritization entity.

Contract excerpts implemented here:
- At most one Prioritization exists per (client_id, user_id) pair.
- calculated_priority is a pure function of the stored answers and enrichment
  fields. It is recomputed at construction; a mismatching value is rejected,
  so an inconsistent record can neither be built nor loaded.
- Enrichment fields are all set or all unset.
- created_at is a UTC timestamp.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from .enrichment import EnrichmentHint
from .priority import PriorityLevel
from .questionnaire import QuestionnaireAnswers
from .scoring import score
from .time import require_utc_timestamp, utc_now


@dataclass(frozen=True, slots=True)
class Prioritization:
    """
    Persisted priority for one client, owned by the acting user.

    Immutability:
    - This entity is frozen; replacing a prioritization means building a new
      record from new answers, never editing calculated_priority in place.
    """

    prioritization_id: UUID
    client_id: UUID
    user_id: UUID
    answers: QuestionnaireAnswers
    calculated_priority: PriorityLevel
    created_at: datetime
    enrichment: Optional[EnrichmentHint] = None

    def __post_init__(self) -> None:
        require_utc_timestamp("created_at", self.created_at)

        expected = score(self.answers, self.enrichment)
        if self.calculated_priority is not expected:
            raise ValueError(
                f"calculated_priority {self.calculated_priority.value!r} does not match "
                f"the stored answers (expected {expected.value!r})"
            )

    @classmethod
    def compute(
        cls,
        client_id: UUID,
        user_id: UUID,
        answers: QuestionnaireAnswers,
        enrichment: Optional[EnrichmentHint] = None,
        created_at: Optional[datetime] = None,
        prioritization_id: Optional[UUID] = None,
    ) -> "Prioritization":
        """Score the answers and build a new record from the result."""

        return cls(
            prioritization_id=prioritization_id or uuid4(),
            client_id=client_id,
            user_id=user_id,
            answers=answers,
            calculated_priority=score(answers, enrichment),
            created_at=created_at or utc_now(),
            enrichment=enrichment,
        )

    @property
    def has_enrichment(self) -> bool:
        return self.enrichment is not None


__all__ = ["Prioritization"]
