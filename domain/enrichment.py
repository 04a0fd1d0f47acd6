"""
Domain: image enrichment hint and result.

Enrichment is best-effort. The adapter never raises for a service-side
failure; it returns an EnrichmentResult that either carries a hint or says
why the hint is unavailable. Callers pass `result.hint` (possibly None) to
the scoring function.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .priority import PriorityLevel, Sentiment


@dataclass(frozen=True, slots=True)
class EnrichmentHint:
    priority: PriorityLevel
    keywords_count: int
    sentiment: Sentiment

    def __post_init__(self) -> None:
        if not isinstance(self.priority, PriorityLevel):
            raise ValueError("priority must be a PriorityLevel")
        if not isinstance(self.sentiment, Sentiment):
            raise ValueError("sentiment must be a Sentiment")
        if isinstance(self.keywords_count, bool) or not isinstance(self.keywords_count, int):
            raise ValueError("keywords_count must be an integer")
        if self.keywords_count < 0:
            raise ValueError("keywords_count must be >= 0")


class EnrichmentStatus(str, Enum):
    AVAILABLE = "available"
    UNAVAILABLE = "unavailable"
    SKIPPED = "skipped"  # no image supplied


@dataclass(frozen=True, slots=True)
class EnrichmentResult:
    status: EnrichmentStatus
    hint: Optional[EnrichmentHint] = None
    reason: Optional[str] = None

    def __post_init__(self) -> None:
        if (self.status is EnrichmentStatus.AVAILABLE) != (self.hint is not None):
            raise ValueError("hint must be set if and only if status is AVAILABLE")

    @classmethod
    def available(cls, hint: EnrichmentHint) -> "EnrichmentResult":
        return cls(status=EnrichmentStatus.AVAILABLE, hint=hint)

    @classmethod
    def unavailable(cls, reason: str) -> "EnrichmentResult":
        return cls(status=EnrichmentStatus.UNAVAILABLE, reason=reason)

    @classmethod
    def skipped(cls) -> "EnrichmentResult":
        return cls(status=EnrichmentStatus.SKIPPED)

    @property
    def is_available(self) -> bool:
        return self.status is EnrichmentStatus.AVAILABLE

    @property
    def warning(self) -> Optional[str]:
        """User-facing warning when an image was supplied but could not be analyzed."""
        if self.status is EnrichmentStatus.UNAVAILABLE:
            return f"Image analysis skipped: {self.reason}. Priority was computed without it."
        return None


__all__ = ["EnrichmentHint", "EnrichmentStatus", "EnrichmentResult"]
