"""
Domain: client priority scoring (pure).

Weighted rule evaluation over integer points. No I/O, no randomness; the same
answers and hint always produce the same level.

Points per factor:
- active_deals:           1 -> 0,  2 -> 4,  3+ -> 8
- interaction_frequency:  1-2times -> -4,  3-5times -> 0,  6-9times -> 4,  10+times -> 8
- who_initiated:          client -> +2,  you / unanswered -> 0
- pending_proposal:       yes -> +4,  no / unanswered -> 0
- enrichment priority:    low -> -2,  medium -> 0,  high -> +2
- enrichment sentiment:   low -> -1,  mid -> 0,  high -> +1

Level thresholds on the total:
- total < 2  -> low
- total > 10 -> high
- otherwise  -> medium (both boundary values resolve to medium)

An unanswered optional question contributes exactly what its neutral answer
contributes. The largest enrichment swing (3 points) is smaller than one step
of either mandatory answer (4 points).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional

from .enrichment import EnrichmentHint
from .priority import (
    ActiveDealsBucket,
    InteractionFrequency,
    PendingProposal,
    PriorityLevel,
    Sentiment,
    WhoInitiated,
)
from .questionnaire import QuestionnaireAnswers

ACTIVE_DEALS_POINTS: Mapping[ActiveDealsBucket, int] = {
    ActiveDealsBucket.ONE: 0,
    ActiveDealsBucket.TWO: 4,
    ActiveDealsBucket.THREE_PLUS: 8,
}

INTERACTION_FREQUENCY_POINTS: Mapping[InteractionFrequency, int] = {
    InteractionFrequency.ONE_TO_TWO: -4,
    InteractionFrequency.THREE_TO_FIVE: 0,
    InteractionFrequency.SIX_TO_NINE: 4,
    InteractionFrequency.TEN_PLUS: 8,
}

WHO_INITIATED_POINTS: Mapping[WhoInitiated, int] = {
    WhoInitiated.CLIENT: 2,
    WhoInitiated.YOU: 0,
}

PENDING_PROPOSAL_POINTS: Mapping[PendingProposal, int] = {
    PendingProposal.YES: 4,
    PendingProposal.NO: 0,
}

HINT_PRIORITY_POINTS: Mapping[PriorityLevel, int] = {
    PriorityLevel.LOW: -2,
    PriorityLevel.MEDIUM: 0,
    PriorityLevel.HIGH: 2,
}

HINT_SENTIMENT_POINTS: Mapping[Sentiment, int] = {
    Sentiment.LOW: -1,
    Sentiment.MID: 0,
    Sentiment.HIGH: 1,
}

MEDIUM_MIN_POINTS = 2
MEDIUM_MAX_POINTS = 10


@dataclass(frozen=True, slots=True)
class ScoreBreakdown:
    """Per-factor points behind a priority level."""

    active_deals: int
    interaction_frequency: int
    who_initiated: int
    pending_proposal: int
    enrichment: int

    @property
    def total(self) -> int:
        return (
            self.active_deals
            + self.interaction_frequency
            + self.who_initiated
            + self.pending_proposal
            + self.enrichment
        )

    @property
    def level(self) -> PriorityLevel:
        return level_for_points(self.total)


def level_for_points(points: int) -> PriorityLevel:
    if points < MEDIUM_MIN_POINTS:
        return PriorityLevel.LOW
    if points > MEDIUM_MAX_POINTS:
        return PriorityLevel.HIGH
    return PriorityLevel.MEDIUM


def score_breakdown(
    answers: QuestionnaireAnswers, hint: Optional[EnrichmentHint] = None
) -> ScoreBreakdown:
    """
    Compute the points each factor contributes.

    A malformed answer (not one of its options) is a programming error: the
    lookup raises KeyError. QuestionnaireAnswers already rejects such values.
    """

    enrichment = 0
    if hint is not None:
        enrichment = HINT_PRIORITY_POINTS[hint.priority] + HINT_SENTIMENT_POINTS[hint.sentiment]

    return ScoreBreakdown(
        active_deals=ACTIVE_DEALS_POINTS[answers.active_deals],
        interaction_frequency=INTERACTION_FREQUENCY_POINTS[answers.interaction_frequency],
        who_initiated=(
            WHO_INITIATED_POINTS[answers.who_initiated] if answers.who_initiated is not None else 0
        ),
        pending_proposal=(
            PENDING_PROPOSAL_POINTS[answers.pending_proposal]
            if answers.pending_proposal is not None
            else 0
        ),
        enrichment=enrichment,
    )


def score(answers: QuestionnaireAnswers, hint: Optional[EnrichmentHint] = None) -> PriorityLevel:
    """
    Map questionnaire answers (and an optional enrichment hint) to a priority level.

    Example:
        answers = QuestionnaireAnswers.from_raw("3+", "10+times")
        score(answers)  # PriorityLevel.HIGH
    """

    return score_breakdown(answers, hint).level


__all__ = [
    "ScoreBreakdown",
    "level_for_points",
    "score_breakdown",
    "score",
    "MEDIUM_MIN_POINTS",
    "MEDIUM_MAX_POINTS",
]
