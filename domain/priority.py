"""
Domain: questionnaire options and priority levels.

Every answer the prioritization questionnaire accepts is a closed set of
string values. The string values are the ones stored in the `prioritizations`
table and sent by the UI, so they must not change.
"""

from __future__ import annotations

from enum import Enum


class PriorityLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def rank(self) -> int:
        """Ordinal position (low=0, medium=1, high=2) used for comparisons."""
        return _PRIORITY_RANK[self]


_PRIORITY_RANK = {
    PriorityLevel.LOW: 0,
    PriorityLevel.MEDIUM: 1,
    PriorityLevel.HIGH: 2,
}


class ActiveDealsBucket(str, Enum):
    ONE = "1"
    TWO = "2"
    THREE_PLUS = "3+"

    @staticmethod
    def for_count(active_deal_count: int) -> "ActiveDealsBucket":
        """
        Bucket the number of non-closed deals for a client.

        A client with no open deal falls into the lowest bucket; there is no
        "0" option in the questionnaire.
        """

        if active_deal_count < 0:
            raise ValueError("active_deal_count must be >= 0")

        if active_deal_count <= 1:
            return ActiveDealsBucket.ONE
        if active_deal_count == 2:
            return ActiveDealsBucket.TWO
        return ActiveDealsBucket.THREE_PLUS


class InteractionFrequency(str, Enum):
    """Number of interactions with the client in the preceding 14 days."""

    ONE_TO_TWO = "1-2times"
    THREE_TO_FIVE = "3-5times"
    SIX_TO_NINE = "6-9times"
    TEN_PLUS = "10+times"


class WhoInitiated(str, Enum):
    CLIENT = "client"
    YOU = "you"


class PendingProposal(str, Enum):
    YES = "yes"
    NO = "no"


class Sentiment(str, Enum):
    LOW = "low"
    MID = "mid"
    HIGH = "high"


__all__ = [
    "PriorityLevel",
    "ActiveDealsBucket",
    "InteractionFrequency",
    "WhoInitiated",
    "PendingProposal",
    "Sentiment",
]
