"""
Domain: Deal entity (read-only to the prioritization engine).

Contract excerpts implemented here:
- A Deal belongs to exactly one client via client_id.
- Pipeline stages are the fixed ordered set:
  New -> Contacted -> Follow-up -> Negotiating -> Closed
- Closed is the only terminal stage. A deal is *active* while its stage is not terminal.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Iterable, Optional
from uuid import UUID


class DealStage(str, Enum):
    NEW = "New"
    CONTACTED = "Contacted"
    FOLLOW_UP = "Follow-up"
    NEGOTIATING = "Negotiating"
    CLOSED = "Closed"

    @property
    def is_terminal(self) -> bool:
        return self is DealStage.CLOSED

    @staticmethod
    def parse(value: str) -> "DealStage":
        """
        Resolve a stage from stored text.

        Stored stages are not consistently cased ("closed", "Closed"), and
        older rows use "won" for a closed deal.
        """

        text = value.strip().lower()
        if text == "won":
            return DealStage.CLOSED
        for stage in DealStage:
            if stage.value.lower() == text:
                return stage
        raise ValueError(f"Unknown deal stage: {value!r}")


@dataclass(frozen=True, slots=True)
class Deal:
    deal_id: UUID
    client_id: UUID
    stage: DealStage
    amount: Decimal = Decimal("0")
    title: Optional[str] = None

    def is_active(self) -> bool:
        return not self.stage.is_terminal


def count_active_deals(deals: Iterable[Deal], client_id: UUID) -> int:
    """Number of the client's deals that have not reached the Closed stage."""

    return sum(1 for deal in deals if deal.client_id == client_id and deal.is_active())


__all__ = ["DealStage", "Deal", "count_active_deals"]
