"""
Domain: Client (CRM contact) records.

The prioritization engine only reads clients; creating and editing them is
handled elsewhere in the CRM.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Tuple
from uuid import UUID

from .deal import Deal, count_active_deals
from .time import require_utc_timestamp


@dataclass(frozen=True, slots=True)
class Client:
    """
    CRM client with the deals associated with it.

    Only `client_id` and `name` are guaranteed; every profile field is optional
    because clients are frequently created from a name alone.
    """

    client_id: UUID
    name: str

    # Optional profile information
    company: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    source: Optional[str] = None
    notes: Optional[str] = None

    deals: Tuple[Deal, ...] = field(default_factory=tuple)

    created_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        """Validate timestamps are UTC-aware and deals belong to this client."""
        if self.created_at is not None:
            require_utc_timestamp("created_at", self.created_at)
        for deal in self.deals:
            if deal.client_id != self.client_id:
                raise ValueError(
                    f"Deal {deal.deal_id} belongs to client {deal.client_id}, not {self.client_id}"
                )

    @property
    def active_deal_count(self) -> int:
        """Deals for this client that are not Closed."""
        return count_active_deals(self.deals, self.client_id)
