"""
Deal repository (read-only).

The prioritization engine only needs a client's deals to derive the number of
active (non-Closed) deals. Creating and moving deals through the pipeline is
handled by the CRM UI.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, List, Mapping
from uuid import UUID

from domain.deal import Deal, DealStage
from repositories import client as db

logger = logging.getLogger(__name__)

# Supabase table name for deals.
_DEALS_TABLE: str = "deals"


def _parse_stage(row: Mapping[str, Any]) -> DealStage:
    """
    Resolve the stage of a stored deal.

    A stage outside the pipeline is not terminal, so the deal counts as active.
    """

    raw_stage = str(row.get("stage") or DealStage.NEW.value)
    try:
        return DealStage.parse(raw_stage)
    except ValueError:
        logger.warning(
            f"Unknown stage on deal {row.get('id')}; counting it as active",
            extra={"deal_id": row.get("id"), "stage": raw_stage},
        )
        return DealStage.NEW


def _row_to_deal(row: Mapping[str, Any]) -> Deal:
    """Convert a Supabase row into a Deal."""

    return Deal(
        deal_id=UUID(str(row["id"])),
        client_id=UUID(str(row["client_id"])),
        stage=_parse_stage(row),
        amount=Decimal(str(row.get("amount") or 0)),
        title=row.get("title"),
    )


def list_deals_for_client(client_id: UUID) -> List[Deal]:
    """
    Retrieve all deals associated with a client.

    Args:
        client_id: Client identifier

    Returns:
        List[Deal] (possibly empty)
    """

    rows = db.execute(
        db.get_supabase().table(_DEALS_TABLE).select("*").eq("client_id", str(client_id)),
        "list deals",
    )
    return [_row_to_deal(row) for row in rows]


__all__ = ["list_deals_for_client"]
