"""
Client repository (read-only).

Provides lookup of CRM clients together with their deals, which is all the
prioritization engine needs from the `clients` table.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional
from uuid import UUID

from domain.client import Client
from domain.time import parse_utc_datetime
from repositories import client as db
from repositories.deal_repository import list_deals_for_client

# Supabase table name for clients.
_CLIENTS_TABLE: str = "clients"


def _row_to_client(row: Mapping[str, Any], deals: tuple = ()) -> Client:
    """Convert a Supabase row into a Client."""

    return Client(
        client_id=UUID(str(row["id"])),
        name=str(row.get("name") or ""),
        company=row.get("company"),
        email=row.get("email"),
        phone=row.get("phone"),
        source=row.get("source"),
        notes=row.get("notes"),
        deals=deals,
        created_at=parse_utc_datetime(row["created_at"]) if row.get("created_at") else None,
    )


def get_client_by_id(client_id: UUID, include_deals: bool = True) -> Optional[Client]:
    """
    Get a client by their ID.

    Args:
        client_id: UUID of the client
        include_deals: Also load the client's deals (needed to count active deals)

    Returns:
        Client domain model or None if not found

    Example:
        client = get_client_by_id(UUID('12345678-1234-1234-1234-123456789012'))
        if client is not None:
            print(client.active_deal_count)
    """

    rows = db.execute(
        db.get_supabase().table(_CLIENTS_TABLE).select("*").eq("id", str(client_id)).limit(1),
        "fetch client",
    )

    if not rows:
        return None

    deals = tuple(list_deals_for_client(client_id)) if include_deals else ()
    return _row_to_client(rows[0], deals)


__all__ = ["get_client_by_id"]
