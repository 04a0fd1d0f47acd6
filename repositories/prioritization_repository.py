"""
Prioritization repository (persistence).

This module is the only code that reads or writes the `prioritizations` table.
It does not decide whether an overwrite is allowed (see
services/conflict_guard.py); it only upserts and fetches records.

Storage layout (kept compatible with the existing table):
- Questionnaire answers are single-element text arrays:
  active_deals, interaction_frequency, who_initiated, pending_proposal
- Enrichment fields are pdf_priority, pdf_keywords_count, pdf_sentiment
- (client_id, user_id) carries a unique constraint used as the upsert target
"""

from __future__ import annotations

import logging
from typing import Any, List, Mapping, Optional
from uuid import UUID

from domain.enrichment import EnrichmentHint
from domain.errors import StoredRecordError
from domain.prioritization import Prioritization
from domain.priority import PriorityLevel, Sentiment
from domain.questionnaire import QuestionnaireAnswers
from domain.time import parse_utc_datetime, require_utc_timestamp
from repositories import client as db

logger = logging.getLogger(__name__)

# Supabase table name for prioritization records.
# Keep this aligned with your database schema.
_PRIORITIZATIONS_TABLE: str = "prioritizations"

# Unique constraint used to replace a user's existing record for a client.
_UPSERT_CONFLICT_TARGET: str = "client_id,user_id"


def _wrap(value: Optional[str]) -> Optional[List[str]]:
    return [value] if value is not None else None


def _unwrap(value: Any) -> Optional[str]:
    """Read a stored answer that may be a text array or a plain string."""

    if value is None:
        return None
    if isinstance(value, (list, tuple)):
        return str(value[0]) if value else None
    return str(value)


def _record_to_payload(record: Prioritization) -> dict[str, Any]:
    """
    Serialize every column of a record.

    Unset optional fields are written as NULL so an upsert clears whatever the
    previous record held for them.
    """

    require_utc_timestamp("created_at", record.created_at)
    answers = record.answers
    hint = record.enrichment

    return {
        "id": str(record.prioritization_id),
        "client_id": str(record.client_id),
        "user_id": str(record.user_id),
        "active_deals": _wrap(answers.active_deals.value),
        "interaction_frequency": _wrap(answers.interaction_frequency.value),
        "who_initiated": _wrap(answers.who_initiated.value if answers.who_initiated else None),
        "pending_proposal": _wrap(
            answers.pending_proposal.value if answers.pending_proposal else None
        ),
        "pdf_priority": hint.priority.value if hint else None,
        "pdf_keywords_count": hint.keywords_count if hint else None,
        "pdf_sentiment": hint.sentiment.value if hint else None,
        "calculated_priority": record.calculated_priority.value,
        "created_at": record.created_at.isoformat(),
    }


_ENRICHMENT_COLUMNS = ("pdf_priority", "pdf_keywords_count", "pdf_sentiment")


def _row_id(row: Mapping[str, Any]) -> Optional[UUID]:
    try:
        return UUID(str(row["id"]))
    except (KeyError, ValueError):
        return None


def _row_to_hint(row: Mapping[str, Any]) -> Optional[EnrichmentHint]:
    """Read the pdf_* columns; they are written all together or not at all."""

    stored = [row.get(column) for column in _ENRICHMENT_COLUMNS]
    if all(value is None for value in stored):
        return None
    if any(value is None for value in stored):
        missing = [c for c, v in zip(_ENRICHMENT_COLUMNS, stored) if v is None]
        raise ValueError(f"enrichment columns are partially filled (missing {', '.join(missing)})")

    return EnrichmentHint(
        priority=PriorityLevel(str(row["pdf_priority"])),
        keywords_count=int(row["pdf_keywords_count"]),
        sentiment=Sentiment(str(row["pdf_sentiment"])),
    )


def _row_to_prioritization(row: Mapping[str, Any]) -> Prioritization:
    """
    Convert a Supabase row into a Prioritization.

    Raises:
        StoredRecordError: If the stored row is malformed, its enrichment
            columns are partially filled, or its calculated_priority does not
            match its own answers.
    """

    try:
        answers = QuestionnaireAnswers.from_raw(
            active_deals=_unwrap(row.get("active_deals")),
            interaction_frequency=_unwrap(row.get("interaction_frequency")),
            who_initiated=_unwrap(row.get("who_initiated")),
            pending_proposal=_unwrap(row.get("pending_proposal")),
        )

        return Prioritization(
            prioritization_id=UUID(str(row["id"])),
            client_id=UUID(str(row["client_id"])),
            user_id=UUID(str(row["user_id"])),
            answers=answers,
            calculated_priority=PriorityLevel(str(row["calculated_priority"])),
            created_at=parse_utc_datetime(row["created_at"]),
            enrichment=_row_to_hint(row),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise StoredRecordError(
            f"Stored prioritization {row.get('id')} is invalid: {e}",
            record_id=_row_id(row),
        ) from e


def _rows_to_prioritizations(rows: List[Mapping[str, Any]]) -> List[Prioritization]:
    """Convert rows for a listing, skipping (and logging) rows that cannot be read."""

    records = []
    for row in rows:
        try:
            records.append(_row_to_prioritization(row))
        except StoredRecordError as e:
            logger.warning(
                f"Skipping unreadable prioritization: {e}",
                extra={"prioritization_id": row.get("id"), "client_id": row.get("client_id")},
            )
    return records


def get_prioritization(client_id: UUID, user_id: UUID) -> Optional[Prioritization]:
    """
    Retrieve the prioritization a user saved for a client.

    Args:
        client_id: Client identifier
        user_id: Acting user identifier

    Returns:
        Prioritization or None if the pair has no record
    """

    rows = db.execute(
        db.get_supabase()
        .table(_PRIORITIZATIONS_TABLE)
        .select("*")
        .eq("client_id", str(client_id))
        .eq("user_id", str(user_id))
        .limit(1),
        "fetch prioritization",
    )

    if not rows:
        return None

    return _row_to_prioritization(rows[0])


def save_prioritization(record: Prioritization) -> Prioritization:
    """
    Insert or fully replace the record for (record.client_id, record.user_id).

    This is a single upsert statement: either the whole record is written or
    nothing is.

    Args:
        record: Prioritization to persist

    Returns:
        The persisted Prioritization as returned by the store

    Raises:
        PersistenceError: If the store rejects the write
    """

    payload = _record_to_payload(record)

    rows = db.execute(
        db.get_supabase()
        .table(_PRIORITIZATIONS_TABLE)
        .upsert(payload, on_conflict=_UPSERT_CONFLICT_TARGET),
        "save prioritization",
    )

    logger.info(
        f"Saved prioritization for client {record.client_id}: {record.calculated_priority.value}",
        extra={
            "client_id": str(record.client_id),
            "user_id": str(record.user_id),
            "calculated_priority": record.calculated_priority.value,
            "has_enrichment": record.has_enrichment,
        },
    )

    if not rows:
        return record

    return _row_to_prioritization(rows[0])


def list_prioritizations_for_client(client_id: UUID) -> List[Prioritization]:
    """
    Retrieve every prioritization saved for a client (one per user).

    Returns:
        List[Prioritization], newest first (possibly empty)
    """

    rows = db.execute(
        db.get_supabase()
        .table(_PRIORITIZATIONS_TABLE)
        .select("*")
        .eq("client_id", str(client_id))
        .order("created_at", desc=True),
        "list prioritizations",
    )
    return _rows_to_prioritizations(rows)


def list_prioritizations_for_user(user_id: UUID) -> List[Prioritization]:
    """
    Retrieve every prioritization a user has saved (client list and dashboard).

    Returns:
        List[Prioritization], newest first (possibly empty)
    """

    rows = db.execute(
        db.get_supabase()
        .table(_PRIORITIZATIONS_TABLE)
        .select("*")
        .eq("user_id", str(user_id))
        .order("created_at", desc=True),
        "list prioritizations",
    )
    return _rows_to_prioritizations(rows)


__all__ = [
    "get_prioritization",
    "save_prioritization",
    "list_prioritizations_for_client",
    "list_prioritizations_for_user",
]
