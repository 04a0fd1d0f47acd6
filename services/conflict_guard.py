"""
Conflict guard for prioritization writes.

Before a prioritization is saved, the guard looks for an existing record for
the exact (client, user) pair. When one exists the caller must obtain an
explicit overwrite decision from the user; the guard itself never writes.

A stored row that can no longer be read as a valid record (for example one
scored by an older formula) still counts as existing: the user is asked
before it is replaced, and replacing it is how it gets repaired.

The check and the later write are not atomic. Only one user edits their own
prioritizations, so the guard exists to prevent *silent* overwrites, not to
lock against concurrent writers.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from domain.errors import StoredRecordError
from domain.prioritization import Prioritization
from repositories.prioritization_repository import get_prioritization

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ConflictCheck:
    """
    Result of checking a (client, user) pair before a write.

    existing: The record that a save would replace, if it could be read
    existing_id: Id of the stored row a save would replace, readable or not
    """
    client_id: UUID
    user_id: UUID
    existing: Optional[Prioritization] = None
    existing_id: Optional[UUID] = None

    @property
    def requires_confirmation(self) -> bool:
        return self.existing is not None or self.existing_id is not None

    @property
    def existing_is_unreadable(self) -> bool:
        return self.existing is None and self.existing_id is not None


def check_conflict(client_id: UUID, user_id: UUID) -> ConflictCheck:
    """Look up the record a save for this pair would replace."""

    try:
        existing = get_prioritization(client_id, user_id)
    except StoredRecordError as e:
        logger.warning(
            f"Existing prioritization for client {client_id} is unreadable; "
            f"it can only be replaced: {e}",
            extra={"client_id": str(client_id), "user_id": str(user_id)},
        )
        return ConflictCheck(client_id=client_id, user_id=user_id, existing_id=e.record_id)

    return ConflictCheck(
        client_id=client_id,
        user_id=user_id,
        existing=existing,
        existing_id=existing.prioritization_id if existing else None,
    )


def has_existing(client_id: UUID, user_id: UUID) -> bool:
    """True if the user already saved a prioritization for this client."""

    return check_conflict(client_id, user_id).requires_confirmation


__all__ = ["ConflictCheck", "check_conflict", "has_existing"]
