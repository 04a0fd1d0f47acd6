"""
Domain: error taxonomy for the prioritization engine.

- Validation errors are raised before any external call and always reach the caller.
- Persistence errors are terminal for the save attempt.
- Enrichment failures are NOT exceptions; see domain/enrichment.py.
- A conflict is NOT an error; see services/conflict_guard.py.
"""

from __future__ import annotations

from typing import Optional
from uuid import UUID


class PrioritizationError(Exception):
    """Base class for every error raised by the prioritization engine."""


class QuestionnaireValidationError(PrioritizationError, ValueError):
    """A mandatory questionnaire answer is missing or an answer is not a known option."""


class ImageValidationError(PrioritizationError, ValueError):
    """The uploaded image evidence is empty, too large, or not JPEG/PNG."""


class ClientNotFoundError(PrioritizationError, LookupError):
    """The client being prioritized does not exist."""


class PersistenceError(PrioritizationError, RuntimeError):
    """The table store rejected a read or write."""


class StoredRecordError(PersistenceError):
    """A stored prioritization row cannot be read back as a valid record."""

    def __init__(self, message: str, record_id: Optional[UUID] = None):
        super().__init__(message)
        self.record_id = record_id


__all__ = [
    "PrioritizationError",
    "QuestionnaireValidationError",
    "ImageValidationError",
    "ClientNotFoundError",
    "PersistenceError",
    "StoredRecordError",
]
