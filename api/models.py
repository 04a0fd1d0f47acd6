"""
API Request and Response Models.

Pydantic models for serializing prioritization responses. Requests are
multipart forms (they may carry an image), so they are declared as Form/File
parameters on the routes instead of request models.
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel

from domain.prioritization import Prioritization


# ============================================================================
# Prioritization Models
# ============================================================================

class EnrichmentResponse(BaseModel):
    """Image analysis shown in the confirmation toast."""
    priority: str  # "low", "medium" or "high"
    keywords_count: int
    sentiment: str  # "low", "mid" or "high"


class PrioritizationResponse(BaseModel):
    """A persisted prioritization."""
    prioritization_id: UUID
    client_id: UUID
    user_id: UUID
    active_deals: str  # "1", "2" or "3+"
    interaction_frequency: str
    who_initiated: Optional[str] = None
    pending_proposal: Optional[str] = None
    enrichment: Optional[EnrichmentResponse] = None
    calculated_priority: str
    created_at: datetime

    class Config:
        json_schema_extra = {
            "example": {
                "prioritization_id": "123e4567-e89b-12d3-a456-426614174000",
                "client_id": "123e4567-e89b-12d3-a456-426614174001",
                "user_id": "123e4567-e89b-12d3-a456-426614174002",
                "active_deals": "3+",
                "interaction_frequency": "10+times",
                "who_initiated": "client",
                "pending_proposal": None,
                "enrichment": None,
                "calculated_priority": "high",
                "created_at": "2025-01-01T12:00:00Z"
            }
        }

    @classmethod
    def from_record(cls, record: Prioritization) -> "PrioritizationResponse":
        answers = record.answers
        hint = record.enrichment
        return cls(
            prioritization_id=record.prioritization_id,
            client_id=record.client_id,
            user_id=record.user_id,
            active_deals=answers.active_deals.value,
            interaction_frequency=answers.interaction_frequency.value,
            who_initiated=answers.who_initiated.value if answers.who_initiated else None,
            pending_proposal=answers.pending_proposal.value if answers.pending_proposal else None,
            enrichment=(
                EnrichmentResponse(
                    priority=hint.priority.value,
                    keywords_count=hint.keywords_count,
                    sentiment=hint.sentiment.value,
                )
                if hint
                else None
            ),
            calculated_priority=record.calculated_priority.value,
            created_at=record.created_at,
        )


class PrioritizationResultResponse(BaseModel):
    """Response after submitting the prioritization questionnaire."""
    status: str  # "saved", "confirmation_required" or "declined"
    calculated_priority: str
    score_points: int
    active_deals: str
    enrichment: Optional[EnrichmentResponse] = None
    existing_record_detected: bool
    warnings: List[str]
    prioritization: Optional[PrioritizationResponse] = None
    message: Optional[str] = None

    class Config:
        json_schema_extra = {
            "example": {
                "status": "confirmation_required",
                "calculated_priority": "medium",
                "score_points": 4,
                "active_deals": "2",
                "enrichment": {"priority": "medium", "keywords_count": 3, "sentiment": "mid"},
                "existing_record_detected": True,
                "warnings": [],
                "prioritization": None,
                "message": "A prioritization already exists for this client. Resubmit with confirm_overwrite=true to replace it."
            }
        }


class ExistingPrioritizationResponse(BaseModel):
    """Whether the acting user already prioritized a client."""
    client_id: UUID
    existing: bool


class PrioritizationListResponse(BaseModel):
    """Prioritizations of the acting user (client list and dashboard)."""
    items: List[PrioritizationResponse]
    total_count: int


# ============================================================================
# Error Models
# ============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str
    detail: Optional[str] = None
    status_code: int

    class Config:
        json_schema_extra = {
            "example": {
                "error": "Invalid request",
                "detail": "interaction_frequency is required",
                "status_code": 400
            }
        }
