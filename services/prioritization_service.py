"""
Prioritization service: score, check, confirm, save.

Handles:
- Deriving active_deals from the client's open deals
- Awaiting image enrichment before the final score (never racing it)
- The explicit check -> decide -> write protocol for existing records

The pipeline is split so each step is testable on its own:
1. prepare_prioritization(): enrichment + scoring + conflict check, no writes
2. the caller obtains the user's overwrite decision when a record exists
3. commit_prioritization(): writes (or not) according to that decision
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, List, Optional
from uuid import UUID

from domain.enrichment import EnrichmentResult
from domain.errors import ClientNotFoundError
from domain.prioritization import Prioritization
from domain.priority import PriorityLevel
from domain.questionnaire import QuestionnaireAnswers
from domain.scoring import ScoreBreakdown, score_breakdown
from repositories.client_repository import get_client_by_id
from repositories.prioritization_repository import save_prioritization
from services.conflict_guard import ConflictCheck, check_conflict
from services.enrichment_service import ImageEnrichmentService, analyze_image

logger = logging.getLogger(__name__)


class OutcomeStatus(str, Enum):
    SAVED = "saved"
    CONFIRMATION_REQUIRED = "confirmation_required"
    DECLINED = "declined"


@dataclass(frozen=True, slots=True)
class PrioritizationDraft:
    """
    A scored prioritization that has not been written yet.

    record: The record that would be saved
    breakdown: Points behind record.calculated_priority
    enrichment: Outcome of the image step (skipped when no image was given)
    conflict: Existing record for the same (client, user), if any
    """
    record: Prioritization
    breakdown: ScoreBreakdown
    enrichment: EnrichmentResult
    conflict: ConflictCheck

    @property
    def existing_record_detected(self) -> bool:
        return self.conflict.requires_confirmation

    @property
    def warnings(self) -> List[str]:
        warning = self.enrichment.warning
        return [warning] if warning else []


@dataclass(frozen=True, slots=True)
class PrioritizationOutcome:
    """
    Result of a commit attempt.

    saved: The persisted record (only when status is SAVED)
    """
    status: OutcomeStatus
    draft: PrioritizationDraft
    saved: Optional[Prioritization] = None

    @property
    def calculated_priority(self) -> PriorityLevel:
        return self.draft.record.calculated_priority

    @property
    def warnings(self) -> List[str]:
        return self.draft.warnings


def build_answers(
    client_id: UUID,
    interaction_frequency: object,
    who_initiated: object = None,
    pending_proposal: object = None,
) -> QuestionnaireAnswers:
    """
    Build validated answers for a client, deriving active_deals from its deals.

    Raises:
        ClientNotFoundError: If the client does not exist
        QuestionnaireValidationError: If an answer is missing or not an option
    """

    client = get_client_by_id(client_id)
    if client is None:
        raise ClientNotFoundError(f"Client not found: {client_id}")

    return QuestionnaireAnswers.for_client(
        client,
        interaction_frequency=interaction_frequency,
        who_initiated=who_initiated,
        pending_proposal=pending_proposal,
    )


async def prepare_prioritization(
    client_id: UUID,
    user_id: UUID,
    answers: QuestionnaireAnswers,
    image: Optional[bytes] = None,
    content_type: Optional[str] = None,
    enrichment_service: Optional[ImageEnrichmentService] = None,
) -> PrioritizationDraft:
    """
    Score the answers, refine with the image (if any), and check for a conflict.

    Nothing is written here.

    Raises:
        ImageValidationError: If an image was given but is not an acceptable
            JPEG/PNG (raised before the image is sent anywhere)
        PersistenceError: If the conflict check cannot read the store
    """

    provisional = score_breakdown(answers)
    logger.debug(
        f"Provisional priority for client {client_id}: {provisional.level.value} ({provisional.total} points)"
    )

    if image is not None:
        enrichment = await analyze_image(image, content_type, service=enrichment_service)
    else:
        enrichment = EnrichmentResult.skipped()

    conflict = await asyncio.to_thread(check_conflict, client_id, user_id)

    # An overwrite keeps the identity of the record it replaces.
    record = Prioritization.compute(
        client_id=client_id,
        user_id=user_id,
        answers=answers,
        enrichment=enrichment.hint,
        prioritization_id=conflict.existing_id,
    )

    return PrioritizationDraft(
        record=record,
        breakdown=score_breakdown(answers, enrichment.hint),
        enrichment=enrichment,
        conflict=conflict,
    )


def commit_prioritization(
    draft: PrioritizationDraft,
    confirm_overwrite: Optional[bool] = None,
) -> PrioritizationOutcome:
    """
    Write a prepared prioritization according to the user's decision.

    Args:
        draft: Result of prepare_prioritization()
        confirm_overwrite: The user's answer to "replace the existing
            prioritization?". None means the user has not been asked yet.
            Ignored when no record exists.

    Returns:
        PrioritizationOutcome with status:
        - SAVED: the record was written
        - CONFIRMATION_REQUIRED: a record exists and no decision was given
        - DECLINED: a record exists and the user chose to keep it

    Raises:
        PersistenceError: If the store rejects the write
    """

    if draft.existing_record_detected:
        if confirm_overwrite is None:
            return PrioritizationOutcome(status=OutcomeStatus.CONFIRMATION_REQUIRED, draft=draft)

        if not confirm_overwrite:
            logger.info(
                f"Overwrite declined; keeping existing prioritization for client {draft.record.client_id}",
                extra={"client_id": str(draft.record.client_id), "user_id": str(draft.record.user_id)},
            )
            return PrioritizationOutcome(status=OutcomeStatus.DECLINED, draft=draft)

        logger.info(
            f"Replacing prioritization for client {draft.record.client_id}",
            extra={
                "client_id": str(draft.record.client_id),
                "user_id": str(draft.record.user_id),
                "previous_priority": (
                    draft.conflict.existing.calculated_priority.value if draft.conflict.existing else None
                ),
                "new_priority": draft.record.calculated_priority.value,
            },
        )

    saved = save_prioritization(draft.record)
    return PrioritizationOutcome(status=OutcomeStatus.SAVED, draft=draft, saved=saved)


async def run_prioritization(
    client_id: UUID,
    user_id: UUID,
    answers: QuestionnaireAnswers,
    image: Optional[bytes] = None,
    content_type: Optional[str] = None,
    confirm: Optional[Callable[[PrioritizationDraft], Awaitable[bool]]] = None,
    enrichment_service: Optional[ImageEnrichmentService] = None,
) -> PrioritizationOutcome:
    """
    Run the whole check -> decide -> write pipeline.

    `confirm` is awaited only when an existing record is detected; without it
    the outcome is CONFIRMATION_REQUIRED and nothing is written.
    """

    draft = await prepare_prioritization(
        client_id,
        user_id,
        answers,
        image=image,
        content_type=content_type,
        enrichment_service=enrichment_service,
    )

    decision: Optional[bool] = None
    if draft.existing_record_detected and confirm is not None:
        decision = await confirm(draft)

    return await asyncio.to_thread(commit_prioritization, draft, decision)


__all__ = [
    "OutcomeStatus",
    "PrioritizationDraft",
    "PrioritizationOutcome",
    "build_answers",
    "prepare_prioritization",
    "commit_prioritization",
    "run_prioritization",
]
