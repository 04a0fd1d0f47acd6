"""
Prioritizations API Endpoints.

Endpoints for scoring a client from the prioritization questionnaire, and for
reading saved priorities back into the client list and dashboard.

The acting user is identified by the `X-User-Id` header; session handling is
done in front of this service.
"""

import asyncio
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, File, Form, Header, HTTPException, UploadFile

from api.models import (
    EnrichmentResponse,
    ErrorResponse,
    ExistingPrioritizationResponse,
    PrioritizationListResponse,
    PrioritizationResponse,
    PrioritizationResultResponse,
)
from domain.errors import (
    ClientNotFoundError,
    ImageValidationError,
    PersistenceError,
    QuestionnaireValidationError,
)
from repositories.prioritization_repository import (
    get_prioritization,
    list_prioritizations_for_user,
)
from services.conflict_guard import has_existing
from services.enrichment_service import get_enrichment_service, validate_image
from services.prioritization_service import (
    OutcomeStatus,
    build_answers,
    commit_prioritization,
    prepare_prioritization,
)

router = APIRouter()

_ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


def _message_for(status: OutcomeStatus, priority: str) -> str:
    if status is OutcomeStatus.SAVED:
        return f"Prioritization saved. Priority: {priority}."
    if status is OutcomeStatus.DECLINED:
        return "Existing prioritization kept; the new answers were discarded."
    return (
        "A prioritization already exists for this client. "
        "Resubmit with confirm_overwrite=true to replace it."
    )


@router.post(
    "/prioritizations",
    response_model=PrioritizationResultResponse,
    responses=_ERROR_RESPONSES,
    summary="Prioritize Client",
    description="Score a client from the questionnaire (and optional image) and save the priority."
)
async def create_prioritization(
    client_id: UUID = Form(..., description="Client being prioritized"),
    interaction_frequency: str = Form(..., description="'1-2times', '3-5times', '6-9times' or '10+times'"),
    who_initiated: Optional[str] = Form(None, description="'client' or 'you'"),
    pending_proposal: Optional[str] = Form(None, description="'yes' or 'no'"),
    confirm_overwrite: Optional[bool] = Form(
        None, description="Answer to the overwrite prompt when a prioritization already exists"
    ),
    image: Optional[UploadFile] = File(None, description="JPG or PNG image about the client"),
    x_user_id: UUID = Header(..., description="Acting user"),
):
    """
    Score and save a client's priority.

    **Process:**
    1. Validates the answers and counts the client's active (non-Closed) deals
    2. If an image was uploaded, analyzes it (best-effort; failures become a warning)
    3. Computes the final priority
    4. If the user already prioritized this client, saves only when
       `confirm_overwrite=true`; without a decision the response has
       `status="confirmation_required"` and nothing is written

    **Example request (multipart form):**
    ```
    client_id=123e4567-e89b-12d3-a456-426614174001
    interaction_frequency=6-9times
    who_initiated=client
    image=@conversation.png
    ```
    """
    try:
        image_bytes = None
        content_type = None
        if image is not None and image.filename:
            image_bytes = await image.read()
            content_type = image.content_type
            # Reject a bad upload before the client and deal tables are read.
            validate_image(image_bytes, content_type, get_enrichment_service().max_image_bytes)

        answers = await asyncio.to_thread(
            build_answers,
            client_id,
            interaction_frequency,
            who_initiated,
            pending_proposal,
        )

        draft = await prepare_prioritization(
            client_id,
            x_user_id,
            answers,
            image=image_bytes,
            content_type=content_type,
        )
        outcome = await asyncio.to_thread(commit_prioritization, draft, confirm_overwrite)

        hint = draft.enrichment.hint
        priority = outcome.calculated_priority.value

        return PrioritizationResultResponse(
            status=outcome.status.value,
            calculated_priority=priority,
            score_points=draft.breakdown.total,
            active_deals=answers.active_deals.value,
            enrichment=(
                EnrichmentResponse(
                    priority=hint.priority.value,
                    keywords_count=hint.keywords_count,
                    sentiment=hint.sentiment.value,
                )
                if hint
                else None
            ),
            existing_record_detected=draft.existing_record_detected,
            warnings=outcome.warnings,
            prioritization=(
                PrioritizationResponse.from_record(outcome.saved) if outcome.saved else None
            ),
            message=_message_for(outcome.status, priority),
        )

    except (QuestionnaireValidationError, ImageValidationError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ClientNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PersistenceError as e:
        raise HTTPException(
            status_code=500,
            detail=f"Failed to save prioritization: {str(e)}"
        )
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(
            status_code=500,
            detail=f"Failed to prioritize client: {str(e)}"
        )


@router.get(
    "/prioritizations/exists",
    response_model=ExistingPrioritizationResponse,
    responses=_ERROR_RESPONSES,
    summary="Check For Existing Prioritization",
    description="Tell the UI whether saving would replace an existing prioritization."
)
def check_existing_prioritization(client_id: UUID, x_user_id: UUID = Header(...)):
    """
    Check whether the acting user already prioritized a client.

    The UI calls this when the questionnaire opens so it can warn before the
    user fills it in.
    """
    try:
        return ExistingPrioritizationResponse(
            client_id=client_id,
            existing=has_existing(client_id, x_user_id),
        )
    except PersistenceError as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.get(
    "/prioritizations",
    response_model=PrioritizationListResponse,
    responses=_ERROR_RESPONSES,
    summary="List Prioritizations",
    description="All prioritizations saved by the acting user, newest first."
)
def list_prioritizations(x_user_id: UUID = Header(...)):
    """
    List the acting user's prioritizations.

    Used by the client list (priority column) and the dashboard's priority
    clients widget.
    """
    try:
        records = list_prioritizations_for_user(x_user_id)
        return PrioritizationListResponse(
            items=[PrioritizationResponse.from_record(record) for record in records],
            total_count=len(records),
        )
    except PersistenceError as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.get(
    "/clients/{client_id}/prioritization",
    response_model=PrioritizationResponse,
    responses=_ERROR_RESPONSES,
    summary="Get Client Prioritization",
    description="The acting user's saved prioritization for a client."
)
def get_client_prioritization(client_id: UUID, x_user_id: UUID = Header(...)):
    """
    Get the prioritization the acting user saved for a client.

    Returns 404 when the client has not been prioritized by this user.
    """
    try:
        record = get_prioritization(client_id, x_user_id)
    except PersistenceError as e:
        raise HTTPException(status_code=500, detail=str(e))

    if record is None:
        raise HTTPException(
            status_code=404,
            detail=f"No prioritization found for client: {client_id}"
        )

    return PrioritizationResponse.from_record(record)
