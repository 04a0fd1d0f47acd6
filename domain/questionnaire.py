"""
Domain: QuestionnaireAnswers value object.

The questionnaire dialog is a multi-step form owned by the UI. The engine
never sees partial state: it receives one validated QuestionnaireAnswers at
the end of the form.

Rules implemented here:
- active_deals and interaction_frequency are mandatory and must be known options.
- who_initiated and pending_proposal are optional; an empty answer is the same
  as no answer.
- active_deals is derived from the client's open deals, not typed by the user.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Type, TypeVar

from .client import Client
from .errors import QuestionnaireValidationError
from .priority import ActiveDealsBucket, InteractionFrequency, PendingProposal, WhoInitiated

E = TypeVar("E", bound=Enum)


def _coerce_option(field_name: str, enum_type: Type[E], value: object) -> E:
    if isinstance(value, enum_type):
        return value
    try:
        return enum_type(str(value).strip())
    except ValueError:
        allowed = ", ".join(repr(member.value) for member in enum_type)
        raise QuestionnaireValidationError(
            f"{field_name} must be one of {allowed}, got {value!r}"
        ) from None


def _coerce_optional_option(field_name: str, enum_type: Type[E], value: object) -> Optional[E]:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return _coerce_option(field_name, enum_type, value)


@dataclass(frozen=True, slots=True)
class QuestionnaireAnswers:
    active_deals: ActiveDealsBucket
    interaction_frequency: InteractionFrequency
    who_initiated: Optional[WhoInitiated] = None
    pending_proposal: Optional[PendingProposal] = None

    def __post_init__(self) -> None:
        if not isinstance(self.active_deals, ActiveDealsBucket):
            raise QuestionnaireValidationError("active_deals is required")
        if not isinstance(self.interaction_frequency, InteractionFrequency):
            raise QuestionnaireValidationError("interaction_frequency is required")
        if self.who_initiated is not None and not isinstance(self.who_initiated, WhoInitiated):
            raise QuestionnaireValidationError("who_initiated must be a WhoInitiated option")
        if self.pending_proposal is not None and not isinstance(self.pending_proposal, PendingProposal):
            raise QuestionnaireValidationError("pending_proposal must be a PendingProposal option")

    @classmethod
    def from_raw(
        cls,
        active_deals: object,
        interaction_frequency: object,
        who_initiated: object = None,
        pending_proposal: object = None,
    ) -> "QuestionnaireAnswers":
        """
        Build answers from raw form values (strings as submitted by the UI).

        Raises:
            QuestionnaireValidationError: If a mandatory answer is missing or any
                answer is not one of its options.

        Example:
            answers = QuestionnaireAnswers.from_raw("3+", "10+times", who_initiated="client")
        """

        if active_deals is None or (isinstance(active_deals, str) and not active_deals.strip()):
            raise QuestionnaireValidationError("active_deals is required")
        if interaction_frequency is None or (
            isinstance(interaction_frequency, str) and not interaction_frequency.strip()
        ):
            raise QuestionnaireValidationError("interaction_frequency is required")

        return cls(
            active_deals=_coerce_option("active_deals", ActiveDealsBucket, active_deals),
            interaction_frequency=_coerce_option(
                "interaction_frequency", InteractionFrequency, interaction_frequency
            ),
            who_initiated=_coerce_optional_option("who_initiated", WhoInitiated, who_initiated),
            pending_proposal=_coerce_optional_option(
                "pending_proposal", PendingProposal, pending_proposal
            ),
        )

    @classmethod
    def for_client(
        cls,
        client: Client,
        interaction_frequency: object,
        who_initiated: object = None,
        pending_proposal: object = None,
    ) -> "QuestionnaireAnswers":
        """Build answers with active_deals derived from the client's open deals."""

        return cls.from_raw(
            active_deals=ActiveDealsBucket.for_count(client.active_deal_count),
            interaction_frequency=interaction_frequency,
            who_initiated=who_initiated,
            pending_proposal=pending_proposal,
        )


__all__ = ["QuestionnaireAnswers"]
