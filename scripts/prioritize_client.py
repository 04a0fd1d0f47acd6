"""
Prioritize a client from the command line.

Runs the same pipeline as POST /api/v1/prioritizations: counts the client's
active deals, analyzes an optional image, scores the answers, and asks before
replacing an existing prioritization.

Usage:
    python scripts/prioritize_client.py \
        --client-id 123e4567-e89b-12d3-a456-426614174001 \
        --user-id 123e4567-e89b-12d3-a456-426614174002 \
        --frequency 6-9times --who-initiated client --image chat.png
"""

import argparse
import asyncio
import mimetypes
import sys
from pathlib import Path
from uuid import UUID

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from domain.errors import PrioritizationError
from domain.priority import InteractionFrequency, PendingProposal, WhoInitiated
from services.prioritization_service import (
    OutcomeStatus,
    PrioritizationDraft,
    build_answers,
    commit_prioritization,
    prepare_prioritization,
)


def print_draft(draft: PrioritizationDraft) -> None:
    """Print the score breakdown for a prepared prioritization."""

    answers = draft.record.answers
    breakdown = draft.breakdown

    print("=" * 60)
    print("PRIORITIZATION")
    print("=" * 60)
    print(f"Active deals:          {answers.active_deals.value:<10} {breakdown.active_deals:+d}")
    print(f"Interaction frequency: {answers.interaction_frequency.value:<10} {breakdown.interaction_frequency:+d}")
    print(f"Who initiated:         {(answers.who_initiated.value if answers.who_initiated else '-'):<10} {breakdown.who_initiated:+d}")
    print(f"Pending proposal:      {(answers.pending_proposal.value if answers.pending_proposal else '-'):<10} {breakdown.pending_proposal:+d}")

    hint = draft.enrichment.hint
    if hint is not None:
        print(
            f"Image analysis:        {hint.priority.value}/{hint.sentiment.value:<5} {breakdown.enrichment:+d}"
            f"  ({hint.keywords_count} keywords)"
        )
    for warning in draft.warnings:
        print(f"WARNING: {warning}")

    print("-" * 60)
    print(f"Total points: {breakdown.total}")
    print(f"Priority:     {draft.record.calculated_priority.value}")
    print("=" * 60)


def ask_overwrite(draft: PrioritizationDraft) -> bool:
    existing = draft.conflict.existing
    if existing is None:
        question = "A prioritization already exists but cannot be read. Replace it? [y/N] "
    else:
        question = (
            f"A prioritization already exists ({existing.calculated_priority.value}, "
            f"saved {existing.created_at:%Y-%m-%d %H:%M} UTC). Replace it? [y/N] "
        )
    answer = input(question)
    return answer.strip().lower() in {"y", "yes"}


async def run(args: argparse.Namespace) -> int:
    client_id = UUID(args.client_id)
    user_id = UUID(args.user_id)

    answers = build_answers(
        client_id,
        interaction_frequency=args.frequency,
        who_initiated=args.who_initiated,
        pending_proposal=args.pending_proposal,
    )

    image = None
    content_type = None
    if args.image:
        image_path = Path(args.image)
        image = image_path.read_bytes()
        content_type = mimetypes.guess_type(image_path.name)[0]

    draft = await prepare_prioritization(client_id, user_id, answers, image=image, content_type=content_type)
    print_draft(draft)

    if args.dry_run:
        print("Dry run: nothing was saved")
        return 0

    decision = None
    if draft.existing_record_detected:
        decision = True if args.yes else ask_overwrite(draft)

    outcome = commit_prioritization(draft, confirm_overwrite=decision)

    if outcome.status is OutcomeStatus.SAVED:
        print(f"[SUCCESS] Saved prioritization {outcome.saved.prioritization_id}")
    else:
        print("Existing prioritization kept; nothing was saved")
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Score a CRM client and save its priority"
    )

    parser.add_argument("--client-id", required=True, help="Client UUID")
    parser.add_argument("--user-id", required=True, help="Acting user UUID")
    parser.add_argument(
        "--frequency",
        "-f",
        required=True,
        choices=[option.value for option in InteractionFrequency],
        help="Interactions with the client in the last 14 days"
    )
    parser.add_argument(
        "--who-initiated",
        choices=[option.value for option in WhoInitiated],
        help="Who initiated contact (optional)"
    )
    parser.add_argument(
        "--pending-proposal",
        choices=[option.value for option in PendingProposal],
        help="Is a proposal (meeting, call, ...) pending? (optional)"
    )
    parser.add_argument("--image", "-i", help="JPG or PNG image about the client (optional)")
    parser.add_argument("--yes", "-y", action="store_true", help="Replace an existing prioritization without asking")
    parser.add_argument("--dry-run", action="store_true", help="Show the score without saving")

    args = parser.parse_args()

    try:
        return asyncio.run(run(args))

    except KeyboardInterrupt:
        print("\n\nInterrupted by user")
        return 130

    except (PrioritizationError, RuntimeError, ValueError) as e:
        print(f"\nERROR: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
