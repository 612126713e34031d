"""Turns RM decisions on a proposal into profile writes.

Five phases run in order and none aborts the next:

1. fields          one batched, type-validated profile update
2. additional data one merge-by-key append
3. interests       confirm accepted ones; reject the rest (bookkeeping)
4. note            audit note recording what was approved and rejected
5. artifact sweep  move every field-update artifact to its terminal status

Primary phases report problems through ``PhaseResult.errors``, which end up
in the response. Bookkeeping calls (interest rejection, artifact sweep) go
through ``Attempt`` and only ever reach the diagnostics sink. Only structural
problems raise: unknown customer, unknown proposal, malformed request.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Generic, TypeVar

import structlog
from pydantic import ValidationError

from customers.errors import CustomerNotFoundError
from customers.fields import FieldRegistry, registry
from customers.sections import is_empty
from customers.storage import NoteInput, ProfileStore
from observability import metrics

from .artifacts import ArtifactStore
from .errors import MalformedRequestError, ProposalNotFoundError
from .interests import InterestStore
from .models import (
    AdditionalDataItem,
    ApplyUpdatesRequest,
    ApplyUpdatesResponse,
    ProfileUpdateProposal,
)

logger = structlog.get_logger()

T = TypeVar("T")

DiagnosticsSink = Callable[[str, dict[str, Any]], None]


@dataclass
class PhaseResult(Generic[T]):
    value: T
    errors: list[str] = field(default_factory=list)


def log_diagnostics(event: str, details: dict[str, Any]) -> None:
    logger.warning(event, **details)


class Attempt:
    """Fire-and-forget call whose failure is reported to a sink, never raised."""

    def __init__(self, sink: DiagnosticsSink = log_diagnostics):
        self.sink = sink
        self.failures = 0

    def __call__(self, event: str, fn: Callable[..., Any], *args, **kwargs) -> bool:
        try:
            fn(*args, **kwargs)
            return True
        except Exception as e:
            self.failures += 1
            metrics.counter("apply.bookkeeping_failures")
            self.sink(event, {"error": str(e), "error_type": type(e).__name__, "args": list(args)})
            return False


class ApplyOrchestrator:
    def __init__(
        self,
        profiles: ProfileStore,
        artifacts: ArtifactStore,
        interests: InterestStore,
        field_registry: FieldRegistry | None = None,
        diagnostics: DiagnosticsSink = log_diagnostics,
    ):
        self.profiles = profiles
        self.artifacts = artifacts
        self.interests = interests
        self.registry = field_registry or registry
        self.diagnostics = diagnostics

    # --- Entry point ---

    def apply(
        self,
        customer_id: str,
        request: ApplyUpdatesRequest | dict,
        actor_id: str | None = None,
    ) -> ApplyUpdatesResponse:
        if not isinstance(request, ApplyUpdatesRequest):
            try:
                request = ApplyUpdatesRequest.model_validate(request)
            except ValidationError as e:
                raise MalformedRequestError(f"Invalid apply request: {e}") from e

        if self.profiles.get_customer(customer_id) is None:
            raise CustomerNotFoundError(customer_id)
        proposal = self._resolve_proposal(customer_id, request)

        metrics.counter("apply.requests")
        attempt = Attempt(self.diagnostics)
        with metrics.timer("apply.duration"):
            fields = self._apply_fields(customer_id, proposal, request)
            data = self._apply_additional_data(customer_id, proposal, request, actor_id)
            interests = self._apply_interests(proposal, request, actor_id, attempt)
            note = self._create_note(customer_id, proposal, request, interests.value)
            self._sweep_field_artifacts(proposal, request, actor_id, attempt)

        errors = fields.errors + data.errors + interests.errors + note.errors
        wants_interests = bool(proposal.interest_proposals or request.approved_interest_ids)
        response = ApplyUpdatesResponse(
            success=not errors,
            fields_updated=fields.value,
            additional_data_added=data.value,
            interests_confirmed=len(interests.value) if wants_interests else None,
            note_created=note.value,
            errors=errors or None,
        )

        metrics.counter("apply.fields_updated", fields.value)
        metrics.counter("apply.errors", len(errors))
        logger.info(
            "apply.completed",
            customer_id=customer_id,
            proposal_id=proposal.proposal_id,
            success=response.success,
            fields_updated=fields.value,
            additional_data_added=data.value,
            interests_confirmed=len(interests.value),
            note_created=note.value,
            errors=len(errors),
            bookkeeping_failures=attempt.failures,
        )
        return response

    def _resolve_proposal(
        self, customer_id: str, request: ApplyUpdatesRequest
    ) -> ProfileUpdateProposal:
        proposal = request.proposal
        if proposal is None:
            proposal = self.artifacts.reconstruct_proposal(request.proposal_id, customer_id)
            if proposal is None:
                raise ProposalNotFoundError(request.proposal_id)
            logger.info("apply.proposal_reconstructed", proposal_id=request.proposal_id)

        if proposal.proposal_id != request.proposal_id:
            raise MalformedRequestError(
                f"proposalId {request.proposal_id} does not match proposal {proposal.proposal_id}"
            )
        if proposal.customer_id != customer_id:
            raise MalformedRequestError(
                f"Proposal {proposal.proposal_id} belongs to a different customer"
            )
        return proposal

    # --- Phase 1 ---

    def _apply_fields(
        self, customer_id: str, proposal: ProfileUpdateProposal, request: ApplyUpdatesRequest
    ) -> PhaseResult[int]:
        errors: list[str] = []
        validated: dict[str, Any] = {}

        for item_id in request.approved_field_ids:
            update = proposal.find_field_update(item_id)
            if update is None:
                errors.append(f"Field update {item_id} not found in proposal")
                continue

            if item_id in request.edited_values:
                value = request.edited_values[item_id]
            else:
                value = update.proposed_value

            result = self.registry.validate(update.field, value)
            if not result.valid:
                errors.append(f"Invalid value for {update.label}: {result.error}")
                continue
            validated[update.field] = result.value

        if not validated:
            return PhaseResult(0, errors)

        try:
            updated = self.profiles.update_fields(customer_id, validated)
        except Exception as e:
            logger.error("apply.fields_failed", customer_id=customer_id, error=str(e))
            errors.append(f"Failed to update profile fields: {e}")
            return PhaseResult(0, errors)
        if updated is None:
            errors.append("Failed to update profile fields")
            return PhaseResult(0, errors)

        logger.info("apply.fields_updated", customer_id=customer_id, fields=sorted(validated))
        return PhaseResult(len(validated), errors)

    # --- Phase 2 ---

    def _apply_additional_data(
        self,
        customer_id: str,
        proposal: ProfileUpdateProposal,
        request: ApplyUpdatesRequest,
        actor_id: str | None,
    ) -> PhaseResult[int]:
        errors: list[str] = []
        items: list[dict] = []
        now = datetime.now().isoformat()

        for item_id in request.approved_additional_data_ids:
            item = proposal.find_additional_data(item_id)
            if item is None:
                errors.append(f"Additional data {item_id} not found in proposal")
                continue

            if item_id in request.edited_additional_data:
                value = request.edited_additional_data[item_id]
            else:
                value = item.value
            if is_empty(value):
                errors.append(f"Invalid value for {item.label}: value is empty")
                continue

            stored = AdditionalDataItem(
                key=item.key,
                label=item.label,
                value=value,
                confidence=item.confidence,
                source=item.source,
                category=item.category,
                added_at=now,
                added_by=actor_id,
            )
            items.append(stored.model_dump(by_alias=True, mode="json"))

        if not items:
            return PhaseResult(0, errors)

        try:
            self.profiles.append_additional_data(customer_id, items)
        except Exception as e:
            logger.error("apply.additional_data_failed", customer_id=customer_id, error=str(e))
            errors.append(f"Failed to add additional data: {e}")
            return PhaseResult(0, errors)

        return PhaseResult(len(items), errors)

    # --- Phase 3 ---

    def _apply_interests(
        self,
        proposal: ProfileUpdateProposal,
        request: ApplyUpdatesRequest,
        actor_id: str | None,
        attempt: Attempt,
    ) -> PhaseResult[list[str]]:
        """Value is the list of interest proposal ids that were confirmed."""
        errors: list[str] = []
        confirmed: list[str] = []
        approved = set(request.approved_interest_ids)

        for item_id in request.approved_interest_ids:
            interest = proposal.find_interest(item_id)
            if interest is None:
                errors.append(f"Interest proposal {item_id} not found in proposal")
                continue
            if not interest.artifact_id:
                errors.append(f"Interest proposal {item_id} has no backing artifact")
                continue

            edits = request.edited_interests.get(item_id)
            try:
                self.interests.create_from_artifact(interest.artifact_id, actor_id, edits)
            except Exception as e:
                logger.error("apply.interest_failed", interest_id=item_id, error=str(e))
                errors.append(f"Failed to confirm interest {interest.label}: {e}")
                continue
            confirmed.append(item_id)
            attempt(
                "apply.interest_artifact_accept_failed",
                self.artifacts.accept_interest_proposal,
                interest.artifact_id,
                edits,
                actor_id=actor_id,
            )

        # Everything not accepted is rejected, whatever happened above
        for interest in proposal.interest_proposals:
            if interest.id in approved or not interest.artifact_id:
                continue
            attempt(
                "apply.interest_reject_failed",
                self.artifacts.reject,
                interest.artifact_id,
                actor_id=actor_id,
            )

        return PhaseResult(confirmed, errors)

    # --- Phase 4 ---

    def _create_note(
        self,
        customer_id: str,
        proposal: ProfileUpdateProposal,
        request: ApplyUpdatesRequest,
        confirmed_interest_ids: list[str],
    ) -> PhaseResult[bool]:
        if not request.approved_note:
            return PhaseResult(False)

        approved_fields = set(request.approved_field_ids)
        traceability = {
            "proposalId": proposal.proposal_id,
            "fieldsApproved": list(request.approved_field_ids),
            "fieldsRejected": [f.id for f in proposal.field_updates if f.id not in approved_fields],
            "interestsConfirmed": list(confirmed_interest_ids),
            "interestsRejected": [
                i.id for i in proposal.interest_proposals if i.id not in confirmed_interest_ids
            ],
        }
        if request.edited_note_content is not None:
            content = request.edited_note_content
        else:
            content = proposal.note.content

        try:
            if not content.strip():
                raise ValueError("note content is empty")
            self.profiles.add_note(
                customer_id,
                NoteInput(
                    content=content,
                    source=proposal.note.source,
                    tags=list(proposal.note.tags),
                    raw_input=proposal.raw_input,
                    traceability=traceability,
                ),
            )
        except Exception as e:
            logger.error("apply.note_failed", customer_id=customer_id, error=str(e))
            return PhaseResult(False, [f"Failed to create note: {e}"])
        return PhaseResult(True)

    # --- Phase 5 ---

    def _sweep_field_artifacts(
        self,
        proposal: ProfileUpdateProposal,
        request: ApplyUpdatesRequest,
        actor_id: str | None,
        attempt: Attempt,
    ) -> None:
        """Resolve every field-update artifact, whether or not phase 1 wrote it."""
        approved = set(request.approved_field_ids)
        for update in proposal.field_updates:
            if not update.artifact_id:
                continue
            if update.id not in approved:
                attempt(
                    "apply.artifact_reject_failed",
                    self.artifacts.reject,
                    update.artifact_id,
                    actor_id=actor_id,
                )
            elif update.id in request.edited_values:
                attempt(
                    "apply.artifact_edit_failed",
                    self.artifacts.accept_profile_edit_with_edit,
                    update.artifact_id,
                    request.edited_values[update.id],
                    actor_id=actor_id,
                )
            else:
                attempt(
                    "apply.artifact_accept_failed",
                    self.artifacts.accept_profile_edit,
                    update.artifact_id,
                    actor_id=actor_id,
                )
