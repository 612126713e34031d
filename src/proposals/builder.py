"""Builds an immutable ProfileUpdateProposal from one extraction."""

import uuid
from datetime import datetime

import structlog

from customers.fields import FieldRegistry, registry
from customers.sections import is_empty
from customers.storage import Customer
from shared_types import CreatorType, NoteSource

from .artifacts import ArtifactStore, NewArtifact, interest_payload, profile_edit_payload
from .models import (
    Extraction,
    InterestProposal,
    ProfileUpdateProposal,
    ProposedAdditionalData,
    ProposedFieldUpdate,
    ProposedNote,
)

logger = structlog.get_logger()

NOTE_FALLBACK_CHARS = 200


def _new_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


class ProposalBuilder:
    """Assembles proposals and, when given an artifact store, their pending artifacts."""

    def __init__(
        self,
        field_registry: FieldRegistry | None = None,
        artifacts: ArtifactStore | None = None,
        note_fallback_chars: int = NOTE_FALLBACK_CHARS,
    ):
        self.registry = field_registry or registry
        self.artifacts = artifacts
        self.note_fallback_chars = note_fallback_chars

    def build(
        self,
        customer: Customer,
        extraction: Extraction,
        raw_input: str,
        source: NoteSource = NoteSource.MEETING,
        rm_id: str | None = None,
    ) -> ProfileUpdateProposal:
        proposal_id = uuid.uuid4().hex
        field_updates = self._field_updates(customer, extraction)
        additional = [
            ProposedAdditionalData(id=_new_id("ad"), **item.model_dump())
            for item in extraction.additional_data
        ]
        interests = [
            InterestProposal(id=_new_id("int"), **item.model_dump())
            for item in extraction.interests
        ]

        if self.artifacts is not None:
            field_updates, interests = self._attach_artifacts(
                customer.id, proposal_id, field_updates, interests, rm_id
            )

        note = ProposedNote(
            id=_new_id("note"),
            content=extraction.note_summary.strip() or raw_input[: self.note_fallback_chars],
            source=source,
            tags=extraction.note_tags,
        )

        proposal = ProfileUpdateProposal(
            proposal_id=proposal_id,
            customer_id=customer.id,
            field_updates=tuple(field_updates),
            additional_data=tuple(additional),
            interest_proposals=tuple(interests),
            note=note,
            raw_input=raw_input,
            created_at=datetime.now().isoformat(),
        )
        logger.info(
            "proposal.built",
            proposal_id=proposal_id,
            customer_id=customer.id,
            field_updates=len(field_updates),
            additional_data=len(additional),
            interests=len(interests),
        )
        return proposal

    def _field_updates(self, customer: Customer, extraction: Extraction) -> list[ProposedFieldUpdate]:
        updates = []
        for extracted in extraction.fields:
            definition = self.registry.get(extracted.field)
            if definition is None:
                logger.debug("proposal.unknown_field_dropped", field=extracted.field)
                continue
            current = customer.fields.get(extracted.field)
            updates.append(
                ProposedFieldUpdate(
                    id=_new_id("fu"),
                    field=extracted.field,
                    label=definition.label,
                    current_value=None if is_empty(current) else current,
                    proposed_value=extracted.value,
                    confidence=extracted.confidence,
                    source=extracted.source,
                )
            )
        return updates

    def _attach_artifacts(
        self,
        customer_id: str,
        proposal_id: str,
        field_updates: list[ProposedFieldUpdate],
        interests: list[InterestProposal],
        rm_id: str | None,
    ) -> tuple[list[ProposedFieldUpdate], list[InterestProposal]]:
        """Create one pending artifact per field update and per interest."""

        def new(payload: dict) -> NewArtifact:
            return NewArtifact(
                customer_id=customer_id,
                batch_id=proposal_id,
                payload=payload,
                rm_id=rm_id,
                created_by_type=CreatorType.AGENT,
            )

        edits = self.artifacts.create_profile_edits([new(profile_edit_payload(u)) for u in field_updates])
        proposals = self.artifacts.create_interest_proposals([new(interest_payload(i)) for i in interests])
        return (
            [u.model_copy(update={"artifact_id": a.id}) for u, a in zip(field_updates, edits)],
            [i.model_copy(update={"artifact_id": a.id}) for i, a in zip(interests, proposals)],
        )
