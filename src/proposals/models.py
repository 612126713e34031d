"""Extraction results, proposals and the apply wire shape.

Everything serializes with camelCase keys (``model_dump(by_alias=True)``) and
accepts either camelCase or snake_case on input.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from nudges.models import NudgeQuestion
from shared_types import Confidence, InterestCategory, NoteSource


class WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


# --- Extraction (LLM collaborator output) ---


class ExtractedField(WireModel):
    field: str
    value: Any = None
    confidence: Confidence = Confidence.MEDIUM
    source: str = ""


class ExtractedAdditionalData(WireModel):
    key: str
    label: str
    value: Any = None
    confidence: Confidence = Confidence.MEDIUM
    source: str = ""
    category: str | None = None


class ExtractedInterest(WireModel):
    category: InterestCategory
    label: str
    description: str | None = None
    source_text: str = ""
    confidence: Confidence = Confidence.MEDIUM


class Extraction(WireModel):
    fields: tuple[ExtractedField, ...] = ()
    additional_data: tuple[ExtractedAdditionalData, ...] = ()
    interests: tuple[ExtractedInterest, ...] = ()
    note_summary: str = ""
    note_tags: tuple[str, ...] = ()

    @property
    def field_keys(self) -> set[str]:
        return {f.field for f in self.fields}

    def merged_with(self, answers: "Extraction") -> "Extraction":
        """Follow-up answers win over the first pass for the same field key."""
        answered = answers.field_keys
        return self.model_copy(
            update={
                "fields": tuple(f for f in self.fields if f.field not in answered)
                + answers.fields,
                "additional_data": self.additional_data + answers.additional_data,
            }
        )


class ExtractionWithNudges(WireModel):
    """First-pass result: what was extracted plus the questions to ask next."""

    customer_id: str
    raw_input: str
    source: NoteSource = NoteSource.MEETING
    extraction: Extraction
    nudges: tuple[NudgeQuestion, ...] = ()
    empty_field_count: int = 0


# --- Proposal (immutable once built) ---


class ProposedFieldUpdate(WireModel):
    id: str
    field: str
    label: str
    current_value: Any = None
    proposed_value: Any = None
    confidence: Confidence = Confidence.MEDIUM
    source: str = ""
    artifact_id: str | None = None


class ProposedAdditionalData(WireModel):
    id: str
    key: str
    label: str
    value: Any = None
    confidence: Confidence = Confidence.MEDIUM
    source: str = ""
    category: str | None = None


class InterestProposal(WireModel):
    id: str
    category: InterestCategory
    label: str
    description: str | None = None
    source_text: str = ""
    confidence: Confidence = Confidence.MEDIUM
    artifact_id: str | None = None


class ProposedNote(WireModel):
    id: str
    content: str
    source: NoteSource = NoteSource.MEETING
    tags: tuple[str, ...] = ()


class ProfileUpdateProposal(WireModel):
    proposal_id: str
    customer_id: str
    field_updates: tuple[ProposedFieldUpdate, ...] = ()
    additional_data: tuple[ProposedAdditionalData, ...] = ()
    interest_proposals: tuple[InterestProposal, ...] = ()
    note: ProposedNote
    raw_input: str = ""
    created_at: str

    def find_field_update(self, item_id: str) -> ProposedFieldUpdate | None:
        return next((f for f in self.field_updates if f.id == item_id), None)

    def find_additional_data(self, item_id: str) -> ProposedAdditionalData | None:
        return next((d for d in self.additional_data if d.id == item_id), None)

    def find_interest(self, item_id: str) -> InterestProposal | None:
        return next((i for i in self.interest_proposals if i.id == item_id), None)

    def item_ids(self) -> list[str]:
        return (
            [f.id for f in self.field_updates]
            + [d.id for d in self.additional_data]
            + [i.id for i in self.interest_proposals]
            + [self.note.id]
        )


class AdditionalDataItem(WireModel):
    """Stored form of an accepted non-schema datum."""

    key: str
    label: str
    value: Any = None
    confidence: Confidence = Confidence.MEDIUM
    source: str = ""
    category: str | None = None
    added_at: str
    added_by: str | None = None


# --- Apply wire shape ---


class InterestEdit(WireModel):
    label: str | None = None
    description: str | None = None

    @property
    def is_empty(self) -> bool:
        return self.label is None and self.description is None


class ApplyUpdatesRequest(WireModel):
    proposal_id: str = Field(min_length=1)
    proposal: ProfileUpdateProposal | None = None
    approved_field_ids: list[str] = Field(default_factory=list)
    approved_additional_data_ids: list[str] = Field(default_factory=list)
    approved_interest_ids: list[str] = Field(default_factory=list)
    approved_note: bool = False
    edited_values: dict[str, Any] = Field(default_factory=dict)
    edited_additional_data: dict[str, Any] = Field(default_factory=dict)
    edited_interests: dict[str, InterestEdit] = Field(default_factory=dict)
    edited_note_content: str | None = None


class ApplyUpdatesResponse(WireModel):
    success: bool
    fields_updated: int = 0
    additional_data_added: int = 0
    interests_confirmed: int | None = None
    note_created: bool = False
    errors: list[str] | None = None

    def to_wire(self) -> dict:
        """camelCase dict with unset optional keys left out."""
        return self.model_dump(by_alias=True, exclude_none=True)
