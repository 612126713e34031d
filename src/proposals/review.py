"""The RM's per-item decisions on one open proposal.

Lives only in the reviewing surface (CLI session, client) and is thrown away
after apply. The proposal itself is never touched; edits are kept here.
"""

from dataclasses import dataclass, field
from typing import Any

from shared_types import ReviewStatus

from .models import ApplyUpdatesRequest, InterestEdit, ProfileUpdateProposal


@dataclass
class ReviewState:
    proposal: ProfileUpdateProposal
    status: dict[str, ReviewStatus] = field(default_factory=dict)
    edited_values: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def for_proposal(cls, proposal: ProfileUpdateProposal) -> "ReviewState":
        return cls(proposal=proposal, status={i: ReviewStatus.PENDING for i in proposal.item_ids()})

    def _require(self, item_id: str):
        if item_id not in self.status:
            raise KeyError(f"Unknown review item: {item_id}")

    def accept(self, item_id: str) -> None:
        self._require(item_id)
        self.status[item_id] = ReviewStatus.ACCEPTED

    def reject(self, item_id: str) -> None:
        self._require(item_id)
        self.status[item_id] = ReviewStatus.REJECTED

    def edit(self, item_id: str, value: Any) -> None:
        """Record an edited value; editing always means accept, even after a reject."""
        self._require(item_id)
        self.edited_values[item_id] = value
        self.status[item_id] = ReviewStatus.ACCEPTED

    def accept_all(self) -> None:
        for item_id in self.status:
            self.status[item_id] = ReviewStatus.ACCEPTED

    def is_accepted(self, item_id: str) -> bool:
        return self.status.get(item_id) == ReviewStatus.ACCEPTED

    @property
    def has_any_accepted(self) -> bool:
        return any(s == ReviewStatus.ACCEPTED for s in self.status.values())

    def _accepted(self, ids) -> list[str]:
        return [i for i in ids if self.is_accepted(i)]

    def _edits(self, ids) -> dict[str, Any]:
        return {i: self.edited_values[i] for i in ids if i in self.edited_values}

    def to_apply_request(self, include_proposal: bool = True) -> ApplyUpdatesRequest:
        p = self.proposal
        field_ids = [f.id for f in p.field_updates]
        data_ids = [d.id for d in p.additional_data]
        interest_ids = [i.id for i in p.interest_proposals]

        interest_edits = {}
        for item_id, value in self._edits(interest_ids).items():
            if isinstance(value, InterestEdit):
                interest_edits[item_id] = value
            elif isinstance(value, dict):
                interest_edits[item_id] = InterestEdit.model_validate(value)
            else:
                interest_edits[item_id] = InterestEdit(label=str(value))

        note_edit = self.edited_values.get(p.note.id)
        return ApplyUpdatesRequest(
            proposal_id=p.proposal_id,
            proposal=p if include_proposal else None,
            approved_field_ids=self._accepted(field_ids),
            approved_additional_data_ids=self._accepted(data_ids),
            approved_interest_ids=self._accepted(interest_ids),
            approved_note=self.is_accepted(p.note.id),
            edited_values=self._edits(field_ids),
            edited_additional_data=self._edits(data_ids),
            edited_interests=interest_edits,
            edited_note_content=None if note_edit is None else str(note_edit),
        )
