"""Tests for ReviewState."""

import pytest

from proposals.models import InterestEdit
from proposals.review import ReviewState
from shared_types import ReviewStatus


@pytest.fixture
def review(built_proposal):
    return ReviewState.for_proposal(built_proposal)


class TestReviewState:
    def test_starts_pending(self, review, built_proposal):
        assert set(review.status) == set(built_proposal.item_ids())
        assert all(s == ReviewStatus.PENDING for s in review.status.values())
        assert not review.has_any_accepted

    def test_accept_reject(self, review, built_proposal):
        item = built_proposal.field_updates[0].id
        review.accept(item)
        assert review.is_accepted(item)
        review.reject(item)
        assert review.status[item] == ReviewStatus.REJECTED
        assert not review.has_any_accepted

    def test_edit_after_reject_accepts(self, review, built_proposal):
        item = built_proposal.field_updates[0].id
        review.reject(item)
        review.edit(item, "aggressive")
        assert review.is_accepted(item)
        assert review.edited_values[item] == "aggressive"

    def test_unknown_item(self, review):
        with pytest.raises(KeyError):
            review.accept("fu-nope")

    def test_accept_all(self, review):
        review.accept_all()
        assert all(s == ReviewStatus.ACCEPTED for s in review.status.values())


class TestToApplyRequest:
    def test_nothing_accepted(self, review, built_proposal):
        request = review.to_apply_request()
        assert request.proposal_id == built_proposal.proposal_id
        assert request.proposal == built_proposal
        assert request.approved_field_ids == []
        assert request.approved_note is False

    def test_partial_with_edits(self, review, built_proposal):
        p = built_proposal
        review.accept(p.field_updates[0].id)
        review.edit(p.field_updates[1].id, 3)
        review.edit(p.additional_data[0].id, "Max")
        review.edit(p.interest_proposals[0].id, {"label": "Golfing"})
        review.edit(p.note.id, "Edited note")

        request = review.to_apply_request(include_proposal=False)
        assert request.proposal is None
        assert request.approved_field_ids == [p.field_updates[0].id, p.field_updates[1].id]
        assert request.edited_values == {p.field_updates[1].id: 3}
        assert request.approved_additional_data_ids == [p.additional_data[0].id]
        assert request.edited_additional_data == {p.additional_data[0].id: "Max"}
        assert request.approved_interest_ids == [p.interest_proposals[0].id]
        assert request.edited_interests == {p.interest_proposals[0].id: InterestEdit(label="Golfing")}
        assert request.approved_note is True
        assert request.edited_note_content == "Edited note"

    def test_plain_string_interest_edit_is_label(self, review, built_proposal):
        item = built_proposal.interest_proposals[1].id
        review.edit(item, "Early retirement")
        assert review.to_apply_request().edited_interests[item].label == "Early retirement"
