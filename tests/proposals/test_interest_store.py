"""Tests for InterestStore."""

import pytest

from proposals.artifacts import NewArtifact
from proposals.errors import ArtifactNotFoundError, ArtifactTransitionError
from proposals.models import InterestEdit
from shared_types import InterestCategory, InterestSourceType, InterestStatus


@pytest.fixture
def golf_artifact(artifacts, customer):
    return artifacts.create_interest_proposal(
        NewArtifact(
            customer_id=customer.id,
            batch_id="b1",
            payload={
                "item_id": "int-1",
                "category": "personal",
                "label": "Golf",
                "description": "Weekend golfer",
            },
        )
    )


class TestCreateFromArtifact:
    def test_creates_active_interest(self, interests, golf_artifact, customer):
        interest = interests.create_from_artifact(golf_artifact.id, actor_id="rm-1")
        assert interest.customer_id == customer.id
        assert interest.category == InterestCategory.PERSONAL
        assert interest.label == "Golf"
        assert interest.description == "Weekend golfer"
        assert interest.status == InterestStatus.ACTIVE
        assert interest.source_type == InterestSourceType.SYSTEM_SUGGESTED
        assert interest.source_artifact_id == golf_artifact.id
        assert interest.created_by_id == "rm-1"

    def test_idempotent(self, interests, golf_artifact, customer):
        first = interests.create_from_artifact(golf_artifact.id)
        second = interests.create_from_artifact(golf_artifact.id, edits=InterestEdit(label="Chess"))
        assert second.id == first.id
        assert second.label == "Golf"
        assert len(interests.list_by_customer(customer.id)) == 1

    def test_rm_edits_win(self, interests, golf_artifact):
        interest = interests.create_from_artifact(
            golf_artifact.id, edits=InterestEdit(label="Golfing", description="Plays at Poona Club")
        )
        assert interest.label == "Golfing"
        assert interest.description == "Plays at Poona Club"

    def test_artifact_edits_used_when_no_request_edits(self, interests, artifacts, golf_artifact):
        artifacts.accept_interest_proposal(golf_artifact.id, InterestEdit(label="Golf (weekends)"))
        interest = interests.create_from_artifact(golf_artifact.id)
        assert interest.label == "Golf (weekends)"
        assert interest.description == "Weekend golfer"

    def test_rejected_artifact_not_confirmed(self, interests, artifacts, golf_artifact, customer):
        artifacts.reject(golf_artifact.id)
        with pytest.raises(ArtifactTransitionError, match="already rejected"):
            interests.create_from_artifact(golf_artifact.id, "rm-1")
        assert interests.list_by_customer(customer.id) == []

    def test_missing_artifact(self, interests):
        with pytest.raises(ArtifactNotFoundError):
            interests.create_from_artifact("nope")

    def test_wrong_artifact_type(self, interests, artifacts, customer):
        edit = artifacts.create_profile_edit(
            NewArtifact(customer_id=customer.id, batch_id="b1", payload={"field_key": "dob"})
        )
        with pytest.raises(ValueError, match="not an interest proposal"):
            interests.create_from_artifact(edit.id)

    def test_audit_confirmed(self, interests, golf_artifact):
        interest = interests.create_from_artifact(golf_artifact.id, actor_id="rm-1")
        trail = interests.audit_trail(interest.id)
        assert [e.action for e in trail] == ["confirmed"]
        assert trail[0].actor_id == "rm-1"
        assert trail[0].changes["artifact_id"] == golf_artifact.id


class TestManualInterests:
    def test_create_update_archive(self, interests, customer):
        interest = interests.create_manual(customer.id, InterestCategory.FINANCIAL, "Gold ETFs")
        assert interest.source_type == InterestSourceType.MANUAL
        assert interest.source_artifact_id is None

        updated = interests.update(interest.id, InterestEdit(description="Wants 10% in gold"))
        assert updated.label == "Gold ETFs"
        assert updated.description == "Wants 10% in gold"

        assert interests.archive(interest.id, actor_id="rm-2") is True
        assert interests.archive(interest.id) is False
        assert interests.list_by_customer(customer.id) == []
        archived = interests.list_by_customer(customer.id, include_archived=True)
        assert archived[0].status == InterestStatus.ARCHIVED

        assert [e.action for e in interests.audit_trail(interest.id)] == ["created", "edited", "archived"]

    def test_update_missing(self, interests):
        assert interests.update("nope", InterestEdit(label="x")) is None

    def test_update_without_changes(self, interests, customer):
        interest = interests.create_manual(customer.id, InterestCategory.PERSONAL, "Chess")
        assert interests.update(interest.id, InterestEdit()) == interest
        assert len(interests.audit_trail(interest.id)) == 1
