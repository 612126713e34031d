"""Shared test fixtures for clientbook."""

import json
import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from llm.base import LLMAuthError  # noqa: E402
from observability import metrics  # noqa: E402


@pytest.fixture(autouse=True)
def reset_metrics():
    metrics.reset()
    yield
    metrics.reset()


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "clientbook.db"


@pytest.fixture
def profiles(db_path):
    from customers.storage import ProfileStore

    return ProfileStore(db_path)


@pytest.fixture
def artifacts(db_path):
    from proposals.artifacts import ArtifactStore

    return ArtifactStore(db_path)


@pytest.fixture
def interests(db_path, artifacts):
    from proposals.interests import InterestStore

    return InterestStore(db_path, artifacts)


@pytest.fixture
def customer(profiles):
    """A customer with a partly filled profile."""
    return profiles.create_customer(
        "Anita Rao",
        {
            "city_of_residence": "Pune",
            "occupation_type": "salaried",
            "primary_mobile": "+91 98765 43210",
        },
    )


@pytest.fixture
def failing_provider():
    """Provider whose every call fails without being retried."""
    provider = MagicMock()
    provider.generate.side_effect = LLMAuthError("no key")
    return provider


def _json_provider(*responses):
    provider = MagicMock()
    provider.generate.side_effect = [
        r if isinstance(r, str) else json.dumps(r) for r in responses
    ]
    return provider


@pytest.fixture
def json_llm():
    """Factory for a provider returning each response (serialized to JSON) in turn."""
    return _json_provider


@pytest.fixture
def pipeline(profiles, artifacts, interests, failing_provider):
    """Pipeline whose LLM collaborators always take their fallback path."""
    from nudges.questions import QuestionGenerator
    from proposals.extractor import ProfileExtractor
    from proposals.pipeline import EnrichmentPipeline

    return EnrichmentPipeline(
        profiles,
        artifacts,
        interests,
        extractor=ProfileExtractor(provider=failing_provider, max_attempts=1),
        questions=QuestionGenerator(provider=failing_provider, max_attempts=1),
    )


@pytest.fixture
def sample_extraction():
    from proposals.models import ExtractedAdditionalData, ExtractedField, ExtractedInterest, Extraction

    return Extraction(
        fields=(
            ExtractedField(field="risk_bucket", value="moderate", confidence="high", source="moderate risk"),
            ExtractedField(field="dependents_count", value="2", confidence="medium", source="two kids"),
            ExtractedField(field="dob", value="1984-03-12", confidence="high", source="born 12 March 1984"),
        ),
        additional_data=(
            ExtractedAdditionalData(
                key="pet_name", label="Pet", value="Bruno", confidence="low", source="dog Bruno"
            ),
        ),
        interests=(
            ExtractedInterest(category="personal", label="Golf", source_text="plays golf on weekends"),
            ExtractedInterest(
                category="financial", label="Retirement planning", source_text="wants to retire at 55"
            ),
        ),
        note_summary="Discussed risk appetite and retirement plans.",
        note_tags=("risk", "retirement"),
    )


@pytest.fixture
def built_proposal(customer, artifacts, sample_extraction):
    """Proposal for ``customer`` with pending artifacts behind every field and interest."""
    from proposals.builder import ProposalBuilder

    return ProposalBuilder(artifacts=artifacts).build(
        customer, sample_extraction, "Met Anita today. Moderate risk, two kids.", rm_id="rm-1"
    )
