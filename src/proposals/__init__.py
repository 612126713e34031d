"""Profile update proposals."""

from .apply import ApplyOrchestrator, Attempt, PhaseResult
from .artifacts import Artifact, ArtifactStore
from .builder import ProposalBuilder
from .errors import (
    ArtifactNotFoundError,
    ArtifactTransitionError,
    MalformedRequestError,
    ProposalError,
    ProposalNotFoundError,
)
from .extractor import ProfileExtractor
from .interests import Interest, InterestStore
from .models import ApplyUpdatesRequest, ApplyUpdatesResponse, ProfileUpdateProposal
from .pipeline import EnrichmentPipeline
from .review import ReviewState

__all__ = [
    "ApplyOrchestrator",
    "Attempt",
    "PhaseResult",
    "Artifact",
    "ArtifactStore",
    "ProposalBuilder",
    "ArtifactNotFoundError",
    "ArtifactTransitionError",
    "MalformedRequestError",
    "ProposalError",
    "ProposalNotFoundError",
    "ProfileExtractor",
    "Interest",
    "InterestStore",
    "ApplyUpdatesRequest",
    "ApplyUpdatesResponse",
    "ProfileUpdateProposal",
    "EnrichmentPipeline",
    "ReviewState",
]
