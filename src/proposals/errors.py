"""Proposal pipeline errors.

Only structural problems are raised out of the apply path; per-item problems
are reported as strings in the response.
"""


class ProposalError(Exception):
    """Base error for the proposal pipeline."""


class ProposalNotFoundError(ProposalError):
    def __init__(self, proposal_id: str):
        super().__init__(f"Proposal not found: {proposal_id}")
        self.proposal_id = proposal_id


class MalformedRequestError(ProposalError):
    """The apply request is inconsistent with itself or with its proposal."""


class ArtifactNotFoundError(ProposalError):
    def __init__(self, artifact_id: str):
        super().__init__(f"Artifact not found: {artifact_id}")
        self.artifact_id = artifact_id


class ArtifactTransitionError(ProposalError):
    """Attempt to move a terminal artifact to a different terminal status."""

    def __init__(self, artifact_id: str, current: str, requested: str):
        super().__init__(f"Artifact {artifact_id} is already {current}; cannot mark {requested}")
        self.artifact_id = artifact_id
        self.current = current
        self.requested = requested
