"""Single-artifact API routes."""

from typing import Optional

import structlog
from fastapi import APIRouter, Depends, HTTPException

from proposals.errors import ArtifactNotFoundError, ArtifactTransitionError
from proposals.models import InterestEdit
from proposals.pipeline import EnrichmentPipeline
from shared_types import ArtifactStatus, ArtifactType
from web.deps import get_actor_id, get_pipeline
from web.models import ArtifactPatch

logger = structlog.get_logger()

router = APIRouter(prefix="/api/artifacts", tags=["artifacts"])


@router.get("/{artifact_id}")
def get_artifact(artifact_id: str, pipeline: EnrichmentPipeline = Depends(get_pipeline)):
    artifact = pipeline.artifacts.get(artifact_id)
    if artifact is None:
        raise HTTPException(status_code=404, detail="Artifact not found")
    return artifact.model_dump(by_alias=True, mode="json")


@router.patch("/{artifact_id}")
def update_artifact(
    artifact_id: str,
    body: ArtifactPatch,
    pipeline: EnrichmentPipeline = Depends(get_pipeline),
    actor_id: Optional[str] = Depends(get_actor_id),
):
    store = pipeline.artifacts
    try:
        artifact = store.require(artifact_id)
        if body.status == ArtifactStatus.PENDING:
            raise HTTPException(status_code=400, detail="Cannot move an artifact back to pending")

        if body.status == ArtifactStatus.REJECTED:
            artifact = store.reject(artifact_id, actor_id=actor_id)
        elif artifact.artifact_type == ArtifactType.INTEREST_PROPOSAL:
            edits = InterestEdit(label=body.label, description=body.description)
            if body.status == ArtifactStatus.EDITED and edits.is_empty:
                raise HTTPException(status_code=400, detail="label or description required")
            artifact = store.accept_interest_proposal(artifact_id, edits, actor_id=actor_id)
        elif body.status == ArtifactStatus.EDITED:
            if body.edited_value is None:
                raise HTTPException(status_code=400, detail="editedValue required")
            artifact = store.accept_profile_edit_with_edit(
                artifact_id, body.edited_value, actor_id=actor_id
            )
        else:
            artifact = store.accept_profile_edit(artifact_id, actor_id=actor_id)
    except ArtifactNotFoundError:
        raise HTTPException(status_code=404, detail="Artifact not found")
    except ArtifactTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e))

    logger.info("artifact.patched", artifact_id=artifact_id, status=artifact.status.value)
    return artifact.model_dump(by_alias=True, mode="json")
