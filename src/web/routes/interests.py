"""Customer interest API routes."""

from typing import Optional

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query

from proposals.interests import Interest
from proposals.models import InterestEdit
from proposals.pipeline import EnrichmentPipeline
from web.deps import get_actor_id, get_pipeline
from web.models import InterestCreate, InterestPatch

logger = structlog.get_logger()

router = APIRouter(prefix="/api/customers/{customer_id}/interests", tags=["interests"])


def _require_customer(pipeline: EnrichmentPipeline, customer_id: str):
    if pipeline.profiles.get_customer(customer_id) is None:
        raise HTTPException(status_code=404, detail="Customer not found")


def _require_interest(pipeline: EnrichmentPipeline, customer_id: str, interest_id: str) -> Interest:
    _require_customer(pipeline, customer_id)
    interest = pipeline.interests.get(interest_id)
    # Another customer's interest is reported as missing
    if interest is None or interest.customer_id != customer_id:
        raise HTTPException(status_code=404, detail="Interest not found")
    return interest


def _dump(interest: Interest) -> dict:
    return interest.model_dump(by_alias=True, mode="json")


@router.get("")
def list_interests(
    customer_id: str,
    include_archived: bool = Query(False, alias="includeArchived"),
    pipeline: EnrichmentPipeline = Depends(get_pipeline),
):
    _require_customer(pipeline, customer_id)
    interests = pipeline.interests.list_by_customer(customer_id, include_archived=include_archived)
    return {"interests": [_dump(i) for i in interests]}


@router.post("", status_code=201)
def create_interest(
    customer_id: str,
    body: InterestCreate,
    pipeline: EnrichmentPipeline = Depends(get_pipeline),
    actor_id: Optional[str] = Depends(get_actor_id),
):
    _require_customer(pipeline, customer_id)
    rm_id = body.rm_id or actor_id
    if not rm_id:
        raise HTTPException(status_code=400, detail="RM id is required to create interests")

    interest = pipeline.interests.create_manual(
        customer_id, body.category, body.label.strip(), body.description, actor_id=rm_id
    )
    logger.info("interest.created", customer_id=customer_id, interest_id=interest.id)
    return {"interest": _dump(interest)}


@router.get("/{interest_id}")
def get_interest(
    customer_id: str,
    interest_id: str,
    pipeline: EnrichmentPipeline = Depends(get_pipeline),
):
    return {"interest": _dump(_require_interest(pipeline, customer_id, interest_id))}


@router.patch("/{interest_id}")
def update_interest(
    customer_id: str,
    interest_id: str,
    body: InterestPatch,
    pipeline: EnrichmentPipeline = Depends(get_pipeline),
    actor_id: Optional[str] = Depends(get_actor_id),
):
    _require_interest(pipeline, customer_id, interest_id)
    edits = InterestEdit(label=body.label, description=body.description)
    if edits.is_empty:
        raise HTTPException(
            status_code=400, detail="At least one field to update is required (label or description)"
        )
    interest = pipeline.interests.update(interest_id, edits, actor_id=body.rm_id or actor_id)
    return {"interest": _dump(interest)}


@router.delete("/{interest_id}", status_code=204)
def archive_interest(
    customer_id: str,
    interest_id: str,
    pipeline: EnrichmentPipeline = Depends(get_pipeline),
    actor_id: Optional[str] = Depends(get_actor_id),
):
    """Interests are archived, never deleted."""
    _require_interest(pipeline, customer_id, interest_id)
    if not pipeline.interests.archive(interest_id, actor_id=actor_id):
        raise HTTPException(status_code=404, detail="Interest is not active")
    logger.info("interest.archived", customer_id=customer_id, interest_id=interest_id)


@router.get("/{interest_id}/audit")
def interest_audit(
    customer_id: str,
    interest_id: str,
    pipeline: EnrichmentPipeline = Depends(get_pipeline),
):
    _require_interest(pipeline, customer_id, interest_id)
    entries = pipeline.interests.audit_trail(interest_id)
    return {"entries": [e.model_dump(by_alias=True, mode="json") for e in entries]}
