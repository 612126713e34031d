"""Customer enrichment API routes."""

from typing import Optional

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse

from customers.errors import CustomerNotFoundError
from customers.fields import registry
from customers.sections import get_section, profile_completeness, section_completeness
from nudges.scoring import score_empty_fields
from nudges.selection import score_threshold, select_nudge_fields
from proposals.errors import MalformedRequestError, ProposalNotFoundError
from proposals.models import ApplyUpdatesRequest
from proposals.pipeline import EnrichmentPipeline
from shared_types import ArtifactStatus, ArtifactType
from web.deps import get_actor_id, get_pipeline
from web.models import FieldPatch, NudgeField, NudgeQuestionOut, NudgeRequest, NudgeResponse

logger = structlog.get_logger()

router = APIRouter(prefix="/api/customers", tags=["customers"])


@router.post("/{customer_id}/apply-updates")
def apply_updates(
    customer_id: str,
    body: ApplyUpdatesRequest,
    pipeline: EnrichmentPipeline = Depends(get_pipeline),
    actor_id: Optional[str] = Depends(get_actor_id),
):
    try:
        result = pipeline.apply(customer_id, body, actor_id=actor_id)
    except CustomerNotFoundError:
        raise HTTPException(status_code=404, detail="Customer not found")
    except ProposalNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except MalformedRequestError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return JSONResponse(result.to_wire())


@router.post("/{customer_id}/nudges", response_model=NudgeResponse, response_model_by_alias=True)
def nudges(
    customer_id: str,
    body: NudgeRequest,
    pipeline: EnrichmentPipeline = Depends(get_pipeline),
):
    customer = pipeline.profiles.get_customer(customer_id)
    if customer is None:
        raise HTTPException(status_code=404, detail="Customer not found")

    scored = score_empty_fields(customer.fields)
    max_questions = pipeline.max_questions if body.max_questions is None else body.max_questions
    selected = select_nudge_fields(
        scored,
        body.extracted_field_keys,
        max_questions=max_questions,
        quota_percent=pipeline.quota_percent,
    )
    questions = pipeline.questions.generate(selected, customer.summary(), body.context)

    return NudgeResponse(
        empty_field_count=len(scored),
        threshold=score_threshold(selected),
        fields=[
            NudgeField(
                field_key=s.field_key,
                label=s.label,
                section=s.section_id,
                priority=s.priority.value,
                section_completeness=s.section_completeness,
                score=s.score,
            )
            for s in selected
        ],
        questions=[
            NudgeQuestionOut(
                id=q.id,
                field_key=q.field_key,
                question=q.question,
                description=q.description,
                why=q.why,
            )
            for q in questions
        ],
    )


@router.get("/{customer_id}/artifacts")
def list_artifacts(
    customer_id: str,
    status: Optional[ArtifactStatus] = None,
    artifact_type: Optional[ArtifactType] = Query(None, alias="type"),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    pipeline: EnrichmentPipeline = Depends(get_pipeline),
):
    if pipeline.profiles.get_customer(customer_id) is None:
        raise HTTPException(status_code=404, detail="Customer not found")
    artifacts = pipeline.artifacts.list_by_customer(
        customer_id, status=status, artifact_type=artifact_type, limit=limit, offset=offset
    )
    return [a.model_dump(by_alias=True, mode="json") for a in artifacts]


# --- Profile ---


@router.get("/{customer_id}")
def get_customer(customer_id: str, pipeline: EnrichmentPipeline = Depends(get_pipeline)):
    customer = pipeline.profiles.get_customer(customer_id)
    if customer is None:
        raise HTTPException(status_code=404, detail="Customer not found")
    pc = profile_completeness(customer.fields)
    return {
        "id": customer.id,
        "fullName": customer.full_name,
        "fields": customer.fields,
        "additionalData": customer.additional_data,
        "completeness": {
            "percentage": pc.percentage,
            "level": pc.level,
            "sections": customer.completeness(),
        },
        "missingHighPriority": registry.missing_high_priority(customer.fields),
        "createdAt": customer.created_at,
        "updatedAt": customer.updated_at,
    }


@router.delete("/{customer_id}", status_code=204)
def delete_customer(customer_id: str, pipeline: EnrichmentPipeline = Depends(get_pipeline)):
    if not pipeline.profiles.delete_customer(customer_id):
        raise HTTPException(status_code=404, detail="Customer not found")
    logger.info("customer.deleted", customer_id=customer_id)


@router.patch("/{customer_id}/fields")
def update_field(
    customer_id: str,
    body: FieldPatch,
    pipeline: EnrichmentPipeline = Depends(get_pipeline),
):
    key = body.field if body.field in registry else registry.key_for_label(body.field)
    if key is None:
        raise HTTPException(status_code=400, detail=f"Unknown field: {body.field}")
    result = registry.validate(key, body.value)
    if not result.valid:
        raise HTTPException(status_code=400, detail=result.error)

    updated = pipeline.profiles.update_fields(customer_id, {key: result.value})
    if updated is None:
        raise HTTPException(status_code=404, detail="Customer not found")
    return {"success": True, "field": key, "value": updated.fields.get(key)}


@router.get("/{customer_id}/sections/{section_id}")
def get_customer_section(
    customer_id: str,
    section_id: str,
    pipeline: EnrichmentPipeline = Depends(get_pipeline),
):
    customer = pipeline.profiles.get_customer(customer_id)
    if customer is None:
        raise HTTPException(status_code=404, detail="Customer not found")
    section = get_section(section_id)
    if section is None:
        raise HTTPException(status_code=404, detail="Section not found")

    sc = section_completeness(customer.fields, section)
    return {
        "id": section.id,
        "label": section.label,
        "filled": sc.filled,
        "total": sc.total,
        "percentage": sc.percentage,
        "fields": [
            {
                "key": f.key,
                "label": f.label,
                "priority": f.priority.value,
                "type": f.type.value,
                "value": customer.fields.get(f.key),
            }
            for f in section.fields
        ],
    }


@router.get("/{customer_id}/notes")
def list_notes(
    customer_id: str,
    limit: int = Query(50, ge=1, le=200),
    pipeline: EnrichmentPipeline = Depends(get_pipeline),
):
    if pipeline.profiles.get_customer(customer_id) is None:
        raise HTTPException(status_code=404, detail="Customer not found")
    notes = pipeline.profiles.list_notes(customer_id, limit=limit)
    return {"notes": [n.model_dump(mode="json") for n in notes]}
