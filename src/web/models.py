"""Pydantic request/response schemas for the web API."""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from shared_types import ArtifactStatus, InterestCategory


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --- Nudges ---


class NudgeRequest(CamelModel):
    extracted_field_keys: list[str] = Field(default_factory=list)
    max_questions: Optional[int] = Field(None, ge=0, le=50)
    context: str = Field("", max_length=8000)


class NudgeField(CamelModel):
    field_key: str
    label: str
    section: str
    priority: str
    section_completeness: int
    score: float


class NudgeQuestionOut(CamelModel):
    id: str
    field_key: str
    question: str
    description: Optional[str] = None
    why: str


class NudgeResponse(CamelModel):
    empty_field_count: int
    threshold: Optional[float] = None
    fields: list[NudgeField] = Field(default_factory=list)
    questions: list[NudgeQuestionOut] = Field(default_factory=list)


# --- Artifacts ---


class ArtifactPatch(CamelModel):
    """RM decision on a single artifact outside the batch apply flow."""

    status: ArtifactStatus
    edited_value: Any = None
    label: Optional[str] = None
    description: Optional[str] = None


# --- Profile ---


class FieldPatch(CamelModel):
    """One profile field, addressed by key or by its display label."""

    field: str = Field(min_length=1)
    value: Any = None


# --- Interests ---


class InterestCreate(CamelModel):
    category: InterestCategory
    label: str = Field(min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    rm_id: Optional[str] = None


class InterestPatch(CamelModel):
    label: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    rm_id: Optional[str] = None
