"""Follow-up nudges for empty profile fields."""

from .models import FieldScore, NudgeAnswer, NudgeQuestion
from .questions import QuestionGenerator, fallback_question
from .scoring import calculate_field_score, score_empty_fields
from .selection import deduplicate_fields, score_threshold, select_nudge_fields

__all__ = [
    "FieldScore",
    "NudgeAnswer",
    "NudgeQuestion",
    "QuestionGenerator",
    "fallback_question",
    "calculate_field_score",
    "score_empty_fields",
    "deduplicate_fields",
    "score_threshold",
    "select_nudge_fields",
]
