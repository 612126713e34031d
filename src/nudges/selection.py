"""Nudge selection: dedupe against the extraction, reorder, cut to quota."""

from collections.abc import Iterable

import structlog

from observability import metrics

from .models import FieldScore

logger = structlog.get_logger()

DEFAULT_QUOTA_PERCENT = 20
DEFAULT_MAX_QUESTIONS = 10


def question_quota(
    total_empty: int,
    max_questions: int = DEFAULT_MAX_QUESTIONS,
    quota_percent: int = DEFAULT_QUOTA_PERCENT,
) -> int:
    """ceil(total_empty * quota), capped at max_questions."""
    if total_empty <= 0:
        return 0
    # exact integer ceil; 15 * 0.2 is 3.0000000000000004 in floats
    wanted = -(-total_empty * quota_percent // 100)
    return min(wanted, max_questions)


def remove_extracted_fields(scored: list[FieldScore], extracted_keys: Iterable[str]) -> list[FieldScore]:
    extracted = set(extracted_keys)
    return [s for s in scored if s.field_key not in extracted]


def prioritize_sections_with_extractions(
    remaining: list[FieldScore], touched_sections: set[str]
) -> list[FieldScore]:
    """Stable partition: fields in touched sections first, score order kept within each half."""
    if not touched_sections:
        return list(remaining)
    first = [s for s in remaining if s.section_id in touched_sections]
    rest = [s for s in remaining if s.section_id not in touched_sections]
    return first + rest


def deduplicate_fields(scored: list[FieldScore], extracted_keys: Iterable[str]) -> list[FieldScore]:
    """Drop extracted fields and move their sections to the front.

    Touched sections are looked up in the full scored list, so a section
    counts as touched when the extraction filled one of its empty fields.
    """
    extracted = set(extracted_keys)
    touched = {s.section_id for s in scored if s.field_key in extracted}
    remaining = remove_extracted_fields(scored, extracted)
    return prioritize_sections_with_extractions(remaining, touched)


def select_top_fields(ordered: list[FieldScore], count: int) -> list[FieldScore]:
    return ordered[: max(count, 0)]


def select_nudge_fields(
    scored: list[FieldScore],
    extracted_keys: Iterable[str] = (),
    max_questions: int = DEFAULT_MAX_QUESTIONS,
    quota_percent: int = DEFAULT_QUOTA_PERCENT,
) -> list[FieldScore]:
    """Pick the fields to ask about.

    The quota is taken from the scored count before deduplication.
    """
    count = question_quota(len(scored), max_questions, quota_percent)
    ordered = deduplicate_fields(scored, extracted_keys)
    selected = select_top_fields(ordered, count)

    metrics.counter("nudges.selected", len(selected))
    logger.info(
        "nudges.selected",
        empty_fields=len(scored),
        after_dedup=len(ordered),
        quota=count,
        selected=len(selected),
        threshold=score_threshold(selected),
    )
    return selected


def score_threshold(selected: list[FieldScore]) -> float | None:
    """Score of the last selected field. Reporting only; never filter on it."""
    if not selected:
        return None
    return selected[-1].score
