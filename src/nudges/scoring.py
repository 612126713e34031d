"""Field importance scoring.

An empty field's score is its priority weight plus a bonus for how complete
its section already is:

    score = weight(priority) + (completeness / 100) ** 2 * 3

so a low-priority field in a nearly finished section can outrank a
high-priority field in an untouched one.
"""

import structlog

from customers.sections import PROFILE_SECTIONS, SectionDefinition, is_empty, section_completeness
from observability import metrics
from shared_types import Priority

from .models import FieldScore

logger = structlog.get_logger()

PRIORITY_WEIGHTS = {
    Priority.HIGH: 3,
    Priority.MEDIUM: 2,
    Priority.LOW: 1,
}

COMPLETENESS_BONUS = 3


def calculate_field_score(priority: Priority, completeness: int | float) -> float:
    ratio = completeness / 100
    return PRIORITY_WEIGHTS[priority] + ratio * ratio * COMPLETENESS_BONUS


def score_empty_fields(
    values: dict, sections: tuple[SectionDefinition, ...] = PROFILE_SECTIONS
) -> list[FieldScore]:
    """Score every empty field, highest first.

    Ties keep section then field declaration order (``sorted`` is stable).
    """
    scored = []
    for section in sections:
        completeness = section_completeness(values, section).percentage
        for f in section.fields:
            if not is_empty(values.get(f.key)):
                continue
            scored.append(
                FieldScore(
                    field_key=f.key,
                    label=f.label,
                    section_id=section.id,
                    section_label=section.label,
                    priority=f.priority,
                    section_completeness=completeness,
                    score=calculate_field_score(f.priority, completeness),
                )
            )

    metrics.counter("nudges.fields_scored", len(scored))
    return sorted(scored, key=lambda s: s.score, reverse=True)
