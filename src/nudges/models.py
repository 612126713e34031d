"""Data models for follow-up nudges."""

from dataclasses import dataclass

from shared_types import Priority


@dataclass(frozen=True)
class FieldScore:
    """An empty profile field ranked by how worthwhile it is to ask about."""

    field_key: str
    label: str
    section_id: str
    section_label: str
    priority: Priority
    section_completeness: int  # percent, 0-100
    score: float


@dataclass(frozen=True)
class NudgeQuestion:
    id: str
    field_key: str
    question: str
    why: str
    description: str | None = None


@dataclass(frozen=True)
class NudgeAnswer:
    question_id: str
    field_key: str
    answer: str | None = None
    skipped: bool = False

    @property
    def is_usable(self) -> bool:
        return not self.skipped and bool(self.answer and self.answer.strip())
