"""Follow-up question generation with a deterministic fallback."""

import json

import structlog

from cli.retry import llm_retry
from observability import metrics

from .models import FieldScore, NudgeQuestion

logger = structlog.get_logger()

_QUESTION_SYSTEM = """You help a relationship manager (RM) at a wealth management firm
fill gaps in a client profile after a meeting.

For each field listed, write ONE short, conversational question the RM can answer
from memory of the conversation. Add an optional one-line description or example,
and a one-sentence "why" explaining how the answer improves advice.

Output ONLY a JSON array, one object per field, no preamble, no markdown fences:
[{"fieldKey": "...", "question": "...", "description": "...", "why": "..."}]"""


def fallback_question(field: FieldScore) -> NudgeQuestion:
    return NudgeQuestion(
        id=f"nudge-{field.field_key}",
        field_key=field.field_key,
        question=f"What is the customer's {field.label.lower()}?",
        why=f"Helps build a more complete {field.section_label.lower()} profile.",
    )


def _strip_fences(text: str) -> str:
    text = text.strip()
    if text.startswith("```"):
        text = text.split("\n", 1)[-1]
    if text.endswith("```"):
        text = text.rsplit("```", 1)[0]
    return text.strip()


class QuestionGenerator:
    """Turns selected fields into RM-facing questions, one per field."""

    def __init__(self, provider=None, max_attempts: int = 3, max_tokens: int = 1500):
        self._provider = provider
        self.max_tokens = max_tokens
        self._call = llm_retry(max_attempts=max_attempts)(self._generate_raw)

    def _get_provider(self):
        if self._provider:
            return self._provider
        from llm.factory import create_cheap_provider

        return create_cheap_provider()

    def _generate_raw(self, prompt: str) -> str:
        return self._get_provider().generate(
            messages=[{"role": "user", "content": prompt}],
            system=_QUESTION_SYSTEM,
            max_tokens=self.max_tokens,
        )

    def generate(
        self, fields: list[FieldScore], customer_summary: str = "", context: str = ""
    ) -> list[NudgeQuestion]:
        """Exactly one question per field, in input order.

        Any provider or parse failure falls back to template questions for
        every field.
        """
        if not fields:
            return []

        lines = [f"- {f.field_key} ({f.label}, section: {f.section_label})" for f in fields]
        prompt = "Fields to ask about:\n" + "\n".join(lines)
        if customer_summary:
            prompt = f"Client profile:\n{customer_summary}\n\n{prompt}"
        if context:
            prompt += f"\n\nWhat the RM just said:\n{context[:2000]}"

        try:
            response = self._call(prompt)
            generated = self._parse_response(response, {f.field_key: f for f in fields})
        except Exception as e:
            logger.warning("nudges.question_generation_failed", error=str(e), fields=len(fields))
            metrics.counter("nudges.question_fallbacks", len(fields))
            return [fallback_question(f) for f in fields]

        questions = []
        for f in fields:
            q = generated.get(f.field_key)
            if q is None:
                metrics.counter("nudges.question_fallbacks")
                q = fallback_question(f)
            questions.append(q)
        return questions

    def _parse_response(
        self, response: str, wanted: dict[str, FieldScore]
    ) -> dict[str, NudgeQuestion]:
        """Map field key -> question. Raises ValueError on a malformed response."""
        items = json.loads(_strip_fences(response or ""))
        if not isinstance(items, list):
            raise ValueError("question response is not a JSON array")

        out: dict[str, NudgeQuestion] = {}
        for item in items:
            if not isinstance(item, dict):
                continue
            key = item.get("fieldKey")
            question = (item.get("question") or "").strip()
            if key not in wanted or key in out or not question:
                continue
            out[key] = NudgeQuestion(
                id=f"nudge-{key}",
                field_key=key,
                question=question,
                why=(item.get("why") or "").strip() or fallback_question(wanted[key]).why,
                description=(item.get("description") or "").strip() or None,
            )
        return out
