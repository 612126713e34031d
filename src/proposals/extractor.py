"""LLM-powered extraction of profile updates from RM notes and follow-up answers."""

import json

import structlog
from pydantic import ValidationError

from cli.retry import llm_retry
from customers.fields import FieldRegistry, registry
from customers.storage import Customer
from nudges.models import NudgeAnswer
from shared_types import Confidence, NoteSource

from .models import ExtractedAdditionalData, ExtractedField, ExtractedInterest, Extraction

logger = structlog.get_logger()

NOTE_FALLBACK_CHARS = 200
ANSWER_SOURCE = "RM provided in follow-up"

_EXTRACTION_SYSTEM = """You extract structured client-profile updates from a relationship
manager's (RM) notes about a wealth management client.

Profile schema (field key, label, type):
{schema}

Rules:
- Only use field keys from the schema above for "fields". Never invent keys.
- Only extract what the note states or clearly implies. Do not guess.
- Dates as YYYY-MM-DD. Booleans as true/false. Multi-select as arrays of strings.
- Quote the words that support each extraction in "source".
- confidence: "high" (stated explicitly), "medium" (strongly implied), "low" (weak signal).
- Facts that matter but fit no schema field go in "additionalData" with a snake_case key.
- Summarize the interaction in 1-3 sentences for the note and add up to 5 short tags.
- Output ONLY JSON. No preamble, no markdown fences:
{{"fields": [{{"field": "...", "value": ..., "confidence": "high", "source": "..."}}],
  "additionalData": [{{"key": "...", "label": "...", "value": ..., "confidence": "medium",
                      "source": "...", "category": "..."}}],
  "note": {{"summary": "...", "tags": ["..."]}}}}"""

_ANSWERS_SYSTEM = """You convert a relationship manager's short answers to follow-up
questions into profile field values.

Profile schema (field key, label, type):
{schema}

For each answer, output the normalized value for its field key. Dates as YYYY-MM-DD,
booleans as true/false, multi-select as arrays of strings.
Output ONLY a JSON array, no preamble, no markdown fences:
[{{"field": "...", "value": ..., "confidence": "high", "source": "..."}}]"""

_INTERESTS_SYSTEM = """You identify a wealth management client's interests from an RM's notes.

Two categories:
  personal: hobbies, passions, causes, lifestyle (e.g. "Golf", "Wildlife photography")
  financial: investment themes or planning topics they care about (e.g. "Retirement planning")

Only include interests the note actually mentions. Use short labels.
Output ONLY a JSON array, no preamble, no markdown fences:
[{"category": "personal", "label": "...", "description": "...", "sourceText": "...",
  "confidence": "medium"}]

If there are none, output: []"""


def _strip_fences(text: str) -> str:
    text = (text or "").strip()
    if text.startswith("```"):
        text = text.split("\n", 1)[-1]
    if text.endswith("```"):
        text = text.rsplit("```", 1)[0]
    return text.strip()


def _confidence(raw) -> Confidence:
    try:
        return Confidence(str(raw).lower())
    except ValueError:
        return Confidence.MEDIUM


class ProfileExtractor:
    """Extracts proposed profile changes using an LLM.

    Every entry point has a deterministic fallback, so callers always get a
    usable result even with no provider configured.
    """

    def __init__(
        self,
        provider=None,
        field_registry: FieldRegistry | None = None,
        max_attempts: int = 3,
        max_tokens: int = 2000,
        max_input_chars: int = 8000,
    ):
        self._provider = provider
        self.registry = field_registry or registry
        self.max_tokens = max_tokens
        self.max_input_chars = max_input_chars
        self._call = llm_retry(max_attempts=max_attempts)(self._generate_raw)

    def _get_provider(self):
        if self._provider:
            return self._provider
        from llm.factory import create_cheap_provider

        return create_cheap_provider()

    def _generate_raw(self, system: str, prompt: str) -> str:
        return self._get_provider().generate(
            messages=[{"role": "user", "content": prompt}],
            system=system,
            max_tokens=self.max_tokens,
        )

    def _call_json(self, system: str, prompt: str):
        return json.loads(_strip_fences(self._call(system, prompt)))

    # --- Notes ---

    def extract(
        self, content: str, source: NoteSource = NoteSource.MEETING, customer: Customer | None = None
    ) -> Extraction:
        """Extract field updates, additional data and a note summary from RM input."""
        fallback = Extraction(note_summary=content[:NOTE_FALLBACK_CHARS])
        if not content or not content.strip():
            return fallback

        system = _EXTRACTION_SYSTEM.format(schema=self.registry.extraction_schema())
        prompt = f"Interaction type: {source.value}\n"
        if customer is not None:
            prompt += f"\nCurrent profile:\n{customer.summary()}\n"
        prompt += f"\nRM notes:\n{content[: self.max_input_chars]}"

        try:
            data = self._call_json(system, prompt)
            extraction = self._parse_extraction(data)
        except Exception as e:
            logger.warning("extraction.failed", error=str(e))
            return fallback

        if not extraction.note_summary:
            extraction = extraction.model_copy(update={"note_summary": fallback.note_summary})
        logger.info(
            "extraction.completed",
            fields=len(extraction.fields),
            additional_data=len(extraction.additional_data),
        )
        return extraction

    def _parse_extraction(self, data) -> Extraction:
        if not isinstance(data, dict):
            raise ValueError("extraction response is not a JSON object")

        fields = []
        for item in data.get("fields") or []:
            parsed = self._parse_field(item)
            if parsed is not None:
                fields.append(parsed)

        additional = []
        for item in data.get("additionalData") or []:
            if not isinstance(item, dict) or not item.get("key"):
                continue
            try:
                additional.append(
                    ExtractedAdditionalData(
                        key=str(item["key"]),
                        label=str(item.get("label") or item["key"]),
                        value=item.get("value"),
                        confidence=_confidence(item.get("confidence")),
                        source=str(item.get("source") or ""),
                        category=item.get("category"),
                    )
                )
            except ValidationError:
                continue

        note = data.get("note") or {}
        tags = [str(t) for t in note.get("tags") or [] if t][:5]
        return Extraction(
            fields=tuple(fields),
            additional_data=tuple(additional),
            note_summary=str(note.get("summary") or "").strip(),
            note_tags=tuple(tags),
        )

    def _parse_field(self, item, allowed: set[str] | None = None) -> ExtractedField | None:
        if not isinstance(item, dict):
            return None
        key = item.get("field")
        if key not in self.registry or (allowed is not None and key not in allowed):
            logger.debug("extraction.field_skipped", field=key)
            return None
        value = item.get("value")
        if value is None or value == "":
            return None
        return ExtractedField(
            field=key,
            value=value,
            confidence=_confidence(item.get("confidence")),
            source=str(item.get("source") or ""),
        )

    # --- Follow-up answers ---

    def extract_answers(self, answers: list[NudgeAnswer]) -> list[ExtractedField]:
        """Normalize follow-up answers into field values. Skipped answers are ignored."""
        usable = [a for a in answers if a.is_usable]
        if not usable:
            return []

        fallback = [
            ExtractedField(
                field=a.field_key,
                value=a.answer.strip(),
                confidence=Confidence.HIGH,
                source=ANSWER_SOURCE,
            )
            for a in usable
        ]

        system = _ANSWERS_SYSTEM.format(schema=self.registry.extraction_schema())
        lines = []
        for a in usable:
            definition = self.registry.get(a.field_key)
            label = definition.label if definition else a.field_key
            lines.append(f"- {a.field_key} ({label}): {a.answer.strip()}")
        prompt = "Answers:\n" + "\n".join(lines)

        try:
            data = self._call_json(system, prompt)
            if not isinstance(data, list):
                raise ValueError("answer response is not a JSON array")
        except Exception as e:
            logger.warning("extraction.answers_failed", error=str(e), answers=len(usable))
            return fallback

        allowed = {a.field_key for a in usable}
        parsed = {}
        for item in data:
            field = self._parse_field(item, allowed)
            if field is not None:
                parsed[field.field] = field.model_copy(update={"source": field.source or ANSWER_SOURCE})

        # Answers the model dropped still count
        return [parsed.get(f.field, f) for f in fallback]

    # --- Interests ---

    def extract_interests(self, content: str, customer_name: str = "") -> list[ExtractedInterest]:
        if not content or not content.strip():
            return []
        prompt = f"Client: {customer_name or 'Unknown'}\n\nRM notes:\n{content[: self.max_input_chars]}"
        try:
            data = self._call_json(_INTERESTS_SYSTEM, prompt)
        except Exception as e:
            logger.warning("extraction.interests_failed", error=str(e))
            return []
        if not isinstance(data, list):
            return []

        interests = []
        seen = set()
        for item in data:
            if not isinstance(item, dict):
                continue
            label = str(item.get("label") or "").strip()
            if not label or label.lower() in seen:
                continue
            try:
                interest = ExtractedInterest(
                    category=str(item.get("category") or "").lower(),
                    label=label,
                    description=item.get("description") or None,
                    source_text=str(item.get("sourceText") or item.get("source_text") or ""),
                    confidence=_confidence(item.get("confidence")),
                )
            except ValidationError:
                continue
            seen.add(label.lower())
            interests.append(interest)
        return interests
