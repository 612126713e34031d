"""Tests for ProfileExtractor: notes, follow-up answers and interests."""

from unittest.mock import MagicMock

from nudges.models import NudgeAnswer
from proposals.extractor import ANSWER_SOURCE, ProfileExtractor
from shared_types import Confidence, InterestCategory, NoteSource


class TestExtract:
    def test_parses_response(self, json_llm, customer):
        provider = json_llm(
            {
                "fields": [
                    {"field": "risk_bucket", "value": "moderate", "confidence": "HIGH", "source": "moderate"},
                    {"field": "shoe_size", "value": 9},
                    {"field": "dob", "value": ""},
                    {"field": "city_of_residence", "value": "Mumbai", "confidence": "sure"},
                ],
                "additionalData": [
                    {"key": "pet_name", "label": "Pet", "value": "Bruno", "category": "family"},
                    {"label": "no key"},
                ],
                "note": {"summary": "Discussed risk.", "tags": ["a", "b", "c", "d", "e", "f"]},
            }
        )
        extraction = ProfileExtractor(provider=provider, max_attempts=1).extract(
            "Met Anita. Moderate risk, moved to Mumbai.", NoteSource.MEETING, customer
        )

        assert [(f.field, f.value) for f in extraction.fields] == [
            ("risk_bucket", "moderate"),
            ("city_of_residence", "Mumbai"),
        ]
        assert extraction.fields[0].confidence == Confidence.HIGH
        assert extraction.fields[1].confidence == Confidence.MEDIUM
        assert [d.key for d in extraction.additional_data] == ["pet_name"]
        assert extraction.additional_data[0].category == "family"
        assert extraction.note_summary == "Discussed risk."
        assert extraction.note_tags == ("a", "b", "c", "d", "e")

    def test_prompt_includes_profile_and_source(self, json_llm, customer):
        provider = json_llm({"fields": []})
        ProfileExtractor(provider=provider, max_attempts=1).extract("note text", NoteSource.CALL, customer)
        kwargs = provider.generate.call_args.kwargs
        prompt = kwargs["messages"][0]["content"]
        assert "Interaction type: call" in prompt
        assert "Name: Anita Rao" in prompt
        assert "note text" in prompt
        assert "risk_bucket (Risk Bucket)" in kwargs["system"]

    def test_input_truncated(self, json_llm):
        provider = json_llm({"fields": []})
        ProfileExtractor(provider=provider, max_attempts=1, max_input_chars=10).extract("0123456789ABCDEF")
        prompt = provider.generate.call_args.kwargs["messages"][0]["content"]
        assert "0123456789" in prompt
        assert "ABCDEF" not in prompt

    def test_failure_falls_back_to_content(self, failing_provider):
        content = "y" * 250
        extraction = ProfileExtractor(provider=failing_provider, max_attempts=1).extract(content)
        assert extraction.fields == ()
        assert extraction.note_summary == "y" * 200

    def test_missing_summary_falls_back(self, json_llm):
        extraction = ProfileExtractor(provider=json_llm({"fields": []}), max_attempts=1).extract("Short call")
        assert extraction.note_summary == "Short call"

    def test_non_object_falls_back(self, json_llm):
        extraction = ProfileExtractor(provider=json_llm([1, 2]), max_attempts=1).extract("Short call")
        assert extraction.note_summary == "Short call"

    def test_blank_content_skips_provider(self):
        provider = MagicMock()
        extraction = ProfileExtractor(provider=provider).extract("   ")
        assert extraction.fields == ()
        provider.generate.assert_not_called()


class TestExtractAnswers:
    def test_model_normalizes_and_missing_answers_kept(self, json_llm):
        provider = json_llm(
            [
                {"field": "dob", "value": "1984-03-12", "confidence": "high"},
                {"field": "city_of_residence", "value": "Delhi"},
            ]
        )
        answers = [
            NudgeAnswer("nudge-risk_bucket", "risk_bucket", "Moderate"),
            NudgeAnswer("nudge-dob", "dob", "12 March 1984"),
            NudgeAnswer("nudge-city_of_residence", "city_of_residence", None, skipped=True),
        ]
        fields = ProfileExtractor(provider=provider, max_attempts=1).extract_answers(answers)

        assert [(f.field, f.value) for f in fields] == [("risk_bucket", "Moderate"), ("dob", "1984-03-12")]
        assert all(f.source == ANSWER_SOURCE for f in fields)
        assert fields[0].confidence == Confidence.HIGH

    def test_failure_uses_raw_answers(self, failing_provider):
        answers = [NudgeAnswer("q1", "risk_bucket", "  Moderate ")]
        fields = ProfileExtractor(provider=failing_provider, max_attempts=1).extract_answers(answers)
        assert len(fields) == 1
        assert fields[0].value == "Moderate"
        assert fields[0].confidence == Confidence.HIGH
        assert fields[0].source == ANSWER_SOURCE

    def test_nothing_usable(self):
        provider = MagicMock()
        answers = [NudgeAnswer("q1", "risk_bucket", "", skipped=False), NudgeAnswer("q2", "dob", "x", skipped=True)]
        assert ProfileExtractor(provider=provider).extract_answers(answers) == []
        provider.generate.assert_not_called()


class TestExtractInterests:
    def test_parses_and_dedupes(self, json_llm):
        provider = json_llm(
            [
                {"category": "personal", "label": "Golf", "sourceText": "plays golf"},
                {"category": "PERSONAL", "label": "golf"},
                {"category": "hobby", "label": "Chess"},
                {"category": "financial", "label": "Retirement planning", "confidence": "high"},
                "junk",
                {"category": "personal", "label": ""},
            ]
        )
        interests = ProfileExtractor(provider=provider, max_attempts=1).extract_interests("notes", "Anita")
        assert [(i.category, i.label) for i in interests] == [
            (InterestCategory.PERSONAL, "Golf"),
            (InterestCategory.FINANCIAL, "Retirement planning"),
        ]
        assert interests[0].source_text == "plays golf"
        assert interests[1].confidence == Confidence.HIGH

    def test_failure_returns_empty(self, failing_provider):
        assert ProfileExtractor(provider=failing_provider, max_attempts=1).extract_interests("notes") == []

    def test_non_list_returns_empty(self, json_llm):
        extractor = ProfileExtractor(provider=json_llm({"label": "Golf"}), max_attempts=1)
        assert extractor.extract_interests("notes") == []
