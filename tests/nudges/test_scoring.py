"""Tests for empty-field scoring."""

import pytest

from customers.sections import PROFILE_SECTIONS
from nudges.scoring import calculate_field_score, score_empty_fields
from observability import metrics
from shared_types import Priority

TOTAL_FIELDS = sum(len(s.fields) for s in PROFILE_SECTIONS)


class TestCalculateFieldScore:
    @pytest.mark.parametrize(
        "priority,completeness,expected",
        [
            (Priority.HIGH, 100, 6.0),
            (Priority.HIGH, 0, 3.0),
            (Priority.MEDIUM, 50, 2.75),
            (Priority.LOW, 0, 1.0),
            (Priority.LOW, 100, 4.0),
        ],
    )
    def test_formula(self, priority, completeness, expected):
        assert calculate_field_score(priority, completeness) == pytest.approx(expected)

    def test_bonus_is_quadratic(self):
        half = calculate_field_score(Priority.LOW, 50) - 1
        full = calculate_field_score(Priority.LOW, 100) - 1
        assert full == pytest.approx(half * 4)


class TestScoreEmptyFields:
    def test_empty_profile_scores_everything(self):
        scored = score_empty_fields({})
        assert len(scored) == TOTAL_FIELDS
        assert metrics.get("nudges.fields_scored") == TOTAL_FIELDS

    def test_sorted_descending(self):
        scores = [s.score for s in score_empty_fields({"full_name": "A", "dob": "1980-01-01"})]
        assert scores == sorted(scores, reverse=True)

    def test_ties_keep_declaration_order(self):
        scored = score_empty_fields({})
        high = [s.field_key for s in scored if s.priority == Priority.HIGH]
        declared = [f.key for s in PROFILE_SECTIONS for f in s.fields if f.priority == Priority.HIGH]
        assert high == declared
        assert scored[0].field_key == "goals_summary"

    def test_filled_fields_excluded(self):
        keys = {s.field_key for s in score_empty_fields({"full_name": "A", "dependents_count": 0})}
        assert "full_name" not in keys
        assert "dependents_count" not in keys
        assert "dob" in keys

    def test_blank_values_count_as_empty(self):
        keys = {s.field_key for s in score_empty_fields({"full_name": "  ", "product_preference": []})}
        assert {"full_name", "product_preference"} <= keys

    def test_low_priority_in_nearly_complete_section_outranks_medium(self):
        values = {
            "occupation_type": "salaried",
            "industry": "it",
            "employer_business_name": "Acme",
            "work_location": "Pune",
        }
        scored = score_empty_fields(values)
        job_title = next(s for s in scored if s.field_key == "job_title")
        assert job_title.section_completeness == 80
        assert job_title.score == pytest.approx(1 + 0.64 * 3)
        medium = next(s for s in scored if s.field_key == "goal_priority_style")
        assert job_title.score > medium.score

    def test_deterministic(self):
        values = {"full_name": "A", "risk_bucket": "moderate"}
        assert score_empty_fields(values) == score_empty_fields(values)
