"""
Unit tests for raw question record normalization.
"""

import pytest

from trivia_quiz.core.errors import ValidationError
from trivia_quiz.core.record_normalizer import normalize_record, normalize_records, validate_records

from conftest import make_record


class TestNormalizeRecord:
    def test_canonical_record_is_unchanged(self):
        record = make_record(1, explanation="Info")
        assert normalize_record(record) == record

    def test_alternative_spellings_are_mapped(self):
        normalized = normalize_record(
            {
                "question": "  Largest ocean?  ",
                "options": [
                    {"option_key": "a", "label": "Atlantic"},
                    {"id": 2, "value": "Pacific"},
                ],
                "answer": 2,
                "detail": "It is big.",
            }
        )
        assert normalized == {
            "question_text": "Largest ocean?",
            "options": [{"key": "a", "text": "Atlantic"}, {"key": "2", "text": "Pacific"}],
            "correct_answer_key": "2",
            "explanation": "It is big.",
        }

    def test_options_without_key_or_text_are_dropped(self):
        normalized = normalize_record(
            {
                "question_text": "Q?",
                "options": [{"key": "a", "text": "x"}, {"key": "b"}, "not an option", {"key": "", "text": "y"}],
                "correct_answer_key": "a",
            }
        )
        assert normalized["options"] == [{"key": "a", "text": "x"}]

    def test_null_explanation_becomes_empty(self):
        record = make_record(1)
        record["explanation"] = None
        assert normalize_record(record)["explanation"] == ""

    @pytest.mark.parametrize(
        "raw",
        [
            None,
            "a string",
            {"options": []},
            {"question_text": "   ", "options": []},
            {"question_text": "Q?"},
        ],
    )
    def test_unrecognized_shapes_are_rejected(self, raw):
        with pytest.raises(ValidationError):
            normalize_record(raw)


class TestNormalizeRecords:
    def test_skips_unplayable_records(self):
        records = [
            make_record(1),
            make_record(2, correct_key="z"),
            {"question_text": "One option", "options": [{"key": "a", "text": "x"}], "correct_answer_key": "a"},
            {"nonsense": True},
            make_record(3),
        ]
        normalized = normalize_records(records)
        assert [r["question_text"] for r in normalized] == ["Question 1?", "Question 3?"]


class TestValidateRecords:
    def test_reports_problems_per_record(self):
        records = [
            make_record(0),
            make_record(1, correct_key="z"),
            {"question_text": "Q?", "options": [{"key": "a", "text": "x"}, {"text": "no key"}]},
            {"options": []},
        ]
        issues = validate_records(records)

        assert [issue.index for issue in issues] == [1, 2, 3]
        assert "does not match any option key" in issues[0].problems[0]
        assert issues[1].problems == [
            "1 option(s) missing a key or text",
            "Only 1 options (need at least 2)",
            "Missing correct answer key",
        ]
        assert issues[2].preview == ""
