"""
Tests for importing, exporting and deduplicating question banks.
"""

import json

import pytest

from trivia_quiz.core.errors import QuestionImportError
from trivia_quiz.core.models import Question
from trivia_quiz.core.question_deduplicator import (
    dedupe_questions,
    jaccard,
    levenshtein,
    normalize_text,
)
from trivia_quiz.core.question_exporter import save_questions_to_file
from trivia_quiz.core.question_importer import load_questions_from_file, parse_question_text

from conftest import make_record

SAMPLE_TEXT = """
Q: Which planet is known as the red planet?
A: Venus
B: Mars
C: Jupiter
CORRECT: B
EXPLANATION: Iron oxide on its surface
gives Mars its colour.

---

Q: What is 2 + 2?
Spread over two lines.
A: 3
B: 4
CORRECT: b
"""


class TestQuestionImporter:
    def test_parses_blocks_into_canonical_records(self):
        records = parse_question_text(SAMPLE_TEXT)

        assert len(records) == 2
        assert records[0] == {
            "question_text": "Which planet is known as the red planet?",
            "options": [
                {"key": "a", "text": "Venus"},
                {"key": "b", "text": "Mars"},
                {"key": "c", "text": "Jupiter"},
            ],
            "correct_answer_key": "b",
            "explanation": "Iron oxide on its surface\ngives Mars its colour.",
        }
        assert records[1]["question_text"] == "What is 2 + 2?\nSpread over two lines."
        assert records[1]["correct_answer_key"] == "b"
        assert records[1]["explanation"] == ""

    def test_imported_records_build_questions(self):
        questions = [Question.from_external(record) for record in parse_question_text(SAMPLE_TEXT)]
        assert questions[0].is_correct("b")

    @pytest.mark.parametrize(
        "text, message",
        [
            ("A: one\nB: two\nCORRECT: A", "Question text missing"),
            ("Q: Only one?\nA: one\nCORRECT: A", "at least 2 options"),
            ("Q: No answer?\nA: one\nB: two", "CORRECT is required"),
            ("Q: Wrong answer?\nA: one\nB: two\nCORRECT: D", "CORRECT must name one of the options"),
            ("Q: Twice?\nA: one\nA: two\nCORRECT: A", "defined twice"),
            ("stray text\nQ: Q?\nA: one\nB: two\nCORRECT: A", "outside of a known section"),
        ],
    )
    def test_malformed_blocks_raise(self, text, message):
        with pytest.raises(QuestionImportError, match=message):
            parse_question_text(text)

    def test_load_json_file_normalizes_records(self, tmp_path):
        path = tmp_path / "bank.json"
        path.write_text(json.dumps([{"question": "Q?", "options": [{"key": "a", "text": "x"}], "answer": "a"}]))
        assert load_questions_from_file(path)[0]["question_text"] == "Q?"

    def test_load_invalid_json_raises(self, tmp_path):
        path = tmp_path / "bank.json"
        path.write_text("[{")
        with pytest.raises(QuestionImportError, match="Invalid JSON"):
            load_questions_from_file(path)

    def test_load_empty_file_raises(self, tmp_path):
        path = tmp_path / "bank.txt"
        path.write_text("\n\n")
        with pytest.raises(QuestionImportError, match="did not contain any questions"):
            load_questions_from_file(path)


class TestQuestionExporter:
    def test_text_export_can_be_imported_again(self, tmp_path):
        records = parse_question_text(SAMPLE_TEXT)
        path = tmp_path / "out" / "bank.txt"
        save_questions_to_file(path, records)
        assert load_questions_from_file(path) == records

    def test_export_maps_correct_key_to_letter(self, tmp_path):
        question = Question.from_external(
            {
                "question_text": "Pick the second",
                "options": [{"key": "x1", "text": "first"}, {"key": "x2", "text": "second"}],
                "correct_answer_key": "x2",
            }
        )
        path = tmp_path / "bank.txt"
        save_questions_to_file(path, [question])
        assert "CORRECT: B" in path.read_text()

    def test_json_export(self, tmp_path):
        path = tmp_path / "bank.json"
        save_questions_to_file(path, [make_record(1)])
        assert json.loads(path.read_text()) == [make_record(1)]

    def test_empty_export_is_rejected(self, tmp_path):
        with pytest.raises(ValueError):
            save_questions_to_file(tmp_path / "bank.txt", [])


class TestQuestionDeduplicator:
    def test_normalize_text_strips_case_accents_and_punctuation(self):
        assert normalize_text("  ¿Qué   es ÉSTO?! ") == "que es esto"
        assert normalize_text(None) == ""

    def test_similarity_helpers(self):
        assert levenshtein("kitten", "sitting") == 3
        assert levenshtein("", "abc") == 3
        assert jaccard([], []) == 1.0
        assert jaccard(["ab"], []) == 0.0
        assert jaccard(["ab", "cd"], ["ab", "ef"]) == pytest.approx(1 / 3)

    def test_exact_and_near_duplicates_keep_smallest_id(self):
        records = [
            {"id": 3, "question": "What is the capital of France?"},
            {"id": 1, "question": "what is the capital of france"},
            {"id": 2, "question": "What is the capital of Frances?"},
            {"id": 4, "question": "Which river crosses Paris?"},
        ]
        result = dedupe_questions(records)

        assert [record["id"] for record in result.kept] == [1, 4]
        reasons = {removal.removed_id: (removal.kept_id, removal.reason) for removal in result.removed}
        assert reasons[3] == (1, "exact")
        assert reasons[2][0] == 1
        assert reasons[2][1].startswith("near(")

    def test_distinct_questions_are_kept(self):
        records = [
            {"id": 1, "question_text": "Which planet is known as the red planet?"},
            {"id": 2, "question_text": "What is the chemical symbol for gold?"},
            {"id": 3, "question_text": "Which ocean is the largest?"},
        ]
        result = dedupe_questions(records)
        assert len(result.kept) == 3
        assert result.removed == []

    def test_short_numbered_texts_count_as_near_duplicates(self):
        # Single-character tokens are ignored, so these only differ by one digit.
        result = dedupe_questions([make_record(1), make_record(2)])
        assert len(result.kept) == 1
