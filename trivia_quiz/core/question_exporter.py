"""Utilities for exporting question banks in the import formats."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
import json
from pathlib import Path
import string
from typing import Any

from trivia_quiz.core.models import Question

_OPTION_LETTERS = string.ascii_uppercase


def save_questions_to_file(file_path: Path, questions: Sequence[Question | Mapping[str, Any]]) -> None:
    """Persist questions as JSON (``.json``) or in the text import format."""

    if not questions:
        raise ValueError("Cannot export an empty question bank.")

    records = [q.to_record() if isinstance(q, Question) else dict(q) for q in questions]
    file_path = Path(file_path).resolve()
    file_path.parent.mkdir(parents=True, exist_ok=True)
    if file_path.suffix.lower() == ".json":
        document = json.dumps(records, ensure_ascii=False, indent=4) + "\n"
    else:
        document = _serialize_records(records)
    file_path.write_text(document, encoding="utf-8")


def _serialize_records(records: list[dict[str, Any]]) -> str:
    blocks = [_serialize_record(record) for record in records]
    return "\n\n---\n\n".join(blocks) + "\n"


def _serialize_record(record: Mapping[str, Any]) -> str:
    lines: list[str] = []

    question_lines = str(record["question_text"]).splitlines() or [""]
    lines.append(f"Q: {question_lines[0]}")
    lines.extend(question_lines[1:])

    options = list(record["options"])
    if len(options) > len(_OPTION_LETTERS):
        raise ValueError("The text format supports at most 26 options per question.")

    # Letters are positional; the correct key is mapped to its option's letter.
    correct_letter = None
    for letter, option in zip(_OPTION_LETTERS, options):
        option_lines = str(option["text"]).splitlines() or [""]
        lines.append(f"{letter}: {option_lines[0]}")
        lines.extend(option_lines[1:])
        if correct_letter is None and option["key"] == record["correct_answer_key"]:
            correct_letter = letter

    if correct_letter is None:
        raise ValueError(f"Correct answer key does not match any option: {record['question_text']!r}")
    lines.append(f"CORRECT: {correct_letter}")

    explanation = str(record.get("explanation") or "").strip()
    if explanation:
        explanation_lines = explanation.splitlines()
        lines.append(f"EXPLANATION: {explanation_lines[0]}")
        lines.extend(explanation_lines[1:])

    return "\n".join(lines)
