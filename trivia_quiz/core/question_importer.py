"""Utilities for importing question banks from text or JSON files.

Text format (repeat blocks separated by blank lines or '---'):

    Q: Question text. Additional lines until the next marker are treated
       as part of the question.
    A: First option text
    B: Second option text
    C: ...                 (any number of lettered options, at least two)
    CORRECT: B
    EXPLANATION: Optional text shown after answering.

Example:

    Q: Which planet is known as the red planet?
    A: Venus
    B: Mars
    C: Jupiter
    CORRECT: B
    EXPLANATION: Iron oxide on its surface gives Mars its colour.

Option letters become the option keys in lower case ("a", "b", ...), matching
the canonical record shape the question repositories serve.
"""

from __future__ import annotations

import json
from pathlib import Path
import string
from typing import Any

from trivia_quiz.constants.quiz_constants import MIN_OPTIONS_PER_QUESTION
from trivia_quiz.core.errors import QuestionImportError, ValidationError
from trivia_quiz.core.record_normalizer import normalize_record

_OPTION_LETTERS = string.ascii_uppercase


def load_questions_from_file(file_path: Path) -> list[dict[str, Any]]:
    """Read a ``.txt`` or ``.json`` question bank into canonical records."""
    file_path = Path(file_path)
    text = file_path.read_text(encoding="utf-8")
    if file_path.suffix.lower() == ".json":
        records = _parse_json_text(text)
    else:
        records = parse_question_text(text)
    if not records:
        raise QuestionImportError(f"{file_path.name} did not contain any questions.")
    return records


def _parse_json_text(text: str) -> list[dict[str, Any]]:
    try:
        document = json.loads(text)
    except json.JSONDecodeError as exc:
        raise QuestionImportError(f"Invalid JSON: {exc.msg} (line {exc.lineno}).") from exc
    if isinstance(document, dict) and isinstance(document.get("questions"), list):
        document = document["questions"]
    if not isinstance(document, list):
        raise QuestionImportError("JSON question bank must be a list of questions.")

    records: list[dict[str, Any]] = []
    for index, raw in enumerate(document, start=1):
        try:
            records.append(normalize_record(raw))
        except ValidationError as exc:
            raise QuestionImportError(f"Question {index}: {exc}") from exc
    return records


def parse_question_text(text: str) -> list[dict[str, Any]]:
    blocks: list[str] = []
    current_block: list[str] = []
    for raw_line in text.splitlines():
        stripped = raw_line.strip()
        if stripped == "---":
            if current_block:
                blocks.append("\n".join(current_block).strip())
                current_block = []
            continue
        if stripped:
            current_block.append(raw_line)
        elif current_block:
            blocks.append("\n".join(current_block).strip())
            current_block = []
    if current_block:
        blocks.append("\n".join(current_block).strip())

    return [_parse_block(block) for block in blocks if block]


def _parse_block(block: str) -> dict[str, Any]:
    question_lines: list[str] = []
    explanation_lines: list[str] = []
    options: dict[str, str] = {}
    correct_letter: str | None = None
    current_section: str | None = None

    for raw_line in block.splitlines():
        line = raw_line.strip()
        if not line:
            continue

        upper = line.upper()
        if upper.startswith("Q:"):
            question_lines = [line[2:].strip()]
            current_section = "Q"
            continue

        if upper.startswith("CORRECT:"):
            correct_letter = line.split(":", 1)[1].strip().upper()
            current_section = None
            continue

        if upper.startswith("EXPLANATION:"):
            explanation_lines = [line.split(":", 1)[1].strip()]
            current_section = "EXPLANATION"
            continue

        if len(line) > 2 and line[0].upper() in _OPTION_LETTERS and line[1] == ":":
            letter = line[0].upper()
            if letter in options:
                raise QuestionImportError(f"Option {letter} is defined twice.")
            options[letter] = line[2:].strip()
            current_section = letter
            continue

        if current_section == "Q":
            question_lines.append(line)
        elif current_section == "EXPLANATION":
            explanation_lines.append(line)
        elif current_section in options:
            options[current_section] = options[current_section] + f"\n{line}"
        else:
            raise QuestionImportError(f"Encountered text outside of a known section: '{line}'.")

    question_text = "\n".join(question_lines).strip()
    if not question_text:
        raise QuestionImportError("Question text missing (Q: ...)")
    if len(options) < MIN_OPTIONS_PER_QUESTION:
        raise QuestionImportError(f"Each question must define at least {MIN_OPTIONS_PER_QUESTION} options.")
    if any(not option_text.strip() for option_text in options.values()):
        raise QuestionImportError("Option text cannot be empty.")
    if correct_letter is None:
        raise QuestionImportError("CORRECT is required for every question.")
    if correct_letter not in options:
        raise QuestionImportError(f"CORRECT must name one of the options ({', '.join(options)}).")

    return {
        "question_text": question_text,
        "options": [{"key": letter.lower(), "text": text.strip()} for letter, text in options.items()],
        "correct_answer_key": correct_letter.lower(),
        "explanation": "\n".join(explanation_lines).strip(),
    }
