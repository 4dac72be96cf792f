"""Normalization of raw question records coming from different backends.

Question banks exported from Firestore, Supabase or hand-written JSON files
disagree on field names (``question`` vs ``question_text``,
``correctAnswerKey`` vs ``correct_answer_key`` vs ``answer``...). The pydantic
models below accept every known spelling and produce the canonical shape::

    {
        "question_text": "...",
        "options": [{"key": "a", "text": "..."}, ...],
        "correct_answer_key": "a",
        "explanation": "...",
    }

Records whose shape cannot be recognized are rejected, never guessed.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
import logging
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from trivia_quiz.constants.quiz_constants import MIN_OPTIONS_PER_QUESTION
from trivia_quiz.core.errors import ValidationError

logger = logging.getLogger(__name__)


def _as_clean_string(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        return value.strip()
    return value


class RawOption(BaseModel):
    """An option as stored by any of the supported backends."""

    model_config = ConfigDict(extra="ignore")

    key: str = Field(validation_alias=AliasChoices("key", "option_key", "id"))
    text: str = Field(validation_alias=AliasChoices("text", "label", "value"))

    @field_validator("key", "text", mode="before")
    @classmethod
    def clean_strings(cls, value: Any) -> Any:
        return _as_clean_string(value)


class RawQuestionRecord(BaseModel):
    """A question record in any of the supported field-name variants."""

    model_config = ConfigDict(extra="ignore")

    question_text: str = Field(
        validation_alias=AliasChoices("question_text", "question", "text"),
    )
    options: list[Any]
    correct_answer_key: str = Field(
        default="",
        validation_alias=AliasChoices("correct_answer_key", "correctAnswerKey", "answer"),
    )
    explanation: str = Field(
        default="",
        validation_alias=AliasChoices("explanation", "detail"),
    )

    @field_validator("question_text", "correct_answer_key", "explanation", mode="before")
    @classmethod
    def clean_strings(cls, value: Any) -> Any:
        return _as_clean_string(value)


def _parse_options(raw_options: Iterable[Any]) -> list[dict[str, str]]:
    options: list[dict[str, str]] = []
    for raw_option in raw_options:
        if not isinstance(raw_option, Mapping):
            continue
        try:
            option = RawOption.model_validate(raw_option)
        except PydanticValidationError:
            continue
        if option.key and option.text:
            options.append({"key": option.key, "text": option.text})
    return options


def normalize_record(raw: object) -> dict[str, Any]:
    """Map a raw record onto canonical question constructor arguments."""
    if not isinstance(raw, Mapping):
        raise ValidationError("Question record must be a mapping.")
    try:
        record = RawQuestionRecord.model_validate(raw)
    except PydanticValidationError as exc:
        raise ValidationError(f"Unrecognized question record: {exc.error_count()} error(s).") from exc

    if not record.question_text:
        raise ValidationError("Unrecognized question record: question text is missing.")

    return {
        "question_text": record.question_text,
        "options": _parse_options(record.options),
        "correct_answer_key": record.correct_answer_key,
        "explanation": record.explanation,
    }


def _is_playable(record: Mapping[str, Any]) -> bool:
    options = record["options"]
    if len(options) < MIN_OPTIONS_PER_QUESTION or not record["correct_answer_key"]:
        return False
    return any(option["key"] == record["correct_answer_key"] for option in options)


def normalize_records(raw_records: Iterable[object]) -> list[dict[str, Any]]:
    """Normalize a list of records, skipping the ones that are not playable."""
    normalized: list[dict[str, Any]] = []
    for index, raw in enumerate(raw_records):
        try:
            record = normalize_record(raw)
        except ValidationError as exc:
            logger.warning("Skipping question record %d: %s", index, exc)
            continue
        if not _is_playable(record):
            logger.warning("Skipping question record %d: options or answer key are invalid", index)
            continue
        normalized.append(record)
    return normalized


@dataclass(slots=True)
class RecordIssue:
    """Problems found in one raw record of a question bank."""

    index: int
    preview: str
    problems: list[str] = field(default_factory=list)


def validate_records(raw_records: Iterable[object]) -> list[RecordIssue]:
    """Report every record of a question bank that would not be playable."""
    issues: list[RecordIssue] = []
    for index, raw in enumerate(raw_records):
        preview = ""
        problems: list[str] = []
        try:
            record = normalize_record(raw)
        except ValidationError as exc:
            problems.append(str(exc))
        else:
            preview = record["question_text"][:60]
            raw_options = raw.get("options") if isinstance(raw, Mapping) else None
            dropped = len(raw_options or []) - len(record["options"])
            if dropped:
                problems.append(f"{dropped} option(s) missing a key or text")
            if len(record["options"]) < MIN_OPTIONS_PER_QUESTION:
                problems.append(
                    f"Only {len(record['options'])} options (need at least {MIN_OPTIONS_PER_QUESTION})"
                )
            if not record["correct_answer_key"]:
                problems.append("Missing correct answer key")
            elif not any(o["key"] == record["correct_answer_key"] for o in record["options"]):
                problems.append(
                    f"Correct answer key '{record['correct_answer_key']}' does not match any option key"
                )
        if problems:
            issues.append(RecordIssue(index=index, preview=preview, problems=problems))
    return issues
