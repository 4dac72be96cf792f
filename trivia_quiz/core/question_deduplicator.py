"""Detection of exact and near-duplicate questions in a bank.

Two questions are duplicates when their normalized texts are equal (lower
case, no diacritics or punctuation, collapsed spaces) or when they are close
enough by token Jaccard similarity or normalized Levenshtein similarity. The
entry with the smallest ``id`` is kept.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
import math
import re
from typing import Any
import unicodedata

DEFAULT_JACCARD_THRESHOLD = 0.88
DEFAULT_LEVENSHTEIN_THRESHOLD = 0.90

_NON_WORD = re.compile(r"[\W_]+")


@dataclass(frozen=True, slots=True)
class Removal:
    removed_id: Any
    kept_id: Any
    reason: str


@dataclass(slots=True)
class DedupeResult:
    kept: list[dict[str, Any]] = field(default_factory=list)
    removed: list[Removal] = field(default_factory=list)


def normalize_text(text: object) -> str:
    if not isinstance(text, str):
        return ""
    decomposed = unicodedata.normalize("NFD", text.lower())
    stripped = "".join(char for char in decomposed if not unicodedata.combining(char))
    return " ".join(_NON_WORD.sub(" ", stripped).split())


def tokenize(text: object) -> list[str]:
    return [token for token in normalize_text(text).split(" ") if len(token) > 1]


def jaccard(a_tokens: Iterable[str], b_tokens: Iterable[str]) -> float:
    a_set, b_set = set(a_tokens), set(b_tokens)
    if not a_set and not b_set:
        return 1.0
    if not a_set or not b_set:
        return 0.0
    return len(a_set & b_set) / len(a_set | b_set)


def levenshtein(a: str, b: str) -> int:
    if not a:
        return len(b)
    if not b:
        return len(a)
    previous = list(range(len(b) + 1))
    for i, a_char in enumerate(a, start=1):
        current = [i]
        for j, b_char in enumerate(b, start=1):
            cost = 0 if a_char == b_char else 1
            current.append(min(previous[j] + 1, current[j - 1] + 1, previous[j - 1] + cost))
        previous = current
    return previous[-1]


def levenshtein_similarity(a: object, b: object) -> float:
    a_norm, b_norm = normalize_text(a), normalize_text(b)
    longest = max(len(a_norm), len(b_norm))
    if longest == 0:
        return 1.0
    return 1 - levenshtein(a_norm, b_norm) / longest


def _question_text(record: Mapping[str, Any]) -> str:
    return record.get("question_text") or record.get("question") or ""


def _sort_id(record: Mapping[str, Any]) -> float:
    value = record.get("id")
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value
    return math.inf


def dedupe_questions(
    records: Iterable[Mapping[str, Any]],
    jaccard_threshold: float = DEFAULT_JACCARD_THRESHOLD,
    levenshtein_threshold: float = DEFAULT_LEVENSHTEIN_THRESHOLD,
) -> DedupeResult:
    result = DedupeResult()
    keepers: list[tuple[str, list[str], dict[str, Any]]] = []

    # Sorted by id, so the first keeper of a duplicate group always has the smallest id.
    for record in sorted((dict(r) for r in records), key=_sort_id):
        text = _question_text(record)
        norm = normalize_text(text)
        tokens = tokenize(text)

        duplicate_of = None
        reason = ""
        for kept_norm, kept_tokens, kept in keepers:
            if kept_norm == norm:
                duplicate_of, reason = kept, "exact"
                break
            similarity = jaccard(kept_tokens, tokens)
            lev = levenshtein_similarity(_question_text(kept), text)
            if similarity >= jaccard_threshold or lev >= levenshtein_threshold:
                duplicate_of, reason = kept, f"near(j={similarity:.2f},l={lev:.2f})"
                break

        if duplicate_of is None:
            keepers.append((norm, tokens, record))
        else:
            result.removed.append(Removal(record.get("id"), duplicate_of.get("id"), reason))

    result.kept = [record for _, _, record in keepers]
    return result
