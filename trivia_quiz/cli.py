"""Command line tools for maintaining question banks.

    trivia-quiz-tools import questions.txt            # add to the JSON bank
    trivia-quiz-tools export backup.txt               # bank -> text format
    trivia-quiz-tools dedupe --write                  # drop duplicate questions
    trivia-quiz-tools validate                        # report unplayable records

The bank defaults to ``questions.json`` in ``TRIVIA_QUIZ_DATA_DIR``.
"""

from __future__ import annotations

import argparse
from collections.abc import Sequence
import logging
from pathlib import Path

from trivia_quiz.core.errors import QuestionImportError
from trivia_quiz.core.question_deduplicator import (
    DEFAULT_JACCARD_THRESHOLD,
    DEFAULT_LEVENSHTEIN_THRESHOLD,
    dedupe_questions,
)
from trivia_quiz.core.question_exporter import save_questions_to_file
from trivia_quiz.core.question_importer import load_questions_from_file
from trivia_quiz.core.record_normalizer import validate_records
from trivia_quiz.core.services.question_repository import read_record_list
from trivia_quiz.utils.app_settings import AppSettings
from trivia_quiz.utils.logging_config import configure_logging

logger = logging.getLogger(__name__)


def _import(args: argparse.Namespace) -> int:
    try:
        records = load_questions_from_file(args.source)
    except (OSError, QuestionImportError) as exc:
        logger.error("Could not import %s: %s", args.source, exc)
        return 1

    existing = read_record_list(args.bank) if args.bank.exists() and not args.replace else []
    save_questions_to_file(args.bank, [*existing, *records])
    print(f"Imported {len(records)} questions into {args.bank} ({len(existing) + len(records)} total).")
    return 0


def _export(args: argparse.Namespace) -> int:
    records = read_record_list(args.bank)
    if not records:
        logger.error("%s has no questions to export.", args.bank)
        return 1
    save_questions_to_file(args.output, records)
    print(f"Exported {len(records)} questions to {args.output}.")
    return 0


def _dedupe(args: argparse.Namespace) -> int:
    records = read_record_list(args.bank)
    result = dedupe_questions(records, args.jaccard, args.levenshtein)
    for removal in result.removed:
        print(f"- id {removal.removed_id} duplicates id {removal.kept_id}: {removal.reason}")
    print(f"{len(result.kept)} kept, {len(result.removed)} removed.")

    if args.write and result.removed:
        save_questions_to_file(args.bank, result.kept)
        print(f"Wrote {args.bank}.")
    return 0


def _validate(args: argparse.Namespace) -> int:
    records = read_record_list(args.bank)
    issues = validate_records(records)
    for issue in issues:
        print(f"#{issue.index} {issue.preview!r}: {'; '.join(issue.problems)}")
    print(f"{len(records) - len(issues)}/{len(records)} questions are playable.")
    return 1 if issues else 0


def build_parser(default_bank: Path) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="trivia-quiz-tools", description="Maintain trivia question banks")
    parser.add_argument("--bank", type=Path, default=default_bank, help="JSON question bank (default: %(default)s)")
    parser.add_argument("--log-level", default="WARNING")
    commands = parser.add_subparsers(dest="command", required=True)

    import_parser = commands.add_parser("import", help="Add questions from a .txt or .json file to the bank")
    import_parser.add_argument("source", type=Path)
    import_parser.add_argument("--replace", action="store_true", help="Overwrite the bank instead of appending")
    import_parser.set_defaults(handler=_import)

    export_parser = commands.add_parser("export", help="Write the bank as .txt or .json")
    export_parser.add_argument("output", type=Path)
    export_parser.set_defaults(handler=_export)

    dedupe_parser = commands.add_parser("dedupe", help="Report exact and near-duplicate questions")
    dedupe_parser.add_argument("--jaccard", type=float, default=DEFAULT_JACCARD_THRESHOLD)
    dedupe_parser.add_argument("--levenshtein", type=float, default=DEFAULT_LEVENSHTEIN_THRESHOLD)
    dedupe_parser.add_argument("--write", action="store_true", help="Rewrite the bank without duplicates")
    dedupe_parser.set_defaults(handler=_dedupe)

    validate_parser = commands.add_parser("validate", help="List records that cannot be played")
    validate_parser.set_defaults(handler=_validate)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser(AppSettings.from_environment().questions_path)
    args = parser.parse_args(argv)
    configure_logging(args.log_level)
    try:
        return args.handler(args)
    except (OSError, ValueError) as exc:
        logger.error("%s failed: %s", args.command, exc)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
