"""
Tests for the QuizEngine state machine and question selection.
"""

import logging
import random

import pytest

from trivia_quiz.core.errors import InvalidStateError, ValidationError
from trivia_quiz.core.models import AppState
from trivia_quiz.core.quiz_engine import QuizEngine
from trivia_quiz.core.services.question_repository import InMemoryQuestionRepository
from trivia_quiz.core.services.score_repository import InMemoryScoreRepository
from trivia_quiz.core.services.seen_questions_storage import InMemorySeenQuestionsStorage

from conftest import make_question, make_record


def play_through(engine: QuizEngine, key: str = "a") -> list:
    results = []
    while engine.is_playing():
        results.append(engine.answer_current_question(key))
    return results


class TestEngineLifecycle:
    """State transitions IDLE -> READY -> PLAYING -> COMPLETE -> READY."""

    def test_starts_idle(self, engine):
        assert engine.state is AppState.IDLE
        assert engine.is_idle()
        assert engine.current_question() is None

    def test_start_before_load_fails(self, engine):
        with pytest.raises(InvalidStateError, match="No questions available"):
            engine.start(player_name="Ana", question_count=3)

    def test_full_round(self, engine):
        engine.load_questions([make_record(n) for n in range(3)])
        assert engine.is_ready()

        started = engine.start(player_name="Ana", question_count=3)
        assert engine.is_playing()
        assert started.question is engine.current_question()
        assert started.progress.current == 1

        results = play_through(engine)
        assert [r.is_session_complete for r in results] == [False, False, True]
        assert engine.is_complete()
        assert engine.current_question() is None

        engine.restart()
        assert engine.is_ready()
        assert engine.results().score.total == 0
        assert len(engine.question_pool) == 3

    def test_start_again_from_complete(self, engine, records):
        engine.load_questions(records)
        engine.start(player_name="Ana", question_count=2)
        play_through(engine)

        engine.start(player_name="Bo", question_count=2)
        assert engine.is_playing()
        assert engine.results().player_name == "Bo"

    def test_start_while_playing_fails_naming_state(self, engine, records):
        engine.load_questions(records)
        engine.start(player_name="Ana", question_count=2)
        with pytest.raises(InvalidStateError, match="PLAYING") as exc_info:
            engine.start(player_name="Ana", question_count=2)
        assert exc_info.value.state is AppState.PLAYING

    def test_start_with_too_many_questions_fails(self, engine, records):
        engine.load_questions(records)
        with pytest.raises(InvalidStateError, match="Only 5 questions available"):
            engine.start(player_name="Ana", question_count=6)
        assert engine.is_ready()

    def test_start_with_zero_questions_fails(self, engine, records):
        engine.load_questions(records)
        with pytest.raises(ValidationError):
            engine.start(player_name="Ana", question_count=0)

    def test_start_with_blank_name_fails_and_stays_ready(self, engine, records):
        engine.load_questions(records)
        with pytest.raises(ValidationError):
            engine.start(player_name="  ", question_count=2)
        assert engine.is_ready()

    def test_load_with_empty_pool_then_start_fails(self, engine):
        engine.load_questions([])
        assert engine.is_ready()
        with pytest.raises(InvalidStateError, match="No questions available"):
            engine.start(player_name="Ana")

    def test_answer_when_not_playing_fails(self, engine, records):
        with pytest.raises(InvalidStateError):
            engine.answer_current_question("a")
        engine.load_questions(records)
        with pytest.raises(InvalidStateError):
            engine.answer_current_question("a")

    def test_restart_only_from_complete(self, engine, records):
        with pytest.raises(InvalidStateError, match="IDLE"):
            engine.restart()
        engine.load_questions(records)
        engine.start(player_name="Ana", question_count=1)
        with pytest.raises(InvalidStateError, match="PLAYING"):
            engine.restart()


class TestEngineLoading:
    def test_second_load_is_ignored_with_warning(self, engine, records, caplog):
        engine.load_questions(records)
        with caplog.at_level(logging.WARNING):
            engine.load_questions([make_record(99)])
        assert len(engine.question_pool) == 5
        assert "already loaded" in caplog.text

    def test_pool_entries_get_stable_ids(self, engine):
        engine.load_questions([make_question(10), make_record(11)])
        assert [q.question_id for q in engine.question_pool] == [0, 1]
        assert engine.question_pool[0].text == "Question 10?"

    def test_invalid_record_raises_and_stays_idle(self, engine):
        with pytest.raises(ValidationError):
            engine.load_questions([make_record(1), make_record(2, correct_key="x")])
        assert engine.is_idle()

    def test_load_from_repository(self, score_repository):
        repository = InMemoryQuestionRepository([make_record(1), make_record(2), {"bad": "record"}])
        engine = QuizEngine(score_repository=score_repository, question_repository=repository)
        engine.load_from_repository()
        assert engine.is_ready()
        assert len(engine.question_pool) == 2

    def test_load_from_repository_without_repository_fails(self, engine):
        with pytest.raises(InvalidStateError):
            engine.load_from_repository()

    def test_repository_errors_propagate(self, score_repository):
        class BrokenRepository:
            def load_questions(self):
                raise ConnectionError("backend unreachable")

        engine = QuizEngine(score_repository=score_repository, question_repository=BrokenRepository())
        with pytest.raises(ConnectionError):
            engine.load_from_repository()
        assert engine.is_idle()


class TestQuestionSelection:
    """Seen-question tracking across sessions."""

    def test_sessions_do_not_repeat_until_bank_exhausted(self, score_repository):
        seen = InMemorySeenQuestionsStorage()
        engine = QuizEngine(score_repository=score_repository, seen_storage=seen, rng=random.Random(7))
        engine.load_questions([make_record(n) for n in range(6)])

        served = []
        for _ in range(3):
            engine.start(player_name="Ana", question_count=2)
            served.extend(q.question_id for q in engine.session.questions)
            play_through(engine)

        assert sorted(served) == [0, 1, 2, 3, 4, 5]
        assert seen.get_seen_question_ids() == [0, 1, 2, 3, 4, 5]

    def test_full_pool_count_resets_every_time(self, engine, seen_storage, records):
        engine.load_questions(records)

        engine.start(player_name="Ana", question_count=5)
        assert sorted(q.question_id for q in engine.session.questions) == [0, 1, 2, 3, 4]
        play_through(engine)

        engine.start(player_name="Ana", question_count=5)
        assert sorted(q.question_id for q in engine.session.questions) == [0, 1, 2, 3, 4]
        assert seen_storage.get_seen_question_ids() == [0, 1, 2, 3, 4]

    def test_reset_when_fewer_unseen_than_requested(self, engine, seen_storage, records):
        seen_storage.add_seen_question_ids([0, 1, 2, 3])
        engine.load_questions(records)

        engine.start(player_name="Ana", question_count=3)
        chosen = [q.question_id for q in engine.session.questions]
        assert len(chosen) == 3
        assert seen_storage.get_seen_question_ids() == sorted(chosen)

    def test_rejected_start_keeps_seen_set_during_reset(self, engine, seen_storage, records):
        seen_storage.add_seen_question_ids([0, 1, 2, 3])
        engine.load_questions(records)

        with pytest.raises(ValidationError):
            engine.start(player_name="  ", question_count=3)

        assert seen_storage.get_seen_question_ids() == [0, 1, 2, 3]
        assert engine.is_ready()

    def test_rejected_start_keeps_seen_set(self, engine, seen_storage, records):
        seen_storage.add_seen_question_ids([4])
        engine.load_questions(records)

        with pytest.raises(ValidationError):
            engine.start(player_name="", question_count=2)

        assert seen_storage.get_seen_question_ids() == [4]

    def test_seen_ids_are_merged(self, engine, seen_storage, records):
        seen_storage.add_seen_question_ids([4])
        engine.load_questions(records)
        engine.start(player_name="Ana", question_count=2)
        chosen = {q.question_id for q in engine.session.questions}

        assert 4 not in chosen
        assert set(seen_storage.get_seen_question_ids()) == chosen | {4}

    def test_without_seen_storage_every_start_uses_full_pool(self, score_repository, records):
        engine = QuizEngine(score_repository=score_repository, seen_storage=None, rng=random.Random(0))
        engine.load_questions(records)
        for _ in range(4):
            engine.start(player_name="Ana", question_count=5)
            assert len({q.question_id for q in engine.session.questions}) == 5
            play_through(engine)

    def test_duplicate_texts_are_tracked_by_id(self, engine, seen_storage):
        engine.load_questions([make_record(1), make_record(1), make_record(2)])
        engine.start(player_name="Ana", question_count=2)
        play_through(engine)
        engine.start(player_name="Ana", question_count=1)

        first_ids = set(seen_storage.get_seen_question_ids())
        assert len(first_ids) == 3

    def test_selected_questions_have_same_options_as_pool(self, engine, records):
        engine.load_questions(records)
        engine.start(player_name="Ana", question_count=5)
        for question in engine.session.questions:
            original = engine.question_pool[question.question_id]
            assert set(question.options) == set(original.options)
            assert question.correct_key == original.correct_key


class TestEngineResults:
    def test_results_placeholder_before_any_session(self, engine):
        summary = engine.results()
        assert summary.score.total == 0
        assert summary.score.percentage == 0
        assert summary.streaks.longest == 0
        assert summary.answers == ()

    def test_results_are_live_while_playing(self, engine, records):
        engine.load_questions(records)
        engine.start(player_name="Ana", question_count=3)
        engine.answer_current_question("a")
        summary = engine.results()
        assert summary.score.correct == 1
        assert len(summary.answers) == 1

    def test_current_progress_without_session(self, engine):
        progress = engine.current_progress()
        assert (progress.current, progress.total, progress.percentage) == (0, 0, 0)

    def test_save_score_requires_complete(self, engine, records):
        with pytest.raises(InvalidStateError):
            engine.save_score()
        engine.load_questions(records)
        engine.start(player_name="Ana", question_count=2)
        with pytest.raises(InvalidStateError, match="incomplete"):
            engine.save_score()

    def test_save_score_forwards_entry(self, engine, score_repository, records):
        engine.load_questions(records)
        engine.start(player_name="Ana", question_count=3)
        engine.answer_current_question("a")
        engine.answer_current_question("b")
        engine.answer_current_question("a")

        entry = engine.save_score()
        assert entry.score == 2
        assert entry.total_questions_in_quiz == 3
        assert score_repository.entries == [entry.to_record()]

    def test_save_score_failure_propagates(self, records):
        class FailingScores(InMemoryScoreRepository):
            def save_score(self, entry):
                raise OSError("disk full")

        engine = QuizEngine(score_repository=FailingScores())
        engine.load_questions(records)
        engine.start(player_name="Ana", question_count=1)
        engine.answer_current_question("a")
        with pytest.raises(OSError, match="disk full"):
            engine.save_score()
        assert engine.is_complete()
