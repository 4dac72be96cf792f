"""FastAPI server that exposes the quiz engine to the browser page."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import asdict
import logging
from threading import Lock
from typing import Any

from fastapi import Depends, FastAPI, HTTPException, Query
from fastapi.responses import HTMLResponse
from pydantic import BaseModel, Field
import uvicorn

from trivia_quiz.constants.about import APP_NAME, APP_VERSION
from trivia_quiz.constants.network_constants import DEFAULT_HOST, DEFAULT_PORT
from trivia_quiz.constants.quiz_constants import DEFAULT_QUESTION_COUNT
from trivia_quiz.constants.storage_constants import DEFAULT_LEADERBOARD_LIMIT
from trivia_quiz.core.errors import InvalidStateError, ValidationError
from trivia_quiz.core.markdown_renderer import renderer
from trivia_quiz.core.models import AnswerResult, Progress, Question, SessionSummary
from trivia_quiz.core.quiz_engine import QuizEngine
from trivia_quiz.core.score_calculator import streak_notification
from trivia_quiz.core.services.leaderboard import Leaderboard
from trivia_quiz.core.services.score_repository import ScoreRepository

logger = logging.getLogger(__name__)

_PLAYER_PAGE_HTML = """<!doctype html>
<html lang="en">
  <head>
    <meta charset="utf-8" />
    <title>Trivia Quiz</title>
    <meta name="viewport" content="width=device-width, initial-scale=1" />
    <style>
      :root { font-family: 'Inter', system-ui, sans-serif; background: #0b1120; color: #f5f7ff; }
      body { margin: 0 auto; max-width: 48rem; padding: 1.5rem; display: flex; flex-direction: column; gap: 1rem; }
      .card { background: #111a30; border-radius: 0.75rem; padding: 1.5rem; }
      .hidden { display: none; }
      button { border: none; border-radius: 0.75rem; padding: 0.85rem 1.5rem; font-size: 1rem; background: #1f9aa5; color: #fff; cursor: pointer; }
      button:disabled { opacity: 0.5; cursor: not-allowed; }
      input { padding: 0.6rem; border-radius: 0.5rem; border: none; font-size: 1rem; }
      .options-grid { display: grid; grid-template-columns: repeat(auto-fit, minmax(180px, 1fr)); gap: 0.75rem; margin-top: 1rem; }
      .progress-track { height: 0.5rem; background: rgba(31, 154, 165, 0.25); border-radius: 999px; overflow: hidden; }
      #progress-fill { height: 100%; background: #1f9aa5; width: 0; transition: width 150ms linear; }
      #feedback { min-height: 1.25rem; }
      li { margin-bottom: 0.5rem; }
    </style>
  </head>
  <body>
    <section class="card" id="start-card">
      <h1>Trivia Quiz</h1>
      <input id="player-name" placeholder="Your name" maxlength="40" />
      <input id="question-count" type="number" min="1" value="__DEFAULT_COUNT__" />
      <button id="start-button">Start</button>
      <p id="start-status"></p>
    </section>
    <section class="card hidden" id="quiz-card">
      <div class="progress-track"><div id="progress-fill"></div></div>
      <p id="progress-label"></p>
      <div id="question"></div>
      <div id="options" class="options-grid"></div>
      <p id="feedback"></p>
      <button id="next-button" class="hidden">Next</button>
    </section>
    <section class="card hidden" id="results-card">
      <h2 id="results-title"></h2>
      <ol id="results-answers"></ol>
      <button id="save-button">Save score</button>
      <button id="restart-button">Play again</button>
      <h3>Leaderboard</h3>
      <ol id="leaderboard"></ol>
    </section>
    <script>
      const $ = id => document.getElementById(id);
      const show = (el, visible) => el.classList.toggle('hidden', !visible);

      async function call(method, url, body) {
        const response = await fetch(url, {
          method,
          headers: { 'Content-Type': 'application/json' },
          body: body === undefined ? undefined : JSON.stringify(body)
        });
        const payload = await response.json().catch(() => ({}));
        if (!response.ok) throw new Error(payload.detail || 'Request failed');
        return payload;
      }

      function renderQuestion(payload) {
        show($('start-card'), false);
        show($('results-card'), false);
        show($('quiz-card'), true);
        show($('next-button'), false);
        $('feedback').textContent = '';
        $('progress-label').textContent = `Question ${payload.progress.current} of ${payload.progress.total}`;
        $('progress-fill').style.width = `${payload.progress.percentage}%`;
        $('question').innerHTML = payload.question.html;
        $('options').innerHTML = '';
        payload.question.options.forEach(option => {
          const button = document.createElement('button');
          button.innerHTML = option.html;
          button.addEventListener('click', () => answer(option.key));
          $('options').appendChild(button);
        });
      }

      async function answer(key) {
        $('options').querySelectorAll('button').forEach(b => (b.disabled = true));
        const result = await call('POST', '/answer', { selected_key: key });
        $('feedback').textContent = result.is_correct
          ? `Correct! ${result.notification ? result.notification.message : ''}`
          : `Wrong, the answer was ${result.correct_key.toUpperCase()}. ${result.explanation}`;
        $('progress-fill').style.width = `${result.progress.percentage}%`;
        show($('next-button'), true);
        $('next-button').onclick = result.is_session_complete ? showResults : loadQuestion;
      }

      async function loadQuestion() {
        renderQuestion(await call('GET', '/question'));
      }

      async function showResults() {
        const results = await call('GET', '/results');
        show($('quiz-card'), false);
        show($('results-card'), true);
        $('save-button').disabled = false;
        $('results-title').textContent =
          `${results.player_name}: ${results.score.correct}/${results.score.total} (${results.score.grade}), longest streak ${results.streaks.longest}`;
        $('results-answers').innerHTML = '';
        results.answers.forEach(item => {
          const li = document.createElement('li');
          li.textContent = `${item.is_correct ? '✓' : '✗'} ${item.question_text}`;
          $('results-answers').appendChild(li);
        });
        await loadLeaderboard(results.score.total);
      }

      async function loadLeaderboard(count) {
        const rows = await call('GET', `/leaderboard?question_count=${count}`);
        $('leaderboard').innerHTML = '';
        rows.forEach(row => {
          const li = document.createElement('li');
          li.textContent = `${row.player_name} ${row.score_text} (${row.formatted_date})`;
          $('leaderboard').appendChild(li);
        });
      }

      $('start-button').addEventListener('click', async () => {
        try {
          const payload = await call('POST', '/start', {
            player_name: $('player-name').value,
            question_count: Number($('question-count').value)
          });
          renderQuestion(payload);
        } catch (error) {
          $('start-status').textContent = error.message;
        }
      });

      $('save-button').addEventListener('click', async () => {
        $('save-button').disabled = true;
        try {
          const entry = await call('POST', '/score');
          await loadLeaderboard(entry.total_questions_in_quiz);
        } catch (error) {
          $('save-button').disabled = false;
          alert(error.message);
        }
      });

      $('restart-button').addEventListener('click', async () => {
        await call('POST', '/restart');
        show($('results-card'), false);
        show($('start-card'), true);
      });
    </script>
  </body>
</html>
"""


class StartPayload(BaseModel):
    """Payload schema for starting a quiz."""

    player_name: str
    question_count: int = Field(default=DEFAULT_QUESTION_COUNT, ge=1)


class AnswerPayload(BaseModel):
    """Payload schema for submitted answers."""

    selected_key: str


def _question_payload(question: Question) -> dict[str, object]:
    # The correct key stays server-side until the question is answered.
    return {
        "question_id": question.question_id,
        "text": question.text,
        "html": renderer.render_fragment(question.text),
        "options": [
            {"key": option.key, "text": option.text, "html": renderer.render_inline(option.text)}
            for option in question.options
        ],
    }


def _progress_payload(progress: Progress) -> dict[str, int]:
    return asdict(progress)


def _answer_payload(result: AnswerResult, current_streak: int) -> dict[str, object]:
    notification = streak_notification(current_streak) if result.is_correct else None
    return {
        "is_correct": result.is_correct,
        "correct_key": result.correct_answer.correct_key,
        "explanation": result.correct_answer.explanation,
        "progress": _progress_payload(result.progress),
        "is_session_complete": result.is_session_complete,
        "notification": asdict(notification) if notification else None,
    }


def _summary_payload(summary: SessionSummary) -> dict[str, Any]:
    payload = asdict(summary)
    payload["duration_ms"] = int(summary.duration.total_seconds() * 1000)
    del payload["duration"]
    return payload


@contextmanager
def _domain_errors() -> Iterator[None]:
    try:
        yield
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    except InvalidStateError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc


def _get_engine_dependency(engine: QuizEngine) -> Callable[[], QuizEngine]:
    def dependency() -> QuizEngine:
        return engine

    return dependency


def create_api_app(
    engine: QuizEngine,
    score_repository: ScoreRepository,
    default_question_count: int = DEFAULT_QUESTION_COUNT,
) -> FastAPI:
    """Create a FastAPI application wired to one engine.

    The engine expects serialized calls, so every endpoint takes ``lock``.
    """
    app = FastAPI(title=f"{APP_NAME} API", version=APP_VERSION)
    engine_dep = _get_engine_dependency(engine)
    leaderboard = Leaderboard(score_repository)
    lock = Lock()
    player_page = _PLAYER_PAGE_HTML.replace("__DEFAULT_COUNT__", str(default_question_count))

    @app.get("/", response_class=HTMLResponse)
    def serve_player_page() -> str:
        return player_page

    @app.get("/state")
    def get_state(engine: QuizEngine = Depends(engine_dep)) -> dict[str, object]:
        with lock:
            return {
                "state": engine.state.value,
                "pool_size": len(engine.question_pool),
                "progress": _progress_payload(engine.current_progress()),
            }

    @app.post("/start", status_code=201)
    def start_quiz(payload: StartPayload, engine: QuizEngine = Depends(engine_dep)) -> dict[str, object]:
        with lock, _domain_errors():
            started = engine.start(player_name=payload.player_name, question_count=payload.question_count)
        return {
            "question": _question_payload(started.question),
            "progress": _progress_payload(started.progress),
        }

    @app.get("/question")
    def get_question(engine: QuizEngine = Depends(engine_dep)) -> dict[str, object]:
        with lock:
            question = engine.current_question()
            progress = engine.current_progress()
        if question is None:
            raise HTTPException(status_code=404, detail="No question is being played.")
        return {"question": _question_payload(question), "progress": _progress_payload(progress)}

    @app.post("/answer")
    def submit_answer(payload: AnswerPayload, engine: QuizEngine = Depends(engine_dep)) -> dict[str, object]:
        with lock, _domain_errors():
            result = engine.answer_current_question(payload.selected_key)
            streak = engine.results().streaks.current
        return _answer_payload(result, streak)

    @app.get("/results")
    def get_results(engine: QuizEngine = Depends(engine_dep)) -> dict[str, Any]:
        with lock:
            return _summary_payload(engine.results())

    @app.post("/score", status_code=201)
    def save_score(engine: QuizEngine = Depends(engine_dep)) -> dict[str, object]:
        with lock, _domain_errors():
            try:
                entry = engine.save_score()
            except (OSError, ValueError) as exc:
                logger.error("Failed to save score: %s", exc)
                raise HTTPException(status_code=503, detail="Score could not be saved.") from exc
        return entry.to_record()

    @app.post("/restart")
    def restart(engine: QuizEngine = Depends(engine_dep)) -> dict[str, str]:
        with lock, _domain_errors():
            engine.restart()
            return {"state": engine.state.value}

    @app.get("/leaderboard")
    def get_leaderboard(
        question_count: int | None = Query(default=None, ge=1),
        limit: int = Query(default=DEFAULT_LEADERBOARD_LIMIT, ge=1, le=200),
    ) -> list[dict[str, object]]:
        rows = leaderboard.top_rows(question_count=question_count, limit=limit)
        return [asdict(row) for row in rows]

    return app


def run_api_server(
    engine: QuizEngine,
    score_repository: ScoreRepository,
    host: str = DEFAULT_HOST,
    port: int = DEFAULT_PORT,
    default_question_count: int = DEFAULT_QUESTION_COUNT,
) -> None:
    """Serve the API with uvicorn until interrupted."""
    app = create_api_app(engine, score_repository, default_question_count)
    config = uvicorn.Config(app=app, host=host, port=port, log_level="info")
    server = uvicorn.Server(config)
    server.run()
