"""Error types raised by the quiz domain."""

from __future__ import annotations


class QuizError(Exception):
    """Base class for quiz domain errors."""


class ValidationError(QuizError, ValueError):
    """Raised when a domain object is constructed from malformed input."""


class InvalidStateError(QuizError, RuntimeError):
    """Raised when an operation is not allowed in the current state."""

    def __init__(self, message: str, state: object | None = None) -> None:
        super().__init__(message)
        self.state = state


class QuestionImportError(QuizError):
    """Raised when a question file cannot be parsed."""
