"""Quiz-related constants shared across the engine and server layers."""

DEFAULT_QUESTION_COUNT: int = 15
MIN_OPTIONS_PER_QUESTION: int = 2
NO_EXPLANATION_PLACEHOLDER: str = "No explanation available."

# Streak values that always count as milestones, on top of every multiple of ten.
STREAK_MILESTONES: tuple[int, ...] = (3, 5)
STREAK_MILESTONE_INTERVAL: int = 10

GRADE_THRESHOLDS: tuple[tuple[float, str], ...] = (
    (90, "A"),
    (80, "B"),
    (70, "C"),
    (60, "D"),
)
FAILING_GRADE: str = "F"

STREAK_NOTIFICATION_DURATION_MS: int = 2200
ANONYMOUS_PLAYER_NAME: str = "Anonymous"
