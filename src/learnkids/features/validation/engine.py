from __future__ import annotations

import logging
import re
from functools import lru_cache
from typing import Final

from ...data.content_store import Lesson
from .guided import apply_guided, success_for
from .schemas import ValidationResult

__all__ = [
    "DEFAULT_MAX_LENGTH",
    "check_submission",
    "evaluate_pattern",
    "submission_problem",
]

logger = logging.getLogger(__name__)

DEFAULT_MAX_LENGTH: Final = 5000

_NOT_A_STRING: Final = "Code must be a string"
_NO_ATTEMPT: Final = "Please write some code first!"
_HEURISTIC_MIN_LENGTH: Final = 10


@lru_cache(maxsize=256)
def _compile(pattern: str) -> re.Pattern[str]:
    return re.compile(pattern, re.DOTALL)


def _no_attempt() -> ValidationResult:
    return ValidationResult(correct=False, has_attempt=False, message=_NO_ATTEMPT)


def submission_problem(submission: object, max_length: int = DEFAULT_MAX_LENGTH) -> str | None:
    """Return why ``submission`` cannot be graded, or ``None`` when it can."""

    if not isinstance(submission, str):
        return _NOT_A_STRING
    if not submission:
        return "No code provided"
    if not submission.strip():
        return "Code cannot be only whitespace"
    if len(submission) > max_length:
        return f"Code exceeds maximum length of {max_length} characters"
    return None


def evaluate_pattern(lesson: Lesson, submission: str) -> ValidationResult:
    """Match ``submission`` against the lesson's declared pattern.

    The pattern runs against the raw submission with ``re.DOTALL`` so answers
    spanning several lines still match. A pattern that fails to compile never
    raises: the verdict degrades to a length heuristic and the compiler
    message is reported in ``error``.
    """

    if not submission.strip():
        return _no_attempt()

    validation = lesson.validation
    if lesson.exercise is None or validation is None:
        return ValidationResult(correct=True, has_attempt=True, message="Good effort! Keep going!")
    if validation.kind != "regex" or not validation.pattern:
        return ValidationResult(correct=True, has_attempt=True, message="Good effort!")

    try:
        matched = _compile(validation.pattern).search(submission) is not None
    except re.error as exc:
        logger.warning(
            "lesson pattern failed to compile",
            extra={"course_id": lesson.course_id, "lesson_id": lesson.id, "reason": str(exc)},
        )
        return ValidationResult(
            correct=len(submission.strip()) > _HEURISTIC_MIN_LENGTH,
            has_attempt=True,
            message="Good effort!",
            error=str(exc),
        )

    if matched:
        return success_for(lesson)
    return ValidationResult(
        correct=False,
        has_attempt=True,
        message=validation.error_message or "Not quite right. Try again!",
        hint=lesson.hint,
    )


def check_submission(
    lesson: Lesson,
    submission: object,
    *,
    max_length: int = DEFAULT_MAX_LENGTH,
) -> ValidationResult:
    """Grade ``submission`` for ``lesson``.

    Input problems come back as ordinary results with ``correct=False``; the
    guided rules only run after the lesson pattern has already failed.
    """

    if not isinstance(submission, str):
        return ValidationResult(correct=False, has_attempt=False, message=_NOT_A_STRING, error=_NOT_A_STRING)
    if not submission.strip():
        return _no_attempt()

    problem = submission_problem(submission, max_length)
    if problem is not None:
        return ValidationResult(correct=False, has_attempt=True, message=problem, error=problem)

    base = evaluate_pattern(lesson, submission)
    if base.correct:
        return base
    return apply_guided(lesson, submission, base)
