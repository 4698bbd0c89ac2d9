from __future__ import annotations

import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

# Ensure "src" is on sys.path for imports in tests
PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_DIR = PROJECT_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from learnkids.data.content_store import ContentStore, Lesson, LessonValidation  # noqa: E402


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture(scope="session")
def store() -> ContentStore:
    return ContentStore()


@pytest.fixture
def make_lesson() -> Callable[..., Lesson]:
    def factory(
        pattern: str | None = r"answer\s*=\s*42",
        *,
        kind: str = "regex",
        error_message: str | None = "Set answer to 42!",
        hint: str | None = "Try answer = 42",
        reward: dict[str, Any] | None = None,
        next_lesson_id: str | None = "lesson-2",
        with_exercise: bool = True,
    ) -> Lesson:
        validation = LessonValidation(kind=kind, pattern=pattern, error_message=error_message)
        return Lesson(
            id="lesson-1",
            course_id="demo-course",
            order=1,
            title="Demo",
            exercise={"instruction": "Set answer to 42", "hint": hint} if with_exercise else None,
            validation=validation if with_exercise else None,
            hint=hint,
            reward=reward if reward is not None else {"stars": 1, "message": "You did it!"},
            next_lesson_id=next_lesson_id,
        )

    return factory
