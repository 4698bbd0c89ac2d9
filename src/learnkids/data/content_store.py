from __future__ import annotations

import json
import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from ..core.identifiers import is_valid_course_id, is_valid_lesson_id, lesson_id_for

__all__ = [
    "ContentStore",
    "Course",
    "Lesson",
    "LessonValidation",
]

logger = logging.getLogger(__name__)

_DEFAULT_DATA_DIR = Path(__file__).resolve().parent


def _str_list(value: Any) -> tuple[str, ...]:
    if not isinstance(value, Sequence) or isinstance(value, str):
        return ()
    return tuple(str(item) for item in value)


def _optional_str(value: Any) -> str | None:
    if isinstance(value, str) and value:
        return value
    return None


@dataclass(frozen=True)
class Course:
    id: str
    title: str
    emoji: str = ""
    color: str = ""
    description: str = ""
    age_range: str = ""
    difficulty: str = ""
    total_lessons: int = 0
    estimated_duration: str = ""
    prerequisites: tuple[str, ...] = ()
    learning_objectives: tuple[str, ...] = ()
    lesson_ids: tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> Course:
        course_id = raw.get("id")
        if not isinstance(course_id, str) or not course_id:
            raise ValueError("Course entry is missing an id")
        return cls(
            id=course_id,
            title=str(raw.get("title", course_id)),
            emoji=str(raw.get("emoji", "")),
            color=str(raw.get("color", "")),
            description=str(raw.get("description", "")),
            age_range=str(raw.get("ageRange", "")),
            difficulty=str(raw.get("difficulty", "")),
            total_lessons=int(raw.get("totalLessons", 0) or 0),
            estimated_duration=str(raw.get("estimatedDuration", "")),
            prerequisites=_str_list(raw.get("prerequisites")),
            learning_objectives=_str_list(raw.get("learningObjectives")),
            lesson_ids=_str_list(raw.get("lessonIds")),
        )

    def summary(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "emoji": self.emoji,
            "color": self.color,
            "description": self.description,
            "ageRange": self.age_range,
            "difficulty": self.difficulty,
            "totalLessons": self.total_lessons,
            "estimatedDuration": self.estimated_duration,
        }


@dataclass(frozen=True)
class LessonValidation:
    kind: str
    pattern: str | None = None
    error_message: str | None = None

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> LessonValidation:
        return cls(
            kind=str(raw.get("type", "regex")),
            pattern=_optional_str(raw.get("pattern")),
            error_message=_optional_str(raw.get("errorMessage")),
        )


@dataclass(frozen=True)
class Lesson:
    """One lesson record as shipped in ``lessons/<course>.json``.

    ``exercise``, ``content`` and ``examples`` are kept as the raw JSON so the
    start-lesson tool can hand them to the client untouched; the fields the
    validation engine reads are lifted out into typed attributes.
    """

    id: str
    course_id: str
    order: int
    title: str = ""
    objective: str = ""
    duration: str = ""
    content: Mapping[str, Any] = field(default_factory=dict)
    examples: tuple[Mapping[str, Any], ...] = ()
    exercise: Mapping[str, Any] | None = None
    validation: LessonValidation | None = None
    hint: str | None = None
    reward: Mapping[str, Any] | None = None
    next_lesson_id: str | None = None

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any], course_id: str) -> Lesson:
        lesson_id = raw.get("id")
        if not isinstance(lesson_id, str) or not lesson_id:
            raise ValueError(f"Lesson entry in {course_id} is missing an id")
        exercise = raw.get("exercise")
        if not isinstance(exercise, Mapping):
            exercise = None
        validation_raw = exercise.get("validation") if exercise else None
        reward = raw.get("reward")
        examples = raw.get("examples")
        content = raw.get("content")
        return cls(
            id=lesson_id,
            course_id=course_id,
            order=int(raw.get("order", 0) or 0),
            title=str(raw.get("title", "")),
            objective=str(raw.get("objective", "")),
            duration=str(raw.get("duration", "")),
            content=dict(content) if isinstance(content, Mapping) else {},
            examples=tuple(item for item in examples if isinstance(item, Mapping)) if isinstance(examples, list) else (),
            exercise=dict(exercise) if exercise else None,
            validation=LessonValidation.from_dict(validation_raw) if isinstance(validation_raw, Mapping) else None,
            hint=_optional_str(exercise.get("hint")) if exercise else None,
            reward=dict(reward) if isinstance(reward, Mapping) else None,
            next_lesson_id=_optional_str(raw.get("nextLesson")),
        )

    def summary(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "number": self.order,
            "title": self.title,
            "duration": self.duration,
        }

    def to_payload(self, number: int) -> dict[str, Any]:
        return {
            "id": self.id,
            "courseId": self.course_id,
            "number": number,
            "title": self.title,
            "objective": self.objective,
            "duration": self.duration,
            "content": dict(self.content),
            "examples": [dict(example) for example in self.examples],
            "exercise": dict(self.exercise) if self.exercise else None,
        }


class ContentStore:
    """Read-only course and lesson documents, memoised per instance.

    One store is built per process and handed to the tool layer; dropping the
    instance (or calling :meth:`clear_cache`) is the only way to reload.
    """

    def __init__(self, data_dir: Path | str | None = None) -> None:
        self._data_dir = Path(data_dir) if data_dir is not None else _DEFAULT_DATA_DIR
        self._catalog: tuple[dict[str, Any], dict[str, Course]] | None = None
        self._lessons: dict[str, tuple[Lesson, ...]] = {}

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    @staticmethod
    def _load_document(path: Path, key: str) -> dict[str, Any]:
        with path.open("r", encoding="utf-8") as fh:
            data = json.load(fh)
        if not isinstance(data, dict) or not isinstance(data.get(key), list):
            raise ValueError(f"Invalid {key} data structure in {path.name}")
        return data

    def _load_catalog(self) -> tuple[dict[str, Any], dict[str, Course]]:
        if self._catalog is None:
            document = self._load_document(self._data_dir / "courses.json", "courses")
            courses = [Course.from_dict(entry) for entry in document["courses"] if isinstance(entry, Mapping)]
            self._catalog = (document, {course.id: course for course in courses})
            logger.info("loaded course catalog", extra={"courses": len(courses)})
        return self._catalog

    def _ensure_catalog(self) -> dict[str, Course]:
        return self._load_catalog()[1]

    def catalog_document(self) -> dict[str, Any]:
        return self._load_catalog()[0]

    def courses(self) -> tuple[Course, ...]:
        return tuple(self._ensure_catalog().values())

    def course_ids(self) -> frozenset[str]:
        return frozenset(self._ensure_catalog())

    def get_course(self, course_id: str) -> Course | None:
        catalog = self._ensure_catalog()
        if not is_valid_course_id(course_id, catalog):
            return None
        return catalog[course_id]

    def get_lessons(self, course_id: str) -> tuple[Lesson, ...] | None:
        if self.get_course(course_id) is None:
            return None
        cached = self._lessons.get(course_id)
        if cached is not None:
            return cached
        path = self._data_dir / "lessons" / f"{course_id}.json"
        try:
            document = self._load_document(path, "lessons")
        except FileNotFoundError:
            logger.warning("no lesson file for course", extra={"course_id": course_id})
            return None
        lessons = tuple(
            sorted(
                (Lesson.from_dict(entry, course_id) for entry in document["lessons"] if isinstance(entry, Mapping)),
                key=lambda lesson: lesson.order,
            )
        )
        self._lessons[course_id] = lessons
        logger.info("loaded lessons", extra={"course_id": course_id, "lessons": len(lessons)})
        return lessons

    def get_lesson(self, course_id: str, number: int) -> Lesson | None:
        lessons = self.get_lessons(course_id)
        if lessons is None:
            return None
        lesson_id = lesson_id_for(number)
        if not is_valid_lesson_id(lesson_id):
            return None
        for lesson in lessons:
            if lesson.id == lesson_id:
                return lesson
        return None

    def clear_cache(self) -> None:
        self._catalog = None
        self._lessons.clear()
