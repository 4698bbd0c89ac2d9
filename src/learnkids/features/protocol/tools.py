from __future__ import annotations

import json
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError

from ...data.content_store import ContentStore, Lesson
from ..validation.engine import DEFAULT_MAX_LENGTH, check_submission
from .errors import INVALID_PARAMS, ProtocolError
from .schemas import (
    CheckWorkArguments,
    CourseDetailsArguments,
    ListCoursesArguments,
    ResourceContent,
    ResourceDescriptor,
    StartLessonArguments,
    ToolArguments,
    ToolDescriptor,
    ToolResult,
    input_schema,
)

__all__ = [
    "CATALOG_URI",
    "CatalogResources",
    "LearningTools",
    "TOOL_ALIASES",
]

logger = logging.getLogger(__name__)

CATALOG_URI = "learningkids://courses"

# Accepted on tools/call but not advertised by tools/list.
TOOL_ALIASES: dict[str, str] = {"get-course-details": "view-course-details"}

_READ_ONLY = {"readOnlyHint": True}
_RANGE_ERRORS = frozenset({"greater_than_equal", "less_than_equal"})


@dataclass(frozen=True)
class _Tool:
    name: str
    title: str
    description: str
    arguments: type[ToolArguments]
    run: Callable[[Any], ToolResult]

    def descriptor(self) -> ToolDescriptor:
        return ToolDescriptor(
            name=self.name,
            title=self.title,
            description=self.description,
            input_schema=input_schema(self.arguments),
            annotations=dict(_READ_ONLY),
        )


def _describe_validation_error(exc: ValidationError) -> str:
    fields: list[str] = []
    for error in exc.errors():
        loc = ".".join(str(part) for part in error.get("loc", ())) or "arguments"
        if loc not in fields:
            fields.append(loc)
    return ", ".join(fields)


def _only_lesson_range_errors(exc: ValidationError) -> bool:
    return all(
        error.get("loc") == ("lessonNumber",) and error.get("type") in _RANGE_ERRORS for error in exc.errors()
    )


class LearningTools:
    """The read-only tool catalog served to every session.

    One instance is shared by all protocol handlers; it holds no per-session
    state, only the content store and the submission limit.
    """

    def __init__(self, store: ContentStore, *, max_submission_length: int = DEFAULT_MAX_LENGTH) -> None:
        self.store = store
        self.max_submission_length = max_submission_length
        tools = (
            _Tool(
                "get-courses",
                "List courses",
                "Returns a list of all available courses. Use this when the student wants to browse "
                "available courses or start learning.",
                ListCoursesArguments,
                self._list_courses,
            ),
            _Tool(
                "view-course-details",
                "View course details",
                "Gets detailed information about a specific course including all lesson titles and "
                "objectives. Use this when the student wants to know more about a specific course "
                "before starting.",
                CourseDetailsArguments,
                self._course_details,
            ),
            _Tool(
                "start-lesson",
                "Start a lesson",
                "Retrieves complete content for a specific lesson including explanations, examples, "
                "and exercises. Use this when the student wants to start or continue a lesson.",
                StartLessonArguments,
                self._start_lesson,
            ),
            _Tool(
                "check-student-work",
                "Check student work",
                "Validates a student's code submission for an exercise. Returns whether the answer is "
                "correct and provides feedback. Use this when the student submits their code for an "
                "exercise.",
                CheckWorkArguments,
                self._check_work,
            ),
        )
        self._tools: dict[str, _Tool] = {tool.name: tool for tool in tools}

    def names(self) -> list[str]:
        return list(self._tools)

    def descriptors(self) -> list[ToolDescriptor]:
        return [tool.descriptor() for tool in self._tools.values()]

    def call(self, name: str, arguments: Mapping[str, Any] | None = None) -> ToolResult:
        """Run tool ``name``; every failure comes back as an ``isError`` result."""

        tool = self._tools.get(TOOL_ALIASES.get(name, name))
        if tool is None:
            logger.info("unknown tool requested", extra={"tool": name})
            return ToolResult.error(f'Tool "{name}" not recognized.')

        raw = dict(arguments or {})
        try:
            parsed = tool.arguments.model_validate(raw)
        except ValidationError as exc:
            if _only_lesson_range_errors(exc):
                return self._guarded(tool, lambda: self._lesson_out_of_range(raw))
            fields = _describe_validation_error(exc)
            logger.info("rejected tool arguments", extra={"tool": tool.name, "fields": fields})
            return ToolResult.error(f"Invalid arguments for {tool.name}: {fields}")

        return self._guarded(tool, lambda: tool.run(parsed))

    def _guarded(self, tool: _Tool, run: Callable[[], ToolResult]) -> ToolResult:
        try:
            return run()
        except Exception as exc:
            logger.exception("tool failed", extra={"tool": tool.name})
            return ToolResult.error(f"Error: {exc}")

    # ------------------------------------------------------------------ tools
    def _list_courses(self, _: ListCoursesArguments) -> ToolResult:
        summaries = [course.summary() for course in self.store.courses()]
        plural = "" if len(summaries) == 1 else "s"
        return ToolResult.text(
            f"Found {len(summaries)} course{plural} available for learning.",
            {"courses": summaries},
        )

    def _lessons_for(self, course_id: str) -> tuple[Lesson, ...]:
        lessons = self.store.get_lessons(course_id)
        if lessons is None:
            raise LookupError(f"Lessons for course {course_id} are unavailable")
        return lessons

    def _course_details(self, args: CourseDetailsArguments) -> ToolResult:
        course = self.store.get_course(args.course_id)
        if course is None:
            return ToolResult.error(
                f'Course "{args.course_id}" not found. Please use get-courses to see available courses.'
            )
        lessons = [lesson.summary() for lesson in self._lessons_for(course.id)]
        details = {
            "id": course.id,
            "title": course.title,
            "description": course.description,
            "ageRange": course.age_range,
            "difficulty": course.difficulty,
            "totalLessons": course.total_lessons,
            "estimatedDuration": course.estimated_duration,
            "prerequisites": list(course.prerequisites),
            "learningObjectives": list(course.learning_objectives),
            "lessonIds": list(course.lesson_ids) or [lesson["id"] for lesson in lessons],
            "lessons": lessons,
        }
        return ToolResult.text(
            f'Loaded details for "{course.title}" - {course.total_lessons} lessons covering {course.description}',
            {"course": details},
        )

    def _find_lesson(self, course_id: str, number: int) -> tuple[Lesson | None, int]:
        lessons = self._lessons_for(course_id)
        lesson = self.store.get_lesson(course_id, number)
        return lesson, len(lessons)

    def _lesson_out_of_range(self, raw: Mapping[str, Any]) -> ToolResult:
        course_id = raw.get("courseId")
        if not isinstance(course_id, str) or self.store.get_course(course_id) is None:
            return ToolResult.error(f'Course "{course_id}" not found.')
        available = len(self._lessons_for(course_id))
        return ToolResult.error(
            f"Lesson {raw.get('lessonNumber')} not found in this course. Available lessons: 1-{available}"
        )

    def _start_lesson(self, args: StartLessonArguments) -> ToolResult:
        if self.store.get_course(args.course_id) is None:
            return ToolResult.error(f'Course "{args.course_id}" not found.')
        lesson, available = self._find_lesson(args.course_id, args.lesson_number)
        if lesson is None:
            return ToolResult.error(
                f"Lesson {args.lesson_number} not found in this course. Available lessons: 1-{available}"
            )
        return ToolResult.text(
            f'Starting "{lesson.title}" - {lesson.objective}',
            {"lesson": lesson.to_payload(args.lesson_number)},
        )

    def _check_work(self, args: CheckWorkArguments) -> ToolResult:
        logger.info(
            "checking student work",
            extra={
                "course_id": args.course_id,
                "lesson_number": args.lesson_number,
                "answer_length": len(args.student_code) if isinstance(args.student_code, str) else None,
            },
        )
        if self.store.get_course(args.course_id) is None:
            return ToolResult.error(f'Course "{args.course_id}" not found.')
        lesson, _ = self._find_lesson(args.course_id, args.lesson_number)
        if lesson is None:
            return ToolResult.error(f"Lesson {args.lesson_number} not found.")

        result = check_submission(lesson, args.student_code, max_length=self.max_submission_length)
        return ToolResult.text(result.message, {"validation": result.to_dict()})


class CatalogResources:
    """Exposes the course catalog document as a readable resource."""

    def __init__(self, store: ContentStore) -> None:
        self.store = store

    def uris(self) -> list[str]:
        return [CATALOG_URI]

    def descriptors(self) -> list[ResourceDescriptor]:
        return [
            ResourceDescriptor(
                uri=CATALOG_URI,
                name="Course Catalog",
                description="Complete catalog of all available courses",
                mime_type="application/json",
            )
        ]

    def read(self, uri: str) -> list[ResourceContent]:
        if uri != CATALOG_URI:
            raise ProtocolError(INVALID_PARAMS, f"Unknown resource: {uri}")
        text = json.dumps(self.store.catalog_document(), indent=2, ensure_ascii=False)
        return [ResourceContent(uri=uri, mime_type="application/json", text=text)]
